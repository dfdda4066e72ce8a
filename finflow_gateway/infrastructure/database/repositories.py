"""Data access layer - providers for the advisory engine and the payment sink"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from finflow_gateway.infrastructure.database.models import (
    AuditEventRow,
    BudgetRow,
    DebtRow,
    ObligationRow,
    RecurringRow,
    SavingsGoalRow,
    TransactionRow,
)
from finflow_gateway.domain.models import (
    Budget,
    Debt,
    DebtPayment,
    FlowType,
    Obligation,
    ObligationStatus,
    RecurringInstance,
    SavingsGoal,
    Transaction,
)
from finflow_gateway.utils.text_utils import normalize_title

OPEN_STATUSES = (ObligationStatus.PENDING.value, ObligationStatus.OVERDUE.value)


def parse_id(raw: str) -> Optional[uuid.UUID]:
    """Parse a path id; malformed ids behave like missing rows"""
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


def snapshot(row: Any) -> Dict[str, Any]:
    """JSON-safe copy of a row's columns for audit events"""
    data = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, (uuid.UUID, Decimal)):
            value = str(value)
        elif isinstance(value, date):
            value = value.isoformat()
        data[column.key] = value
    return data


class ObligationRepository:
    """Repository for obligations"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_domain(row: ObligationRow) -> Obligation:
        return Obligation(
            id=str(row.id),
            title=row.title,
            amount=Decimal(row.amount),
            due_date=row.due_date,
            status=ObligationStatus(row.status),
            category=row.category,
            minimum_payment=Decimal(row.minimum_payment) if row.minimum_payment is not None else None,
        )

    def list_open(self, space_id: str, due_until: Optional[date] = None) -> List[Obligation]:
        """Pending and overdue obligations, oldest due date first"""
        query = self.db.query(ObligationRow).filter(
            ObligationRow.space_id == space_id,
            ObligationRow.status.in_(OPEN_STATUSES),
        )
        if due_until is not None:
            query = query.filter(ObligationRow.due_date <= due_until)
        return [self.to_domain(row) for row in query.order_by(ObligationRow.due_date.asc()).all()]

    def get_open_for_update(self, space_id: str, obligation_id: str) -> Optional[ObligationRow]:
        """Lock an unpaid obligation row for a payment confirmation"""
        parsed = parse_id(obligation_id)
        if parsed is None:
            return None
        return (
            self.db.query(ObligationRow)
            .filter(
                ObligationRow.id == parsed,
                ObligationRow.space_id == space_id,
                ObligationRow.status.in_(OPEN_STATUSES),
            )
            .with_for_update()
            .first()
        )

    def find_pending_by_title(self, space_id: str, title: str) -> Optional[ObligationRow]:
        """Oldest pending obligation whose normalized title equals title's"""
        wanted = normalize_title(title)
        rows = (
            self.db.query(ObligationRow)
            .filter(
                ObligationRow.space_id == space_id,
                ObligationRow.status == ObligationStatus.PENDING.value,
            )
            .order_by(ObligationRow.due_date.asc())
            .all()
        )
        return next((row for row in rows if normalize_title(row.title) == wanted), None)

    def set_status(self, row: ObligationRow, status: ObligationStatus) -> ObligationRow:
        row.status = status.value
        self.db.flush()
        return row


class DebtRepository:
    """Repository for installment debts"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_domain(row: DebtRow) -> Debt:
        return Debt(
            id=str(row.id),
            name=row.name,
            total_amount=Decimal(row.total_amount),
            monthly_payment=Decimal(row.monthly_payment or 0),
            remaining_installments=int(row.remaining_installments),
            total_installments=int(row.total_installments),
            next_payment_date=row.next_payment_date,
            category=row.category,
        )

    def list_active(self, space_id: str, due_until: Optional[date] = None) -> List[Debt]:
        """Debts with installments left, nearest payment first"""
        query = self.db.query(DebtRow).filter(
            DebtRow.space_id == space_id,
            DebtRow.remaining_installments > 0,
        )
        if due_until is not None:
            query = query.filter(DebtRow.next_payment_date <= due_until)
        return [self.to_domain(row) for row in query.order_by(DebtRow.next_payment_date.asc()).all()]

    def get_for_update(self, space_id: str, debt_id: str) -> Optional[DebtRow]:
        parsed = parse_id(debt_id)
        if parsed is None:
            return None
        return (
            self.db.query(DebtRow)
            .filter(DebtRow.id == parsed, DebtRow.space_id == space_id)
            .with_for_update()
            .first()
        )

    def apply_payment(self, row: DebtRow, payment: DebtPayment) -> DebtRow:
        row.total_amount = payment.total_amount
        row.remaining_installments = payment.remaining_installments
        row.next_payment_date = payment.next_payment_date
        self.db.flush()
        return row


class RecurringRepository:
    """Repository for recurring rules (read-only for the engine)"""

    def __init__(self, db: Session):
        self.db = db

    def list_upcoming(self, space_id: str, until: date) -> List[RecurringInstance]:
        """Next materialized occurrence of every active rule due on or before until"""
        rows = (
            self.db.query(RecurringRow)
            .filter(
                RecurringRow.space_id == space_id,
                RecurringRow.is_active.is_(True),
                RecurringRow.next_run <= until,
            )
            .order_by(RecurringRow.next_run.asc())
            .all()
        )
        return [
            RecurringInstance(
                id=str(row.id),
                title=row.description or "Recurrente",
                amount=Decimal(row.amount),
                due_date=row.next_run,
                type=FlowType(row.type or "expense"),
                frequency=row.frequency or "monthly",
                category=row.category,
            )
            for row in rows
        ]


class TransactionRepository:
    """Repository for income/expense transactions"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_domain(row: TransactionRow) -> Transaction:
        return Transaction(
            id=str(row.id),
            type=FlowType(row.type),
            amount=Decimal(row.amount),
            date=row.date,
            description=row.description or "",
            category=row.category,
        )

    def list_between(self, space_id: str, start: date, end: date) -> List[Transaction]:
        rows = (
            self.db.query(TransactionRow)
            .filter(
                TransactionRow.space_id == space_id,
                TransactionRow.date >= start,
                TransactionRow.date <= end,
            )
            .order_by(TransactionRow.date.desc())
            .all()
        )
        return [self.to_domain(row) for row in rows]

    def create(self, space_id: str, transaction: Transaction) -> TransactionRow:
        """Append a transaction without committing"""
        row = TransactionRow(
            space_id=space_id,
            type=transaction.type.value,
            amount=transaction.amount,
            description=transaction.description,
            category=transaction.category,
            date=transaction.date,
        )
        self.db.add(row)
        self.db.flush()  # Get ID without committing
        return row


class SavingsGoalRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_goals(self, space_id: str) -> List[SavingsGoal]:
        rows = self.db.query(SavingsGoalRow).filter(SavingsGoalRow.space_id == space_id).all()
        return [
            SavingsGoal(
                category=row.category or "",
                current_amount=Decimal(row.current_amount or 0),
                target_amount=Decimal(row.target_amount),
                name=row.name or "",
            )
            for row in rows
        ]


class BudgetRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_for_month(self, space_id: str, month: str) -> List[Budget]:
        rows = (
            self.db.query(BudgetRow)
            .filter(BudgetRow.space_id == space_id, BudgetRow.month == month)
            .all()
        )
        return [
            Budget(
                category=row.category,
                month=row.month,
                limit_amount=Decimal(row.limit_amount),
                alert_threshold=Decimal(row.alert_threshold or 80),
            )
            for row in rows
        ]


class AuditRepository:
    """Append-only audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        space_id: str,
        entity_type: str,
        entity_id: str,
        action: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEventRow:
        row = AuditEventRow(
            space_id=space_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            before_data=before,
            after_data=after,
            event_metadata=metadata,
        )
        self.db.add(row)
        return row

    def list_for_entity(self, space_id: str, entity_id: str) -> List[AuditEventRow]:
        return (
            self.db.query(AuditEventRow)
            .filter(AuditEventRow.space_id == space_id, AuditEventRow.entity_id == str(entity_id))
            .order_by(AuditEventRow.created_at.asc())
            .all()
        )
