"""Payment confirmation - the only write path of the advisory engine"""

import threading
from datetime import date
from typing import Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finflow_gateway.domain.exceptions import (
    DomainException,
    NotFoundError,
    PaymentInProgressError,
    ProviderUnavailableError,
)
from finflow_gateway.domain.models import ObligationStatus, PaymentReceipt, SourceKind
from finflow_gateway.domain.payments import pay_debt_installment, pay_obligation, validate_amount
from finflow_gateway.infrastructure.database.repositories import (
    AuditRepository,
    DebtRepository,
    ObligationRepository,
    TransactionRepository,
    snapshot,
)

# (space_id, kind, target_id) of confirmations currently running in this process
_in_flight: Set[Tuple[str, str, str]] = set()
_in_flight_lock = threading.Lock()


class PaymentService:
    """Confirms obligation/debt payments and records the matching expense atomically"""

    def __init__(self, db: Session):
        self.db = db
        self.obligations = ObligationRepository(db)
        self.debts = DebtRepository(db)
        self.transactions = TransactionRepository(db)
        self.audit = AuditRepository(db)

    def confirm_payment(
        self,
        space_id: str,
        kind: SourceKind,
        target_id: str,
        payment_amount,
        payment_date: Optional[date],
        description: Optional[str] = None,
        today: Optional[date] = None,
    ) -> PaymentReceipt:
        """
        Apply a payment to an obligation or debt.

        Flow:
        1. Validate the amount (InvalidAmountError)
        2. Lock the target row in the space (NotFoundError when missing or closed)
        3. Update the target and append the expense transaction + audit events
        4. Commit once; any failure rolls everything back

        Raises:
            InvalidAmountError, NotFoundError, PaymentInProgressError, ProviderUnavailableError
        """
        amount = validate_amount(payment_amount)
        payment_date = payment_date or today or date.today()

        key = (space_id, kind.value, str(target_id))
        with _in_flight_lock:
            if key in _in_flight:
                raise PaymentInProgressError(f"A payment for {kind.value} {target_id} is already being confirmed")
            _in_flight.add(key)

        try:
            if kind == SourceKind.OBLIGATION:
                receipt = self._confirm_obligation(space_id, target_id, amount, payment_date, description)
            elif kind == SourceKind.DEBT:
                receipt = self._confirm_debt(space_id, target_id, amount, payment_date, description)
            else:
                raise NotFoundError(f"{kind.value} items cannot be confirmed as payments")
            self.db.commit()
            return receipt

        except DomainException:
            self.db.rollback()
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            raise ProviderUnavailableError("payments", str(e.__class__.__name__)) from e

        finally:
            with _in_flight_lock:
                _in_flight.discard(key)

    def _confirm_obligation(self, space_id, obligation_id, amount, payment_date, description) -> PaymentReceipt:
        row = self.obligations.get_open_for_update(space_id, obligation_id)
        if row is None:
            raise NotFoundError(f"Obligation {obligation_id} not found")

        before = snapshot(row)
        payment = pay_obligation(ObligationRepository.to_domain(row), amount, payment_date, description)

        txn_row = self.transactions.create(space_id, payment.transaction)
        self.obligations.set_status(row, payment.status)

        self.audit.record(
            space_id,
            "transaction",
            txn_row.id,
            "create",
            after=snapshot(txn_row),
            metadata={"source": "obligation_confirm_payment", "obligation_id": str(row.id)},
        )
        self.audit.record(
            space_id,
            "obligation",
            row.id,
            "update",
            before=before,
            after=snapshot(row),
            metadata={
                "payment_amount": str(amount),
                "payment_date": payment_date.isoformat(),
                "transaction_id": str(txn_row.id),
            },
        )

        return PaymentReceipt(
            kind=SourceKind.OBLIGATION,
            target_id=str(row.id),
            transaction=TransactionRepository.to_domain(txn_row),
            status=payment.status,
        )

    def _confirm_debt(self, space_id, debt_id, amount, payment_date, description) -> PaymentReceipt:
        row = self.debts.get_for_update(space_id, debt_id)
        if row is None:
            raise NotFoundError(f"Debt {debt_id} not found")

        before = snapshot(row)
        payment = pay_debt_installment(DebtRepository.to_domain(row), amount, payment_date, description)

        self.debts.apply_payment(row, payment)
        txn_row = self.transactions.create(space_id, payment.transaction)

        # The same bill is often tracked as an obligation too
        matched = self.obligations.find_pending_by_title(space_id, row.name)
        matched_before = None
        if matched is not None:
            matched_before = snapshot(matched)
            self.obligations.set_status(matched, ObligationStatus.PAID)

        self.audit.record(
            space_id,
            "debt",
            row.id,
            "update",
            before=before,
            after=snapshot(row),
            metadata={"payment_amount": str(amount), "payment_date": payment_date.isoformat()},
        )
        self.audit.record(
            space_id,
            "transaction",
            txn_row.id,
            "create",
            after=snapshot(txn_row),
            metadata={"source": "debt_confirm_payment", "debt_id": str(row.id)},
        )
        if matched is not None:
            self.audit.record(
                space_id,
                "obligation",
                matched.id,
                "update",
                before=matched_before,
                after=snapshot(matched),
                metadata={"source": "debt_confirm_payment", "debt_id": str(row.id)},
            )

        return PaymentReceipt(
            kind=SourceKind.DEBT,
            target_id=str(row.id),
            transaction=TransactionRepository.to_domain(txn_row),
            remaining_installments=payment.remaining_installments,
            total_amount=payment.total_amount,
            next_payment_date=payment.next_payment_date,
            matched_obligation_id=str(matched.id) if matched is not None else None,
        )
