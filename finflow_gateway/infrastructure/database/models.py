"""SQLAlchemy ORM models - every table is scoped by space_id"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Date, Integer, Numeric, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(14, 2)


class ObligationRow(Base):
    """Standalone bill (manual entry or document import)"""

    __tablename__ = "obligations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    amount = Column(Money, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(Text, nullable=False, default="pending")  # pending | paid | overdue
    category = Column(Text, nullable=True)
    minimum_payment = Column(Money, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DebtRow(Base):
    """Installment plan"""

    __tablename__ = "debts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    total_amount = Column(Money, nullable=False)
    monthly_payment = Column(Money, nullable=False, default=0)
    remaining_installments = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=False)
    next_payment_date = Column(Date, nullable=False, index=True)
    category = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringRow(Base):
    """Recurring rule; next_run is its next materialized occurrence"""

    __tablename__ = "recurring_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False, default="expense")  # income | expense
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    frequency = Column(Text, nullable=False, default="monthly")
    next_run = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)


class TransactionRow(Base):
    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)  # income | expense
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SavingsGoalRow(Base):
    __tablename__ = "savings_goals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=True)
    current_amount = Column(Money, nullable=False, default=0)
    target_amount = Column(Money, nullable=False)


class BudgetRow(Base):
    __tablename__ = "budgets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    category = Column(Text, nullable=False)
    month = Column(Text, nullable=False)  # YYYY-MM
    limit_amount = Column(Money, nullable=False)
    alert_threshold = Column(Numeric(5, 2), nullable=False, default=80)


class AuditEventRow(Base):
    """Before/after snapshot of every change made by a payment confirmation"""

    __tablename__ = "audit_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Text, nullable=False, index=True)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=False)
    action = Column(Text, nullable=False)  # create | update
    before_data = Column(JSON, nullable=True)
    after_data = Column(JSON, nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
