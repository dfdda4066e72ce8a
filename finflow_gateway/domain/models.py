"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class SourceKind(str, Enum):
    OBLIGATION = "obligation"
    DEBT = "debt"
    RECURRING = "recurring"


class ObligationStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class FlowType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class ActionKind(str, Enum):
    PAYMENT = "payment"
    SAVING = "saving"
    REVIEW = "review"
    INVESTMENT = "investment"


class FinancialProfile(str, Enum):
    DEFENSIVE = "defensive"
    BALANCED = "balanced"
    ACCELERATED = "accelerated"
    UNKNOWN = "unknown"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Provider records


@dataclass
class Obligation:
    """Standalone bill or invoice"""

    id: str
    title: str
    amount: Decimal
    due_date: date
    status: ObligationStatus = ObligationStatus.PENDING
    category: Optional[str] = None
    minimum_payment: Optional[Decimal] = None


@dataclass
class Debt:
    """Installment plan (credit card purchase in cuotas, loan, ...)"""

    id: str
    name: str
    total_amount: Decimal
    monthly_payment: Decimal
    remaining_installments: int
    total_installments: int
    next_payment_date: date
    category: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.remaining_installments > 0


@dataclass
class RecurringInstance:
    """Upcoming, already materialized occurrence of a recurring rule"""

    id: str
    title: str
    amount: Decimal
    due_date: date
    type: FlowType = FlowType.EXPENSE
    frequency: str = "monthly"
    category: Optional[str] = None


@dataclass
class Transaction:
    """Income or expense movement in the accounting period"""

    type: FlowType
    amount: Decimal
    date: date
    id: Optional[str] = None
    description: str = ""
    category: Optional[str] = None


@dataclass
class SavingsGoal:
    category: str
    current_amount: Decimal
    target_amount: Decimal
    name: str = ""


@dataclass
class Budget:
    """Monthly spending limit for a category"""

    category: str
    month: str  # "YYYY-MM"
    limit_amount: Decimal
    alert_threshold: Decimal = Decimal("80")


# Normalized view


@dataclass
class MoneyFact:
    """Kind-tagged record every due-date-bearing source is normalized into"""

    source_kind: SourceKind
    id: str
    title: str
    amount: Decimal
    due_date: date
    category: Optional[str] = None
    status: Optional[ObligationStatus] = None
    minimum_payment: Optional[Decimal] = None
    remaining_units: Optional[int] = None
    flow_type: Optional[FlowType] = None


@dataclass
class SourceResult:
    """Outcome of one provider read: either records or an error message"""

    kind: SourceKind
    records: List = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TimelineGroup:
    date: date
    facts: List[MoneyFact]


@dataclass
class Timeline:
    """Money facts inside [start, end], grouped by due date ascending"""

    start: date
    end: date
    groups: List[TimelineGroup]
    errors: Dict[SourceKind, str] = field(default_factory=dict)
    issues: List[str] = field(default_factory=list)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    @property
    def partial(self) -> bool:
        return bool(self.errors)

    @property
    def facts(self) -> List[MoneyFact]:
        return [fact for group in self.groups for fact in group.facts]


# Advisory outputs


@dataclass
class CashFlowSummary:
    income: Decimal
    expenses: Decimal
    monthly_debt_payments: Decimal
    open_obligations_total: Decimal
    capital_available: Decimal


@dataclass
class BudgetUsage:
    category: str
    spent: Decimal
    limit_amount: Decimal
    usage: Decimal  # percent, one decimal place
    alert_threshold: Decimal
    is_alert: bool


@dataclass
class RiskAssessment:
    profile: FinancialProfile
    risk_level: RiskLevel
    outlook: str


@dataclass
class WeeklyAction:
    id: str
    title: str
    description: str
    kind: ActionKind
    priority: int  # 1 (highest) to 3 (lowest)
    is_completed: bool = False
    source_kind: Optional[SourceKind] = None
    source_id: Optional[str] = None


@dataclass
class FinancialInsight:
    profile: FinancialProfile
    risk_level: RiskLevel
    capital_available: Decimal
    weekly_actions: List[WeeklyAction]
    monthly_outlook: str
    summary: Optional[CashFlowSummary] = None
    savings_rate: Decimal = Decimal("0")
    has_emergency_fund: bool = False
    reminders: List[str] = field(default_factory=list)
    budget_alerts: List[BudgetUsage] = field(default_factory=list)
    source_errors: Dict[str, str] = field(default_factory=dict)


# Payment confirmation


@dataclass
class ObligationPayment:
    """State change produced by paying an obligation"""

    status: ObligationStatus
    transaction: Transaction


@dataclass
class DebtPayment:
    """State change produced by paying one installment of a debt"""

    total_amount: Decimal
    remaining_installments: int
    next_payment_date: date
    transaction: Transaction


@dataclass
class PaymentReceipt:
    kind: SourceKind
    target_id: str
    transaction: Transaction
    status: Optional[ObligationStatus] = None
    remaining_installments: Optional[int] = None
    total_amount: Optional[Decimal] = None
    next_payment_date: Optional[date] = None
    matched_obligation_id: Optional[str] = None
