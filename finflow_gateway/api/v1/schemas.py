"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Optional


class CalendarRange(BaseModel):
    """Inclusive date window of the calendar"""

    from_: date = Field(..., alias="from")
    to: date
    days: int

    model_config = {"populate_by_name": True}


class CalendarItem(BaseModel):
    """Single money fact on the calendar"""

    kind: str  # obligation | debt | recurring
    id: str
    title: str
    amount: Decimal
    due_date: date
    category: Optional[str] = None
    status: Optional[str] = None
    minimum_payment: Optional[Decimal] = None
    remaining_installments: Optional[int] = None
    type: Optional[str] = None  # recurring only: income | expense


class CalendarGroup(BaseModel):
    date: date
    items: List[CalendarItem]


class CalendarResponse(BaseModel):
    """Response for GET /v1/calendar"""

    range: CalendarRange
    groups: List[CalendarGroup]
    errors: Dict[str, str] = {}
    partial: bool = False
    issues: List[str] = []


class CashFlowSchema(BaseModel):
    income: Decimal
    expenses: Decimal
    monthly_debt_payments: Decimal
    open_obligations_total: Decimal
    capital_available: Decimal


class WeeklyActionSchema(BaseModel):
    id: str
    title: str
    description: str
    type: str  # payment | saving | review | investment
    priority: int
    is_completed: bool = False
    source_kind: Optional[str] = None
    source_id: Optional[str] = None


class BudgetAlertSchema(BaseModel):
    category: str
    spent: Decimal
    limit_amount: Decimal
    usage: Decimal
    alert_threshold: Decimal


class InsightResponse(BaseModel):
    """Response for GET /v1/insight"""

    profile: str
    risk_level: str
    capital_available: Decimal
    weekly_actions: List[WeeklyActionSchema]
    monthly_outlook: str
    savings_rate: Decimal
    has_emergency_fund: bool
    summary: CashFlowSchema
    reminders: List[str] = []
    budget_alerts: List[BudgetAlertSchema] = []
    errors: Dict[str, str] = {}


class ConfirmPaymentRequest(BaseModel):
    """Request body for POST /v1/{obligations|debts}/{id}/confirm-payment

    Amount sign is checked by the domain so it can answer with its own error.
    """

    payment_amount: Decimal = Field(..., description="Amount paid")
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    description: Optional[str] = Field(None, max_length=500)


class TransactionSchema(BaseModel):
    id: Optional[str] = None
    type: str
    amount: Decimal
    date: date
    description: str
    category: Optional[str] = None


class PaymentResponse(BaseModel):
    """Response for a confirmed payment"""

    kind: str
    target_id: str
    transaction: TransactionSchema
    status: Optional[str] = None
    remaining_installments: Optional[int] = None
    total_amount: Optional[Decimal] = None
    next_payment_date: Optional[date] = None
    matched_obligation_id: Optional[str] = None
