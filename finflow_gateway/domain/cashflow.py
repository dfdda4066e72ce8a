"""Cash-flow summary for the active accounting period"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from finflow_gateway.utils.date_utils import month_key
from finflow_gateway.domain.models import (
    Budget,
    BudgetUsage,
    CashFlowSummary,
    Debt,
    FlowType,
    Obligation,
    ObligationStatus,
    SavingsGoal,
    Transaction,
)

ZERO = Decimal("0")
EMERGENCY_CATEGORY = "emergency"


def summarize_cash_flow(
    transactions: Iterable[Transaction],
    obligations: Iterable[Obligation],
    debts: Iterable[Debt],
) -> CashFlowSummary:
    """
    Compute income, expenses and committed payments.

    capital_available = income - (expenses + open obligations + monthly debt payments)

    All sums are exact Decimal additions; nothing is rounded.
    """
    transactions = list(transactions)
    income = sum((t.amount for t in transactions if t.type == FlowType.INCOME), ZERO)
    expenses = sum((t.amount for t in transactions if t.type == FlowType.EXPENSE), ZERO)
    open_obligations = sum((o.amount for o in obligations if o.status != ObligationStatus.PAID), ZERO)
    debt_payments = sum((d.monthly_payment for d in debts if d.is_active), ZERO)

    return CashFlowSummary(
        income=income,
        expenses=expenses,
        monthly_debt_payments=debt_payments,
        open_obligations_total=open_obligations,
        capital_available=income - (expenses + open_obligations + debt_payments),
    )


def savings_rate(summary: CashFlowSummary) -> Decimal:
    """(income - expenses) / income, or 0 when there is no income"""
    if summary.income <= 0:
        return ZERO
    return (summary.income - summary.expenses) / summary.income


def has_emergency_fund(goals: Iterable[SavingsGoal], ratio: Decimal = Decimal("0.5")) -> bool:
    """True when an emergency goal is funded above ratio of its target"""
    return any(
        (goal.category or "").lower() == EMERGENCY_CATEGORY and goal.current_amount > goal.target_amount * ratio
        for goal in goals
    )


def budget_usage(budgets: Iterable[Budget], transactions: Iterable[Transaction], month: str) -> List[BudgetUsage]:
    """
    Spending per budget category for month ("YYYY-MM").

    Categories match case-insensitively; expenses without a category count as "otros".
    """
    spent_by_category: Dict[str, Decimal] = {}
    for txn in transactions:
        if txn.type != FlowType.EXPENSE or month_key(txn.date) != month:
            continue
        key = (txn.category or "otros").lower()
        spent_by_category[key] = spent_by_category.get(key, ZERO) + txn.amount

    usages = []
    for budget in budgets:
        if budget.month != month:
            continue
        spent = spent_by_category.get((budget.category or "otros").lower(), ZERO)
        usage = (spent / budget.limit_amount * 100) if budget.limit_amount > 0 else ZERO
        usage = usage.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        threshold = budget.alert_threshold if budget.alert_threshold > 0 else Decimal("80")
        usages.append(
            BudgetUsage(
                category=budget.category,
                spent=spent,
                limit_amount=budget.limit_amount,
                usage=usage,
                alert_threshold=threshold,
                is_alert=usage >= threshold,
            )
        )
    return usages
