"""Financial insight assembly - main entry point of the read-side pipeline"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from finflow_gateway.domain.actions import (
    ACTION_HORIZON_DAYS,
    EMERGENCY_CONTRIBUTION_RATE,
    MAX_ACTIONS,
    generate_weekly_actions,
)
from finflow_gateway.domain.cashflow import budget_usage, has_emergency_fund, savings_rate, summarize_cash_flow
from finflow_gateway.domain.models import (
    Budget,
    BudgetUsage,
    Debt,
    FinancialInsight,
    FlowType,
    MoneyFact,
    Obligation,
    SavingsGoal,
    SourceKind,
    Transaction,
)
from finflow_gateway.domain.risk import ACCELERATED_SAVINGS_RATE, classify_risk, unknown_assessment
from finflow_gateway.utils.date_utils import days_until, month_key
from finflow_gateway.utils.text_utils import format_money

REMINDER_HORIZON_DAYS = 7
MAX_REMINDERS = 12


def build_reminders(
    facts: Iterable[MoneyFact],
    usages: Iterable[BudgetUsage],
    today: date,
    horizon_days: int = REMINDER_HORIZON_DAYS,
    limit: int = MAX_REMINDERS,
) -> List[str]:
    """
    Short notices for the assistant and notification center.

    Order: obligations (overdue, then due within horizon), debt installments,
    budgets over their alert threshold, recurring charges.
    """
    facts = sorted(facts, key=lambda f: f.due_date)
    reminders: List[str] = []

    for fact in facts:
        if fact.source_kind != SourceKind.OBLIGATION:
            continue
        days = days_until(fact.due_date, today)
        if days < 0:
            reminders.append(f"{fact.title} está vencida por {abs(days)} día(s) ({format_money(fact.amount)}).")
        elif days <= horizon_days:
            reminders.append(f"{fact.title} vence en {days} día(s) ({format_money(fact.amount)}).")

    for fact in facts:
        if fact.source_kind != SourceKind.DEBT:
            continue
        days = days_until(fact.due_date, today)
        if days < 0:
            reminders.append(f"Cuota de {fact.title} vencida por {abs(days)} día(s) ({format_money(fact.amount)}).")
        elif days <= horizon_days:
            reminders.append(f"Pago de {fact.title} en {days} día(s), cuota {format_money(fact.amount)}.")

    for usage in usages:
        if usage.is_alert:
            reminders.append(
                f"Presupuesto {usage.category} al {usage.usage}% "
                f"({format_money(usage.spent)} de {format_money(usage.limit_amount)})."
            )

    for fact in facts:
        if fact.source_kind != SourceKind.RECURRING:
            continue
        days = days_until(fact.due_date, today)
        if 0 <= days <= horizon_days:
            verb = "ingresa" if fact.flow_type == FlowType.INCOME else "se cobra"
            reminders.append(f"{fact.title} {verb} en {days} día(s) por {format_money(fact.amount)}.")

    return reminders[:limit]


def build_insight(
    transactions: Optional[List[Transaction]],
    obligations: List[Obligation],
    debts: List[Debt],
    goals: List[SavingsGoal],
    due: List[MoneyFact],
    today: date,
    budgets: Iterable[Budget] = (),
    upcoming_recurring: Iterable[MoneyFact] = (),
    source_errors: Optional[Dict[str, str]] = None,
    horizon_days: int = ACTION_HORIZON_DAYS,
    max_actions: int = MAX_ACTIONS,
    accelerated_rate: Decimal = ACCELERATED_SAVINGS_RATE,
    emergency_ratio: Decimal = Decimal("0.5"),
    contribution_rate: Decimal = EMERGENCY_CONTRIBUTION_RATE,
    reminder_horizon_days: int = REMINDER_HORIZON_DAYS,
    max_reminders: int = MAX_REMINDERS,
) -> FinancialInsight:
    """
    Combine cash flow, risk profile and weekly actions.

    transactions=None means the transaction source failed: the profile is
    reported as unknown and only due-date actions are produced.
    """
    emergency = has_emergency_fund(goals, emergency_ratio)

    if transactions is None:
        summary = summarize_cash_flow([], obligations, debts)
        assessment = unknown_assessment()
        rate = Decimal("0")
        usages: List[BudgetUsage] = []
    else:
        summary = summarize_cash_flow(transactions, obligations, debts)
        assessment = classify_risk(summary, emergency, accelerated_rate)
        rate = savings_rate(summary)
        usages = budget_usage(budgets, transactions, month_key(today))

    actions = generate_weekly_actions(
        assessment.profile,
        summary,
        emergency,
        due,
        today,
        horizon_days=horizon_days,
        limit=max_actions,
        contribution_rate=contribution_rate,
    )

    return FinancialInsight(
        profile=assessment.profile,
        risk_level=assessment.risk_level,
        capital_available=summary.capital_available,
        weekly_actions=actions,
        monthly_outlook=assessment.outlook,
        summary=summary,
        savings_rate=rate,
        has_emergency_fund=emergency,
        reminders=build_reminders(
            list(due) + list(upcoming_recurring),
            usages,
            today,
            horizon_days=reminder_horizon_days,
            limit=max_reminders,
        ),
        budget_alerts=[usage for usage in usages if usage.is_alert],
        source_errors=dict(source_errors or {}),
    )
