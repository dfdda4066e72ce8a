"""Unit tests for cash-flow summary, emergency fund and budget usage"""

from datetime import date
from decimal import Decimal
from finflow_gateway.domain.cashflow import budget_usage, has_emergency_fund, savings_rate, summarize_cash_flow
from finflow_gateway.domain.models import (
    Budget,
    Debt,
    FlowType,
    Obligation,
    ObligationStatus,
    SavingsGoal,
    Transaction,
)

TODAY = date(2025, 3, 8)


def _txn(type, amount, category=None, on=TODAY):
    return Transaction(type=type, amount=Decimal(amount), date=on, category=category)


def _obligation(amount, status=ObligationStatus.PENDING):
    return Obligation(id="o", title="Luz", amount=Decimal(amount), due_date=TODAY, status=status)


def _debt(monthly, remaining=3):
    return Debt(
        id="d",
        name="Cuotas",
        total_amount=Decimal(monthly) * max(remaining, 1),
        monthly_payment=Decimal(monthly),
        remaining_installments=remaining,
        total_installments=12,
        next_payment_date=TODAY,
    )


def test_summarize_cash_flow_totals():
    summary = summarize_cash_flow(
        transactions=[
            _txn(FlowType.INCOME, "300000"),
            _txn(FlowType.INCOME, "50000"),
            _txn(FlowType.EXPENSE, "120000"),
        ],
        obligations=[_obligation("45000"), _obligation("20000", ObligationStatus.OVERDUE)],
        debts=[_debt("30000")],
    )

    assert summary.income == Decimal("350000")
    assert summary.expenses == Decimal("120000")
    assert summary.open_obligations_total == Decimal("65000")
    assert summary.monthly_debt_payments == Decimal("30000")
    assert summary.capital_available == Decimal("135000")


def test_paid_obligations_and_settled_debts_are_not_committed():
    summary = summarize_cash_flow(
        transactions=[],
        obligations=[_obligation("45000", ObligationStatus.PAID)],
        debts=[_debt("30000", remaining=0)],
    )

    assert summary.open_obligations_total == Decimal("0")
    assert summary.monthly_debt_payments == Decimal("0")
    assert summary.capital_available == Decimal("0")


def test_capital_available_has_no_rounding_drift():
    """0.1 + 0.2 style amounts stay exact"""
    summary = summarize_cash_flow(
        transactions=[_txn(FlowType.INCOME, "0.30"), _txn(FlowType.EXPENSE, "0.10")],
        obligations=[_obligation("0.10")],
        debts=[_debt("0.10")],
    )

    assert summary.capital_available == Decimal("0.00")
    assert summary.capital_available == summary.income - (
        summary.expenses + summary.open_obligations_total + summary.monthly_debt_payments
    )


def test_savings_rate_with_zero_income_is_zero():
    summary = summarize_cash_flow([_txn(FlowType.EXPENSE, "1000")], [], [])
    assert savings_rate(summary) == Decimal("0")


def test_savings_rate_scenario():
    summary = summarize_cash_flow(
        [_txn(FlowType.INCOME, "300000"), _txn(FlowType.EXPENSE, "280000")], [], []
    )
    rate = savings_rate(summary)
    assert Decimal("0.066") < rate < Decimal("0.067")


def test_has_emergency_fund_requires_more_than_half_of_target():
    assert has_emergency_fund([SavingsGoal("emergency", Decimal("600"), Decimal("1000"))])
    assert not has_emergency_fund([SavingsGoal("emergency", Decimal("500"), Decimal("1000"))])
    assert not has_emergency_fund([SavingsGoal("travel", Decimal("900"), Decimal("1000"))])
    assert not has_emergency_fund([])


def test_budget_usage_flags_categories_over_threshold():
    transactions = [
        _txn(FlowType.EXPENSE, "85000", category="Supermercado"),
        _txn(FlowType.EXPENSE, "10000", category="transporte"),
        _txn(FlowType.EXPENSE, "99999", category="supermercado", on=date(2025, 2, 20)),  # other month
        _txn(FlowType.INCOME, "500000", category="supermercado"),
    ]
    budgets = [
        Budget("supermercado", "2025-03", Decimal("100000")),
        Budget("Transporte", "2025-03", Decimal("50000"), alert_threshold=Decimal("90")),
    ]

    usages = {usage.category: usage for usage in budget_usage(budgets, transactions, "2025-03")}

    assert usages["supermercado"].spent == Decimal("85000")
    assert usages["supermercado"].usage == Decimal("85.0")
    assert usages["supermercado"].is_alert is True
    assert usages["Transporte"].usage == Decimal("20.0")
    assert usages["Transporte"].is_alert is False


def test_budget_with_zero_limit_never_divides():
    usages = budget_usage([Budget("ocio", "2025-03", Decimal("0"))], [_txn(FlowType.EXPENSE, "10", "ocio")], "2025-03")
    assert usages[0].usage == Decimal("0.0")
