"""Risk classification - maps cash flow and savings state to a financial profile"""

from decimal import Decimal

from finflow_gateway.domain.cashflow import savings_rate
from finflow_gateway.domain.models import CashFlowSummary, FinancialProfile, RiskAssessment, RiskLevel

OUTLOOK_ALERT = "En Alerta"
OUTLOOK_GROWTH = "En Crecimiento"
OUTLOOK_BALANCED = "Equilibrado"
OUTLOOK_UNKNOWN = "Sin Datos"

ACCELERATED_SAVINGS_RATE = Decimal("0.20")


def classify_risk(
    summary: CashFlowSummary,
    has_emergency_fund: bool,
    accelerated_rate: Decimal = ACCELERATED_SAVINGS_RATE,
) -> RiskAssessment:
    """
    Decide the financial profile. First matching rule wins:

    - capital_available < 0                          -> defensive / high
    - savings_rate > 20% and emergency fund present  -> accelerated / low
    - otherwise                                      -> balanced / medium

    Negative capital dominates: a user with a healthy savings rate but
    committed payments above income is still defensive.
    """
    if summary.capital_available < 0:
        return RiskAssessment(FinancialProfile.DEFENSIVE, RiskLevel.HIGH, OUTLOOK_ALERT)
    if savings_rate(summary) > accelerated_rate and has_emergency_fund:
        return RiskAssessment(FinancialProfile.ACCELERATED, RiskLevel.LOW, OUTLOOK_GROWTH)
    return RiskAssessment(FinancialProfile.BALANCED, RiskLevel.MEDIUM, OUTLOOK_BALANCED)


def unknown_assessment() -> RiskAssessment:
    """Used when cash flow cannot be derived (transaction source unavailable)"""
    return RiskAssessment(FinancialProfile.UNKNOWN, RiskLevel.MEDIUM, OUTLOOK_UNKNOWN)
