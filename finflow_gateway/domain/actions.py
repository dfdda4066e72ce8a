"""Weekly action generation - urgent payments first, then profile-driven advice"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Set

from finflow_gateway.domain.models import (
    ActionKind,
    CashFlowSummary,
    FinancialProfile,
    MoneyFact,
    ObligationStatus,
    SourceKind,
    WeeklyAction,
)
from finflow_gateway.utils.date_utils import days_until
from finflow_gateway.utils.text_utils import format_money, normalize_title

ACTION_HORIZON_DAYS = 5
MAX_ACTIONS = 5
EMERGENCY_CONTRIBUTION_RATE = Decimal("0.10")


class ActionSet:
    """Ordered set of actions keyed by id; a repeated id keeps the more urgent entry"""

    def __init__(self) -> None:
        self._by_id: Dict[str, WeeklyAction] = {}

    def upsert(self, action: WeeklyAction) -> None:
        current = self._by_id.get(action.id)
        if current is None or action.priority < current.priority:
            self._by_id[action.id] = action

    def ranked(self, limit: int) -> List[WeeklyAction]:
        # sorted() is stable, so generation order breaks ties
        return sorted(self._by_id.values(), key=lambda a: a.priority)[:limit]


def payment_action_id(fact: MoneyFact) -> str:
    return f"pay-{fact.source_kind.value}-{fact.id}"


def _urgent_action(fact: MoneyFact, days: int) -> WeeklyAction:
    is_overdue = fact.status == ObligationStatus.OVERDUE or days < 0
    label = "Vencida" if is_overdue else "Vence pronto"
    if fact.source_kind == SourceKind.DEBT:
        title = f"Confirmar pago: {fact.title}"
    else:
        title = f"Pagar {fact.title}"

    return WeeklyAction(
        id=payment_action_id(fact),
        title=title,
        description=f"{label} ({days:+d} días): vence el {fact.due_date.isoformat()}, monto {format_money(fact.amount)}",
        kind=ActionKind.PAYMENT,
        priority=1,
        source_kind=fact.source_kind,
        source_id=fact.id,
    )


def urgent_payment_actions(
    facts: Iterable[MoneyFact],
    today: date,
    horizon_days: int = ACTION_HORIZON_DAYS,
) -> List[WeeklyAction]:
    """
    Priority-1 payment actions for obligations and debts due within horizon_days.

    Obligations are handled before debts. A debt whose normalized title matches
    an obligation that already produced an action is skipped: the same card
    statement is often entered both ways and the obligation carries the
    authoritative status.
    """
    facts = list(facts)
    actions: List[WeeklyAction] = []
    obligation_titles: Set[str] = set()

    for fact in facts:
        if fact.source_kind != SourceKind.OBLIGATION or fact.status == ObligationStatus.PAID:
            continue
        days = days_until(fact.due_date, today)
        if days > horizon_days:
            continue
        actions.append(_urgent_action(fact, days))
        obligation_titles.add(normalize_title(fact.title))

    for fact in facts:
        if fact.source_kind != SourceKind.DEBT:
            continue
        days = days_until(fact.due_date, today)
        if days > horizon_days:
            continue
        if normalize_title(fact.title) in obligation_titles:
            continue
        actions.append(_urgent_action(fact, days))

    return actions


def profile_actions(
    profile: FinancialProfile,
    summary: CashFlowSummary,
    has_emergency_fund: bool,
    contribution_rate: Decimal = EMERGENCY_CONTRIBUTION_RATE,
) -> List[WeeklyAction]:
    """Generic advice for the classified profile"""
    if profile == FinancialProfile.DEFENSIVE:
        return [
            WeeklyAction(
                id="review-recurring",
                title="Revisar Gastos Recurrentes",
                description="Tienes gastos recurrentes que podrías pausar para recuperar liquidez.",
                kind=ActionKind.REVIEW,
                priority=1,
            ),
            WeeklyAction(
                id="min-payment",
                title="Priorizar Pagos Mínimos",
                description="Si no cubres el total, asegura al menos el pago mínimo de tarjetas.",
                kind=ActionKind.PAYMENT,
                priority=2,
            ),
        ]

    if profile == FinancialProfile.BALANCED:
        actions = []
        if summary.income > 0 and not has_emergency_fund:
            contribution = summary.income * contribution_rate
            actions.append(
                WeeklyAction(
                    id="fund-emergency",
                    title="Aportar a Emergencia",
                    description=(
                        f"Separa el {contribution_rate * 100:.0f}% de tus ingresos "
                        f"({format_money(contribution)}) para imprevistos."
                    ),
                    kind=ActionKind.SAVING,
                    priority=2,
                )
            )
        actions.append(
            WeeklyAction(
                id="pay-full",
                title="Pagar Total Tarjeta",
                description="Tienes capacidad para cubrir el total y evitar intereses.",
                kind=ActionKind.PAYMENT,
                priority=1,
            )
        )
        return actions

    if profile == FinancialProfile.ACCELERATED:
        return [
            WeeklyAction(
                id="invest-surplus",
                title="Invertir Excedente",
                description=(
                    f"Tienes un superávit de {format_money(summary.capital_available)}. "
                    "Considera moverlo a una cuenta remunerada."
                ),
                kind=ActionKind.INVESTMENT,
                priority=1,
            ),
            WeeklyAction(
                id="boost-goal",
                title="Acelerar Meta",
                description="¿Por qué no adelantas una cuota de tu meta principal?",
                kind=ActionKind.SAVING,
                priority=2,
            ),
        ]

    return []


def generate_weekly_actions(
    profile: FinancialProfile,
    summary: CashFlowSummary,
    has_emergency_fund: bool,
    facts: Iterable[MoneyFact],
    today: date,
    horizon_days: int = ACTION_HORIZON_DAYS,
    limit: int = MAX_ACTIONS,
    contribution_rate: Decimal = EMERGENCY_CONTRIBUTION_RATE,
) -> List[WeeklyAction]:
    """
    Build the ranked weekly plan.

    Urgent due-date actions come first, profile advice is appended, and the
    combined list is sorted by priority and cut to limit, so every priority-1
    action precedes any priority-2/3 action.
    """
    action_set = ActionSet()
    for action in urgent_payment_actions(facts, today, horizon_days):
        action_set.upsert(action)
    for action in profile_actions(profile, summary, has_emergency_fund, contribution_rate):
        action_set.upsert(action)
    return action_set.ranked(limit)
