"""Obligation aggregation - merges obligations, debts and recurring instances into one timeline"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from finflow_gateway.domain.exceptions import InconsistentStateError
from finflow_gateway.domain.models import (
    Debt,
    MoneyFact,
    Obligation,
    ObligationStatus,
    RecurringInstance,
    SourceKind,
    SourceResult,
    Timeline,
    TimelineGroup,
)

logger = logging.getLogger(__name__)

# Display order inside a single date
KIND_ORDER = {
    SourceKind.OBLIGATION: 0,
    SourceKind.DEBT: 1,
    SourceKind.RECURRING: 2,
}


def _non_negative(amount: Decimal, source: SourceKind, record_id: str, issues: List[str]) -> Decimal:
    if amount < 0:
        _report(InconsistentStateError(source.value, record_id, f"negative amount {amount} clamped to 0"), issues)
        return Decimal("0")
    return amount


def _report(error: InconsistentStateError, issues: List[str]) -> None:
    logger.warning(
        "Inconsistent record",
        extra={"source": error.source, "record_id": error.record_id, "detail": error.detail},
    )
    issues.append(str(error))


def _in_window(day: date, start: Optional[date], end: date) -> bool:
    if start is not None and day < start:
        return False
    return day <= end


def obligation_to_fact(obligation: Obligation, issues: List[str]) -> MoneyFact:
    return MoneyFact(
        source_kind=SourceKind.OBLIGATION,
        id=obligation.id,
        title=obligation.title or "Obligación",
        amount=_non_negative(obligation.amount, SourceKind.OBLIGATION, obligation.id, issues),
        due_date=obligation.due_date,
        category=obligation.category,
        status=obligation.status,
        minimum_payment=obligation.minimum_payment,
    )


def debt_to_fact(debt: Debt, issues: List[str]) -> MoneyFact:
    """
    Normalize an installment debt.

    The fact amount is the monthly installment; debts without one fall back to
    the outstanding total. Remaining installments above the plan total are
    clamped to the total.
    """
    remaining = debt.remaining_installments
    if remaining > debt.total_installments:
        _report(
            InconsistentStateError(
                SourceKind.DEBT.value,
                debt.id,
                f"remaining_installments {remaining} > total_installments {debt.total_installments}",
            ),
            issues,
        )
        remaining = debt.total_installments

    amount = debt.monthly_payment if debt.monthly_payment > 0 else debt.total_amount
    return MoneyFact(
        source_kind=SourceKind.DEBT,
        id=debt.id,
        title=debt.name or "Deuda",
        amount=_non_negative(amount, SourceKind.DEBT, debt.id, issues),
        due_date=debt.next_payment_date,
        category=debt.category,
        remaining_units=remaining,
    )


def recurring_to_fact(instance: RecurringInstance, issues: List[str]) -> MoneyFact:
    return MoneyFact(
        source_kind=SourceKind.RECURRING,
        id=instance.id,
        title=instance.title or "Recurrente",
        amount=_non_negative(instance.amount, SourceKind.RECURRING, instance.id, issues),
        due_date=instance.due_date,
        category=instance.category,
        flow_type=instance.type,
    )


def collect_facts(
    obligations: Iterable[Obligation],
    debts: Iterable[Debt],
    recurring: Iterable[RecurringInstance],
    start: Optional[date],
    end: date,
    issues: List[str],
) -> List[MoneyFact]:
    """
    Normalize the three sources and keep facts due in [start, end].

    start=None keeps everything due on or before end (overdue included).
    Paid obligations and debts without remaining installments are dropped.
    Kinds are never merged with each other, even when amount and date coincide.
    """
    facts: List[MoneyFact] = []

    for obligation in obligations:
        if obligation.status == ObligationStatus.PAID:
            continue
        if _in_window(obligation.due_date, start, end):
            facts.append(obligation_to_fact(obligation, issues))

    for debt in debts:
        if not debt.is_active:
            continue
        if _in_window(debt.next_payment_date, start, end):
            facts.append(debt_to_fact(debt, issues))

    for instance in recurring:
        if _in_window(instance.due_date, start, end):
            facts.append(recurring_to_fact(instance, issues))

    return facts


def group_by_date(facts: Iterable[MoneyFact]) -> List[TimelineGroup]:
    """Group facts under their exact due date, dates ascending, kinds in display order"""
    by_date: Dict[date, List[MoneyFact]] = defaultdict(list)
    for fact in facts:
        by_date[fact.due_date].append(fact)

    return [
        TimelineGroup(date=day, facts=sorted(by_date[day], key=lambda f: KIND_ORDER[f.source_kind]))
        for day in sorted(by_date)
    ]


def aggregate(
    obligations: SourceResult,
    debts: SourceResult,
    recurring: SourceResult,
    today: date,
    window_days: int,
) -> Timeline:
    """
    Merge the three provider results into a timeline for [today, today + window_days].

    A failed source contributes no facts and an entry in Timeline.errors; the
    remaining sources are aggregated normally.
    """
    end = today + timedelta(days=window_days)
    errors = {result.kind: result.error for result in (obligations, debts, recurring) if not result.ok}
    issues: List[str] = []

    facts = collect_facts(
        obligations.records if obligations.ok else [],
        debts.records if debts.ok else [],
        recurring.records if recurring.ok else [],
        start=today,
        end=end,
        issues=issues,
    )

    return Timeline(
        start=today,
        end=end,
        groups=group_by_date(facts),
        errors=errors,
        issues=issues,
    )


def due_facts(
    obligations: Iterable[Obligation],
    debts: Iterable[Debt],
    today: date,
    horizon_days: int,
    issues: Optional[List[str]] = None,
) -> List[MoneyFact]:
    """Open obligations and active debts due on or before today + horizon_days, sorted by due date"""
    facts = collect_facts(
        obligations,
        debts,
        [],
        start=None,
        end=today + timedelta(days=horizon_days),
        issues=issues if issues is not None else [],
    )
    return sorted(facts, key=lambda f: (f.due_date, KIND_ORDER[f.source_kind]))
