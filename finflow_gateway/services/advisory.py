"""Read-side orchestration: fetch providers for a space, isolate failures, run the pure pipeline"""

import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finflow_gateway.config import settings
from finflow_gateway.domain.advisor import build_insight
from finflow_gateway.domain.aggregation import aggregate, collect_facts, due_facts
from finflow_gateway.domain.exceptions import ProviderUnavailableError
from finflow_gateway.domain.models import FinancialInsight, SourceKind, SourceResult, Timeline
from finflow_gateway.infrastructure.database.repositories import (
    BudgetRepository,
    DebtRepository,
    ObligationRepository,
    RecurringRepository,
    SavingsGoalRepository,
    TransactionRepository,
)
from finflow_gateway.infrastructure.observability.metrics import (
    inconsistent_records_counter,
    provider_failures_counter,
)
from finflow_gateway.utils.date_utils import clamp_days, month_bounds, month_key

T = TypeVar("T")


class AdvisoryService:
    """Calendar and insight for one space; every read is scoped by space_id"""

    def __init__(self, db: Session):
        self.db = db
        self.obligations = ObligationRepository(db)
        self.debts = DebtRepository(db)
        self.recurring = RecurringRepository(db)
        self.transactions = TransactionRepository(db)
        self.goals = SavingsGoalRepository(db)
        self.budgets = BudgetRepository(db)

    def _load(self, source: str, space_id: str, loader: Callable[[], List[T]]) -> Tuple[Optional[List[T]], Optional[str]]:
        """
        Run one provider read. A database error is reported for this source
        only; the session is rolled back so the remaining reads still work.
        """
        try:
            return loader(), None
        except SQLAlchemyError as e:
            self.db.rollback()
            error = ProviderUnavailableError(source, str(e.__class__.__name__))
            provider_failures_counter.labels(source=source).inc()
            logging.warning(str(error), extra={"space_id": space_id, "source": source})
            return None, str(error)

    def _source(self, kind: SourceKind, space_id: str, loader: Callable[[], list]) -> SourceResult:
        records, error = self._load(kind.value, space_id, loader)
        return SourceResult(kind=kind, records=records or [], error=error)

    def clamp_window(self, days: Optional[int]) -> int:
        if days is None:
            days = settings.calendar_default_days
        return clamp_days(days, settings.calendar_min_days, settings.calendar_max_days)

    def aggregate(self, space_id: str, window_days: Optional[int], today: date) -> Timeline:
        """Merged timeline of obligations, debts and recurring charges for [today, today + days]"""
        days = self.clamp_window(window_days)
        end = today + timedelta(days=days)

        timeline = aggregate(
            self._source(SourceKind.OBLIGATION, space_id, lambda: self.obligations.list_open(space_id, due_until=end)),
            self._source(SourceKind.DEBT, space_id, lambda: self.debts.list_active(space_id, due_until=end)),
            self._source(SourceKind.RECURRING, space_id, lambda: self.recurring.list_upcoming(space_id, until=end)),
            today=today,
            window_days=days,
        )
        if timeline.issues:
            inconsistent_records_counter.inc(len(timeline.issues))
        return timeline

    def get_insight(self, space_id: str, today: date) -> FinancialInsight:
        """Risk profile, cash flow and weekly actions for the current month"""
        period_start, period_end = month_bounds(today)
        reminder_end = today + timedelta(days=settings.reminder_horizon_days)
        errors: Dict[str, str] = {}

        def load(source: str, loader: Callable[[], list]) -> Optional[list]:
            records, error = self._load(source, space_id, loader)
            if error:
                errors[source] = error
            return records

        transactions = load("transactions", lambda: self.transactions.list_between(space_id, period_start, period_end))
        obligations = load(SourceKind.OBLIGATION.value, lambda: self.obligations.list_open(space_id)) or []
        debts = load(SourceKind.DEBT.value, lambda: self.debts.list_active(space_id)) or []
        recurring = load(SourceKind.RECURRING.value, lambda: self.recurring.list_upcoming(space_id, until=reminder_end)) or []
        goals = load("savings_goals", lambda: self.goals.list_goals(space_id)) or []
        budgets = load("budgets", lambda: self.budgets.list_for_month(space_id, month_key(today))) or []

        issues: List[str] = []
        horizon = max(settings.action_horizon_days, settings.reminder_horizon_days)
        due = due_facts(obligations, debts, today, horizon, issues)
        upcoming_recurring = collect_facts([], [], recurring, start=today, end=reminder_end, issues=issues)
        if issues:
            inconsistent_records_counter.inc(len(issues))

        return build_insight(
            transactions=transactions,
            obligations=obligations,
            debts=debts,
            goals=goals,
            due=due,
            today=today,
            budgets=budgets,
            upcoming_recurring=upcoming_recurring,
            source_errors=errors,
            horizon_days=settings.action_horizon_days,
            max_actions=settings.max_weekly_actions,
            accelerated_rate=settings.accelerated_savings_rate,
            emergency_ratio=settings.emergency_fund_ratio,
            contribution_rate=settings.emergency_contribution_rate,
            reminder_horizon_days=settings.reminder_horizon_days,
            max_reminders=settings.max_reminders,
        )
