"""GET /v1/insight - financial profile, cash flow and weekly actions"""

import time
from datetime import date
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finflow_gateway.api.v1.schemas import BudgetAlertSchema, CashFlowSchema, InsightResponse, WeeklyActionSchema
from finflow_gateway.api.dependencies import get_request_id, get_space_id, get_today
from finflow_gateway.infrastructure.database.session import get_db
from finflow_gateway.infrastructure.observability.logging import log_insight
from finflow_gateway.infrastructure.observability.metrics import record_insight
from finflow_gateway.services.advisory import AdvisoryService

router = APIRouter()


@router.get("/insight", response_model=InsightResponse)
def get_insight(
    request: Request,
    space_id: str = Depends(get_space_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    start_time = time.time()
    insight = AdvisoryService(db).get_insight(space_id, today)
    summary = insight.summary

    duration_ms = (time.time() - start_time) * 1000
    record_insight(insight.profile.value, len(insight.weekly_actions))
    log_insight(
        get_request_id(request),
        space_id,
        insight.profile.value,
        insight.risk_level.value,
        len(insight.weekly_actions),
        duration_ms,
    )

    return InsightResponse(
        profile=insight.profile.value,
        risk_level=insight.risk_level.value,
        capital_available=insight.capital_available,
        weekly_actions=[
            WeeklyActionSchema(
                id=action.id,
                title=action.title,
                description=action.description,
                type=action.kind.value,
                priority=action.priority,
                is_completed=action.is_completed,
                source_kind=action.source_kind.value if action.source_kind else None,
                source_id=action.source_id,
            )
            for action in insight.weekly_actions
        ],
        monthly_outlook=insight.monthly_outlook,
        savings_rate=insight.savings_rate,
        has_emergency_fund=insight.has_emergency_fund,
        summary=CashFlowSchema(
            income=summary.income,
            expenses=summary.expenses,
            monthly_debt_payments=summary.monthly_debt_payments,
            open_obligations_total=summary.open_obligations_total,
            capital_available=summary.capital_available,
        ),
        reminders=insight.reminders,
        budget_alerts=[
            BudgetAlertSchema(
                category=usage.category,
                spent=usage.spent,
                limit_amount=usage.limit_amount,
                usage=usage.usage,
                alert_threshold=usage.alert_threshold,
            )
            for usage in insight.budget_alerts
        ],
        errors=insight.source_errors,
    )
