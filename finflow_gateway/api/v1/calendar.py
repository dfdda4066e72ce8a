"""GET /v1/calendar - merged timeline of obligations, debts and recurring charges"""

import time
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from finflow_gateway.api.v1.schemas import CalendarGroup, CalendarItem, CalendarRange, CalendarResponse
from finflow_gateway.api.dependencies import get_request_id, get_space_id, get_today
from finflow_gateway.infrastructure.database.session import get_db
from finflow_gateway.infrastructure.observability.logging import log_calendar
from finflow_gateway.domain.models import MoneyFact, SourceKind
from finflow_gateway.services.advisory import AdvisoryService

router = APIRouter()


def to_item(fact: MoneyFact) -> CalendarItem:
    return CalendarItem(
        kind=fact.source_kind.value,
        id=fact.id,
        title=fact.title,
        amount=fact.amount,
        due_date=fact.due_date,
        category=fact.category,
        status=fact.status.value if fact.status else None,
        minimum_payment=fact.minimum_payment,
        remaining_installments=fact.remaining_units,
        type=fact.flow_type.value if fact.flow_type else None,
    )


@router.get("/calendar", response_model=CalendarResponse)
def get_calendar(
    request: Request,
    days: Optional[int] = Query(None, description="Days ahead of today (clamped to 1..120, default 45)"),
    space_id: str = Depends(get_space_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Aggregate the upcoming money facts of the active space.

    A failing source does not fail the request: its error is listed under
    `errors` and `partial` is true.
    """
    start_time = time.time()
    timeline = AdvisoryService(db).aggregate(space_id, days, today)

    groups = [
        CalendarGroup(date=group.date, items=[to_item(fact) for fact in group.facts])
        for group in timeline.groups
    ]
    facts = timeline.facts
    counts = {kind.value: sum(1 for f in facts if f.source_kind == kind) for kind in SourceKind}

    log_calendar(
        get_request_id(request),
        space_id,
        counts,
        len(facts),
        timeline.partial,
        (time.time() - start_time) * 1000,
    )

    return CalendarResponse(
        range=CalendarRange(from_=timeline.start, to=timeline.end, days=timeline.days),
        groups=groups,
        errors={kind.value: message for kind, message in timeline.errors.items()},
        partial=timeline.partial,
        issues=timeline.issues,
    )
