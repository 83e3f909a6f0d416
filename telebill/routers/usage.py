from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from telebill.core.database import get_db
from telebill.core.exceptions import AccountNotFoundError
from telebill.models.usage_event import UsageEvent
from telebill.schemas.usage import (
    DailyUsage,
    UsageEventCreate,
    UsageEventResponse,
    UsageStatistics,
)
from telebill.services.usage_tracking import UsageTrackingService

router = APIRouter()


@router.post("/", response_model=UsageEventResponse, status_code=201)
async def track_usage(
    data: UsageEventCreate,
    db: Session = Depends(get_db),
) -> UsageEvent:
    """Price and record a usage event."""
    service = UsageTrackingService(db)
    try:
        return service.track_usage(data)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.get("/statistics", response_model=UsageStatistics)
async def get_usage_statistics(
    billing_account_id: UUID,
    start: datetime,
    end: datetime,
    number_id: str | None = None,
    db: Session = Depends(get_db),
) -> UsageStatistics:
    """Usage totals for a period, broken down by event type."""
    return UsageTrackingService(db).get_usage_statistics(billing_account_id, start, end, number_id)


@router.get("/daily", response_model=list[DailyUsage])
async def get_daily_usage(
    billing_account_id: UUID,
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
) -> list[DailyUsage]:
    """Usage totals per calendar day."""
    return UsageTrackingService(db).get_daily_usage_aggregation(billing_account_id, start, end)


@router.get("/numbers/{number_id}", response_model=list[UsageEventResponse])
async def get_usage_by_number(
    number_id: str,
    response: Response,
    start: datetime | None = None,
    end: datetime | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[UsageEvent]:
    """Usage events for one phone number, newest first."""
    events, total = UsageTrackingService(db).get_usage_by_number(
        number_id, start, end, limit=limit, offset=skip
    )
    response.headers["X-Total-Count"] = str(total)
    return events
