"""Daily totals endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status  # type: ignore[import-untyped]

from daywatch.api.dependencies import get_session
from daywatch.api.endpoints.records import ERROR_RESPONSES
from daywatch.api.models import DashboardResponse
from daywatch.core.session import RecordSession, SyncStatus

router = APIRouter()


@router.get("/", response_model=DashboardResponse, responses=ERROR_RESPONSES)
def get_days(
    session: RecordSession = Depends(get_session),
) -> DashboardResponse:
    """Today's total and every day's total with its entries.

    Days are ordered most recent first; today's total is reported on its
    own whether or not today has records.

    Example:
        >>> GET /api/v1/days/
        {
            "today": "2025-11-16",
            "today_total": 3720,
            "today_total_text": "01:02:00",
            "days": [{"date": "2025-11-16", "total": 3720, ...}, ...]
        }
    """
    session.load()
    if session.status == SyncStatus.STALE:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.last_error)

    buckets = session.buckets
    return DashboardResponse.from_buckets(buckets, buckets.today_key(), session.tz)
