"""Stopwatch endpoints.

Each identity has one stopwatch held by the server. Clients poll
``GET /stopwatch`` for the elapsed time; it is recomputed from the start
on every request.
"""

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from daywatch.api.dependencies import get_tracker
from daywatch.api.endpoints.records import ERROR_RESPONSES, synced_record
from daywatch.api.models import RecordResponse, StopResponse, StopwatchResponse
from daywatch.core.session import Outcome
from daywatch.core.tracker import TimeTracker

router = APIRouter()


@router.get("/", response_model=StopwatchResponse)
async def get_stopwatch(
    tracker: TimeTracker = Depends(get_tracker),
) -> StopwatchResponse:
    """State and elapsed time of the caller's stopwatch.

    Example:
        >>> GET /api/v1/stopwatch/
        {
            "state": "running",
            "started_at": 1731750000000,
            "elapsed": 75,
            "elapsed_text": "00:01:15"
        }
    """
    return StopwatchResponse.from_stopwatch(tracker.stopwatch)


@router.post("/start", response_model=StopwatchResponse)
async def start_stopwatch(
    tracker: TimeTracker = Depends(get_tracker),
) -> StopwatchResponse:
    """Start the stopwatch. Starting a running stopwatch keeps its start."""
    tracker.start()
    return StopwatchResponse.from_stopwatch(tracker.stopwatch)


@router.post("/stop", response_model=StopResponse, responses=ERROR_RESPONSES)
def stop_stopwatch(
    tracker: TimeTracker = Depends(get_tracker),
) -> StopResponse:
    """Stop the stopwatch and record the run.

    Stopping an idle stopwatch records nothing and returns no record.
    """
    result = tracker.stop()

    record = None
    if result.outcome != Outcome.SKIPPED or result.record is not None:
        record = RecordResponse.from_record(synced_record(result), tracker.session.tz)

    return StopResponse(
        stopwatch=StopwatchResponse.from_stopwatch(tracker.stopwatch),
        record=record,
    )
