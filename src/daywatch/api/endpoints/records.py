"""Record endpoints.

This module lists the caller's time records and provides manual entries,
duration edits and deletes. Every operation is scoped to the caller's
identity.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status  # type: ignore[import-untyped]

from daywatch.api.dependencies import get_session
from daywatch.api.models import (
    ErrorResponse,
    ManualEntryRequest,
    RecordResponse,
    UpdateDurationRequest,
)
from daywatch.core.formatting import local_today
from daywatch.core.models import RecordValidationError, TimeRecord
from daywatch.core.session import MutationResult, Outcome, RecordSession, SyncStatus

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Record not found"},
    502: {"model": ErrorResponse, "description": "Record store failure"},
}


def check_result(result: MutationResult, record_id: Optional[str] = None) -> None:
    """Translate a failed or skipped mutation into an HTTP error.

    Raises:
        HTTPException: 502 for store failures, 404 for unknown records,
            409 for anything else that was skipped
    """
    if result.outcome == Outcome.FAILED:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    if result.outcome == Outcome.SKIPPED:
        if record_id is not None and result.error and "not found" in result.error:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Record {record_id} not found",
            )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error)


def synced_record(result: MutationResult, record_id: Optional[str] = None) -> TimeRecord:
    """Record of a successful mutation, raising like check_result otherwise."""
    check_result(result, record_id)
    if result.record is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Record store returned no record",
        )
    return result.record


@router.get("/", response_model=list[RecordResponse], responses=ERROR_RESPONSES)
def list_records(
    session: RecordSession = Depends(get_session),
) -> list[RecordResponse]:
    """List the caller's records, most recent start first.

    Raises:
        HTTPException: 502 if the record store cannot be read

    Example:
        >>> GET /api/v1/records/
        [
            {
                "id": "3f1c...",
                "start": 1731750000000,
                "end": 1731753600000,
                "duration": 3600,
                "duration_text": "01:00:00",
                ...
            }
        ]
    """
    records = session.load()
    if session.status == SyncStatus.STALE:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.last_error)
    return [RecordResponse.from_record(r, session.tz) for r in records]


@router.post(
    "/manual",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def add_manual_entry(
    request: ManualEntryRequest,
    session: RecordSession = Depends(get_session),
) -> RecordResponse:
    """Add a manual entry at local midnight of the given day.

    Example:
        >>> POST /api/v1/records/manual
        {
            "seconds": "120",
            "date": "2025-11-16"
        }
    """
    day = request.date or local_today(session.tz).isoformat()
    result = session.add_manual(request.seconds, day)
    return RecordResponse.from_record(synced_record(result), session.tz)


@router.patch("/{record_id}", response_model=RecordResponse, responses=ERROR_RESPONSES)
def update_duration(
    record_id: str,
    request: UpdateDurationRequest,
    session: RecordSession = Depends(get_session),
) -> RecordResponse:
    """Change the duration of one record. Start and end are untouched.

    Example:
        >>> PATCH /api/v1/records/{id}
        {
            "duration": 90
        }
    """
    if isinstance(request.duration, str) and not request.duration.strip():
        raise RecordValidationError("Duration must not be empty")

    result = session.edit_duration(record_id, request.duration)
    return RecordResponse.from_record(synced_record(result, record_id), session.tz)


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERROR_RESPONSES,
)
def delete_record(
    record_id: str,
    session: RecordSession = Depends(get_session),
) -> None:
    """Delete one record of the caller.

    Example:
        >>> DELETE /api/v1/records/{id}
    """
    result = session.delete(record_id)
    check_result(result, record_id)
