"""Pydantic models for API requests and responses.

This module defines the data models used for API requests and responses.
All models use Pydantic for automatic validation and serialization.
"""

from datetime import datetime, tzinfo
from typing import Optional, Union

from pydantic import BaseModel, Field  # type: ignore[import-untyped]

from daywatch.core.buckets import DayBuckets, day_key
from daywatch.core.formatting import format_clock, format_time
from daywatch.core.models import TimeRecord
from daywatch.core.stopwatch import Stopwatch

# ============================================================================
# Response Models
# ============================================================================


class RecordResponse(BaseModel):
    """Response model for a time record."""

    id: str
    user_id: str
    start: int = Field(..., description="Start, epoch milliseconds")
    end: int = Field(..., description="End, epoch milliseconds")
    duration: int = Field(..., description="Duration in seconds")
    duration_text: str = Field(..., description="Duration as HH:MM:SS")
    day: str = Field(..., description="Local calendar day of the start (YYYY-MM-DD)")
    has_interval: bool = Field(..., description="False for manual entries")
    start_time: Optional[str] = Field(None, description="Local start time, intervals only")
    end_time: Optional[str] = Field(None, description="Local end time, intervals only")

    @classmethod
    def from_record(cls, record: TimeRecord, tz: Optional[tzinfo] = None) -> "RecordResponse":
        """Create response from a TimeRecord.

        Args:
            record: Record from core.models
            tz: Timezone for the day and clock times

        Returns:
            RecordResponse instance
        """
        return cls(
            id=record.id,
            user_id=record.user_id,
            start=record.start,
            end=record.end,
            duration=record.duration,
            duration_text=format_time(record.duration),
            day=day_key(record.start, tz),
            has_interval=record.has_interval,
            start_time=format_clock(record.start, tz) if record.has_interval else None,
            end_time=format_clock(record.end, tz) if record.has_interval else None,
        )


class DayResponse(BaseModel):
    """One calendar day with its total and entries."""

    date: str
    total: int
    total_text: str
    records: list[RecordResponse] = Field(default_factory=list)


class DashboardResponse(BaseModel):
    """Today's total followed by every day, most recent first."""

    today: str
    today_total: int
    today_total_text: str
    grand_total: int = 0
    grand_total_text: str = "00:00:00"
    days: list[DayResponse] = Field(default_factory=list)

    @classmethod
    def from_buckets(
        cls, buckets: DayBuckets, today: str, tz: Optional[tzinfo] = None
    ) -> "DashboardResponse":
        """Create response from grouped records.

        Args:
            buckets: Records grouped by day
            today: Key of the current day
            tz: Timezone for clock times
        """
        total = buckets.total(today)
        grand_total = buckets.grand_total()
        return cls(
            today=today,
            today_total=total,
            today_total_text=format_time(total),
            grand_total=grand_total,
            grand_total_text=format_time(grand_total),
            days=[
                DayResponse(
                    date=day,
                    total=buckets.total(day),
                    total_text=format_time(buckets.total(day)),
                    records=[RecordResponse.from_record(r, tz) for r in buckets.records_for(day)],
                )
                for day in buckets.days()
            ],
        )


class StopwatchResponse(BaseModel):
    """Response model for the stopwatch."""

    state: str = Field(..., description="idle or running")
    started_at: Optional[int] = Field(None, description="Start, epoch milliseconds")
    elapsed: int = Field(0, description="Elapsed seconds")
    elapsed_text: str = Field("00:00:00", description="Elapsed time as HH:MM:SS")

    @classmethod
    def from_stopwatch(cls, stopwatch: Stopwatch) -> "StopwatchResponse":
        elapsed = stopwatch.elapsed()
        return cls(
            state=stopwatch.state.value,
            started_at=stopwatch.started_at,
            elapsed=elapsed,
            elapsed_text=format_time(elapsed),
        )


class StopResponse(BaseModel):
    """Result of stopping the stopwatch."""

    stopwatch: StopwatchResponse
    record: Optional[RecordResponse] = Field(None, description="Recorded run, if it was running")


class IdentityResponse(BaseModel):
    """Response model for the current identity."""

    user_id: str
    mode: str
    share_url: Optional[str] = Field(None, description="Link that opens this tracker")


class SessionResponse(BaseModel):
    """Response model for the authentication session."""

    signed_in: bool
    subject: Optional[str] = None
    expires_at: Optional[datetime] = None


# ============================================================================
# Request Models
# ============================================================================


class ManualEntryRequest(BaseModel):
    """Request model for a manual entry."""

    seconds: Union[int, str] = Field(..., description="Positive number of seconds")
    date: Optional[str] = Field(None, description="Day (YYYY-MM-DD), defaults to today")


class UpdateDurationRequest(BaseModel):
    """Request model for editing a record's duration."""

    duration: Union[int, str] = Field(..., description="New duration in seconds, zero or more")


# ============================================================================
# System Models
# ============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy, degraded, unhealthy)")
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="API version")


class StatusResponse(BaseModel):
    """Response model for system status."""

    identity_mode: str
    storage_backend: str
    cors_enabled: bool
    running_stopwatches: int
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
