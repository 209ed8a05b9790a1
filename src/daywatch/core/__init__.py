"""Core functionality for time tracking."""

from daywatch.core.buckets import DayBuckets
from daywatch.core.models import RecordValidationError, TimeRecord
from daywatch.core.session import RecordSession
from daywatch.core.stopwatch import Stopwatch
from daywatch.core.tracker import TimeTracker

__all__ = [
    "DayBuckets",
    "RecordSession",
    "RecordValidationError",
    "Stopwatch",
    "TimeRecord",
    "TimeTracker",
]
