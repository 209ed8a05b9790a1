"""Time formatting, parsing and clock helpers."""

import re
import time
from datetime import date, datetime, tzinfo
from typing import Optional, Union

from daywatch.core.models import RecordValidationError

SECONDS_PATTERN = re.compile(r"[+-]?[0-9]+")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_time(seconds: int) -> str:
    """Format seconds as HH:MM:SS.

    Hours are zero-padded to two digits but never wrap, so a day and
    one hour renders as ``25:00:00``.

    Args:
        seconds: Non-negative number of seconds

    Returns:
        Formatted duration string
    """
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_clock(ms: int, tz: Optional[tzinfo] = None) -> str:
    """Format an instant as local wall-clock time (HH:MM:SS)."""
    return to_local(ms, tz).strftime("%H:%M:%S")


def to_local(ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to an aware local datetime.

    Args:
        ms: Epoch milliseconds
        tz: Target timezone. None means the system local zone.
    """
    return datetime.fromtimestamp(ms / 1000, tz=tz).astimezone(tz)


def local_midnight_ms(day: date, tz: Optional[tzinfo] = None) -> int:
    """Return epoch milliseconds of 00:00:00 on ``day`` in local time.

    Args:
        day: Calendar date
        tz: Timezone. None means the system local zone.

    Returns:
        Epoch milliseconds of local midnight
    """
    # A naive datetime (tz=None) is interpreted as system local time
    midnight = datetime(day.year, day.month, day.day, tzinfo=tz)
    return int(midnight.timestamp() * 1000)


def local_today(tz: Optional[tzinfo] = None) -> date:
    """Today's calendar date in the given zone."""
    return datetime.now(tz).date()


def parse_seconds(value: Union[str, int, None], allow_zero: bool = False) -> int:
    """Parse a user supplied number of seconds.

    Args:
        value: Raw input (text from a form/prompt, or an int)
        allow_zero: Accept 0 (edits) instead of requiring a positive value

    Returns:
        Parsed number of seconds

    Raises:
        RecordValidationError: If value is not an integer or out of range
    """
    if isinstance(value, bool):
        raise RecordValidationError(f"Invalid number of seconds: {value!r}")

    if isinstance(value, int):
        seconds = value
    else:
        text = (value or "").strip()
        if not SECONDS_PATTERN.fullmatch(text):
            raise RecordValidationError(f"Invalid number of seconds: {value!r}")
        try:
            seconds = int(text)
        except ValueError:
            raise RecordValidationError(f"Invalid number of seconds: {value!r}")

    if allow_zero and seconds < 0:
        raise RecordValidationError("Seconds must be zero or a positive integer")
    if not allow_zero and seconds <= 0:
        raise RecordValidationError("Seconds must be a positive integer")
    return seconds


def parse_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD date.

    Raises:
        RecordValidationError: If the text is not a valid date
    """
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise RecordValidationError(f"Invalid date: {value!r}. Use YYYY-MM-DD")
