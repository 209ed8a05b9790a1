"""Tests for formatting and parsing helpers."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest  # type: ignore[import-not-found]

from daywatch.core.formatting import (
    format_clock,
    format_time,
    local_midnight_ms,
    parse_date,
    parse_seconds,
    to_local,
)
from daywatch.core.models import RecordValidationError

BERLIN = ZoneInfo("Europe/Berlin")


class TestFormatTime:
    """Test HH:MM:SS formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "00:00:00"),
            (59, "00:00:59"),
            (61, "00:01:01"),
            (3661, "01:01:01"),
            (90000, "25:00:00"),
            (360000, "100:00:00"),
        ],
    )
    def test_format_time(self, seconds: int, expected: str) -> None:
        """Test formatting, including hours past a day."""
        assert format_time(seconds) == expected


class TestLocalTime:
    """Test local time conversions."""

    def test_local_midnight(self) -> None:
        """Test midnight is computed in the given zone, not UTC."""
        ms = local_midnight_ms(date(2025, 11, 16), BERLIN)
        expected = datetime(2025, 11, 15, 23, 0, tzinfo=timezone.utc)
        assert ms == int(expected.timestamp() * 1000)

    def test_local_midnight_across_dst(self) -> None:
        """Test midnight in summer time uses the summer offset."""
        ms = local_midnight_ms(date(2025, 7, 1), BERLIN)
        expected = datetime(2025, 6, 30, 22, 0, tzinfo=timezone.utc)
        assert ms == int(expected.timestamp() * 1000)

    def test_to_local_round_trip(self) -> None:
        """Test local midnight maps back to 00:00 on the same day."""
        local = to_local(local_midnight_ms(date(2025, 11, 16), BERLIN), BERLIN)
        assert local.date() == date(2025, 11, 16)
        assert (local.hour, local.minute) == (0, 0)

    def test_format_clock(self) -> None:
        """Test wall-clock formatting in a zone."""
        ms = int(datetime(2025, 11, 16, 8, 30, 15, tzinfo=timezone.utc).timestamp() * 1000)
        assert format_clock(ms, BERLIN) == "09:30:15"


class TestParseSeconds:
    """Test parsing user supplied seconds."""

    def test_positive_text(self) -> None:
        """Test plain integer text."""
        assert parse_seconds("120") == 120
        assert parse_seconds(" 45 ") == 45

    def test_int_value(self) -> None:
        """Test integers are accepted as is."""
        assert parse_seconds(30) == 30

    @pytest.mark.parametrize(
        "value",
        ["0", "-5", "abc", "", "12abc", "1.5", "--5", "+-5", "\u00b2", "9" * 5000, None, 0, -1],
    )
    def test_rejects_invalid(self, value: object) -> None:
        """Test non-positive and non-numeric values are rejected."""
        with pytest.raises(RecordValidationError):
            parse_seconds(value)  # type: ignore[arg-type]

    def test_rejects_bool(self) -> None:
        """Test booleans are not treated as integers."""
        with pytest.raises(RecordValidationError):
            parse_seconds(True)  # type: ignore[arg-type]

    def test_allow_zero(self) -> None:
        """Test zero is accepted for edits but negatives are not."""
        assert parse_seconds("0", allow_zero=True) == 0
        with pytest.raises(RecordValidationError):
            parse_seconds("-1", allow_zero=True)


class TestParseDate:
    """Test date parsing."""

    def test_valid(self) -> None:
        """Test YYYY-MM-DD text."""
        assert parse_date("2025-11-16") == date(2025, 11, 16)

    def test_date_passthrough(self) -> None:
        """Test date objects are returned unchanged."""
        day = date(2025, 1, 2)
        assert parse_date(day) is day

    @pytest.mark.parametrize("value", ["16/11/2025", "2025-13-01", "yesterday", ""])
    def test_invalid(self, value: str) -> None:
        """Test invalid dates raise."""
        with pytest.raises(RecordValidationError):
            parse_date(value)
