"""Group records by local calendar day."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, tzinfo
from typing import Optional

from daywatch.core.formatting import local_today, to_local
from daywatch.core.models import TimeRecord


def day_key(start_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Calendar-day key (YYYY-MM-DD) of an instant in local time.

    Uses the local wall-clock date, not the UTC date, so a record started
    shortly after local midnight is not attributed to the previous day.

    Args:
        start_ms: Epoch milliseconds
        tz: Timezone. None means the system local zone.
    """
    return to_local(start_ms, tz).strftime("%Y-%m-%d")


class DayBuckets:
    """Records partitioned by the local day of their start."""

    def __init__(self, records: Iterable[TimeRecord], tz: Optional[tzinfo] = None):
        """Group records.

        Args:
            records: Records to group. Order inside each day follows this order.
            tz: Timezone. None means the system local zone.
        """
        self.tz = tz
        self._buckets: dict[str, list[TimeRecord]] = defaultdict(list)
        for record in records:
            self._buckets[day_key(record.start, tz)].append(record)

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, day: object) -> bool:
        return day in self._buckets

    def days(self) -> list[str]:
        """Day keys, most recent first."""
        return sorted(self._buckets, reverse=True)

    def records_for(self, day: str) -> list[TimeRecord]:
        """Records of one day (empty for unknown days)."""
        return list(self._buckets.get(day, []))

    def total(self, day: str) -> int:
        """Sum of durations on one day, in seconds."""
        return sum(r.duration for r in self._buckets.get(day, []))

    def grand_total(self) -> int:
        """Sum of all durations."""
        return sum(self.total(day) for day in self._buckets)

    def today_key(self, today: Optional[date] = None) -> str:
        if today is None:
            today = local_today(self.tz)
        return today.strftime("%Y-%m-%d")

    def today_total(self, today: Optional[date] = None) -> int:
        """Total of today, whatever its position among the days."""
        return self.total(self.today_key(today))

    def history_days(self, today: Optional[date] = None) -> list[str]:
        """Day keys other than today, most recent first."""
        key = self.today_key(today)
        return [day for day in self.days() if day != key]
