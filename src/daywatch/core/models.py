"""Core data models for time tracking."""

from dataclasses import dataclass
from typing import Any


class RecordValidationError(ValueError):
    """Raised when user input or a record fails validation."""


@dataclass
class TimeRecord:
    """A tracked interval or a manually entered duration.

    Attributes:
        user_id: Owner identifier. Partitions all queries and mutations.
        start: Start as epoch milliseconds. Local midnight for manual entries.
        end: End as epoch milliseconds. Equal to start for manual entries.
        duration: Duration in seconds. Authoritative for display and totals,
            never derived from end - start.
        id: Unique identifier, assigned by the store on insert
    """

    user_id: str
    start: int
    end: int
    duration: int
    id: str = ""

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise RecordValidationError(f"Duration must not be negative: {self.duration}")

    @property
    def has_interval(self) -> bool:
        """Whether the record spans a real start/end interval."""
        return self.start != self.end

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the table's column names."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeRecord":
        """Create TimeRecord from a dictionary (JSON, CSV row or table row)."""
        return cls(
            id=str(data["id"]) if data.get("id") is not None else "",
            user_id=str(data["user_id"]),
            start=int(data["start"]),
            end=int(data["end"]),
            duration=int(data["duration"]),
        )
