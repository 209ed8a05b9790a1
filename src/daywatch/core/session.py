"""Cached view of the current identity's records.

The backing store is the source of truth. The session keeps the records of
one identity in memory, applies a mutation locally only after the store
confirmed it, and reports the outcome of every mutation instead of
failing silently.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, tzinfo
from enum import Enum
from typing import TYPE_CHECKING, Optional, TypeVar, Union
from uuid import uuid4

from daywatch.core.buckets import DayBuckets
from daywatch.core.formatting import local_midnight_ms, parse_date, parse_seconds
from daywatch.core.models import TimeRecord
from daywatch.core.storage import RecordStore, StorageError, sort_records

if TYPE_CHECKING:
    from daywatch.core.auth import AuthManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncStatus(str, Enum):
    """Freshness of the cached record list."""

    STALE = "stale"
    SYNCING = "syncing"
    SYNCED = "synced"


class Outcome(str, Enum):
    """Result of a single mutation."""

    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"


class ActionKind(str, Enum):
    EDIT = "edit"
    DELETE = "delete"


@dataclass
class MutationResult:
    """Outcome of a mutation.

    Attributes:
        outcome: SYNCED when the store confirmed it, FAILED on a store error,
            SKIPPED when nothing was attempted
        record: The affected record, when there is one
        error: Why the mutation failed or was skipped
    """

    outcome: Outcome
    record: Optional[TimeRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SYNCED


@dataclass
class PendingAction:
    """An edit or delete waiting for the user's answer."""

    kind: ActionKind
    record_id: str
    token: str = field(default_factory=lambda: uuid4().hex)


class RecordSession:
    """Records of the current identity and the mutations on them."""

    def __init__(
        self,
        store: RecordStore,
        user_id: Optional[str],
        tz: Optional[tzinfo] = None,
    ):
        """Initialize session.

        Args:
            store: Backing record store
            user_id: Current identity. None means no identity yet, in which
                case loading yields nothing and mutations are skipped.
            tz: Timezone for calendar days. None means system local time.
        """
        self.store = store
        self.user_id = user_id
        self.tz = tz
        self.records: list[TimeRecord] = []
        self.status = SyncStatus.STALE
        self.last_error: Optional[str] = None
        self.adding = False
        self._pending: dict[str, PendingAction] = {}

    @property
    def buckets(self) -> DayBuckets:
        """Current records grouped by local day."""
        return DayBuckets(self.records, self.tz)

    def get(self, record_id: str) -> Optional[TimeRecord]:
        """Cached record by id."""
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def _call(self, operation: Callable[[], T]) -> T:
        """Run a store operation, tracking the sync status.

        Raises:
            StorageError: Re-raised after the status has been marked stale
        """
        self.status = SyncStatus.SYNCING
        try:
            result = operation()
        except StorageError as e:
            self.status = SyncStatus.STALE
            self.last_error = str(e)
            logger.error(f"Store operation failed for {self.user_id}: {e}")
            raise
        self.status = SyncStatus.SYNCED
        self.last_error = None
        return result

    def load(self) -> list[TimeRecord]:
        """(Re)load the records of the current identity.

        On a store error the list is left empty and the status stale.
        """
        if self.user_id is None:
            self.records = []
            return self.records

        user_id = self.user_id
        try:
            self.records = sort_records(self._call(lambda: self.store.list_records(user_id)))
        except StorageError:
            self.records = []
        return self.records

    def switch_user(self, user_id: Optional[str]) -> None:
        """Change identity and reload, or clear when user_id is None."""
        if user_id == self.user_id and self.status == SyncStatus.SYNCED:
            return
        logger.info(f"Switching identity to {user_id}")
        self.user_id = user_id
        self._pending.clear()
        self.status = SyncStatus.STALE
        self.load()

    def follow(self, auth: "AuthManager") -> Callable[[], None]:
        """Track the identity of an auth manager's session.

        Returns:
            Function that stops following
        """
        return auth.subscribe(
            lambda session: self.switch_user(session.subject if session else None)
        )

    # Inserts

    def add_manual(self, seconds: Union[str, int], day: Union[str, date]) -> MutationResult:
        """Add a manual entry of ``seconds`` on local midnight of ``day``.

        Raises:
            RecordValidationError: If seconds is not a positive integer or
                day is not a valid date (nothing is persisted)
        """
        if self.user_id is None:
            return MutationResult(Outcome.SKIPPED, error="No identity")

        duration = parse_seconds(seconds)
        midnight = local_midnight_ms(parse_date(day), self.tz)
        return self._insert(
            TimeRecord(user_id=self.user_id, start=midnight, end=midnight, duration=duration)
        )

    def add_interval(self, start: int, end: int, duration: int) -> MutationResult:
        """Add a record for a completed stopwatch run."""
        if self.user_id is None:
            return MutationResult(Outcome.SKIPPED, error="No identity")

        return self._insert(
            TimeRecord(user_id=self.user_id, start=start, end=end, duration=duration)
        )

    def _insert(self, record: TimeRecord) -> MutationResult:
        if self.adding:
            return MutationResult(Outcome.SKIPPED, error="Another record is being added")

        self.adding = True
        try:
            stored = self._call(lambda: self.store.insert(record))
        except StorageError as e:
            return MutationResult(Outcome.FAILED, record=record, error=str(e))
        finally:
            self.adding = False

        # New records go first, even if older than the newest; load() re-sorts
        self.records.insert(0, stored)
        return MutationResult(Outcome.SYNCED, record=stored)

    # Edits and deletes

    def edit_duration(
        self, record_id: str, value: Union[str, int, None]
    ) -> MutationResult:
        """Set a record's duration.

        An empty value cancels the edit.

        Raises:
            RecordValidationError: If value is not a non-negative integer
        """
        if self.user_id is None:
            return MutationResult(Outcome.SKIPPED, error="No identity")
        if value is None or (isinstance(value, str) and not value.strip()):
            return MutationResult(Outcome.SKIPPED, error="Cancelled")

        duration = parse_seconds(value, allow_zero=True)
        user_id = self.user_id
        try:
            updated = self._call(lambda: self.store.update_duration(user_id, record_id, duration))
        except StorageError as e:
            return MutationResult(Outcome.FAILED, record=self.get(record_id), error=str(e))

        if updated is None:
            return MutationResult(Outcome.SKIPPED, error=f"Record {record_id} not found")

        for record in self.records:
            if record.id == record_id:
                record.duration = updated.duration
        return MutationResult(Outcome.SYNCED, record=updated)

    def delete(self, record_id: str) -> MutationResult:
        """Delete a record of the current identity."""
        if self.user_id is None:
            return MutationResult(Outcome.SKIPPED, error="No identity")

        user_id = self.user_id
        target = self.get(record_id)
        try:
            deleted = self._call(lambda: self.store.delete(user_id, record_id))
        except StorageError as e:
            return MutationResult(Outcome.FAILED, record=target, error=str(e))

        self.records = [r for r in self.records if r.id != record_id]
        if not deleted:
            return MutationResult(Outcome.SKIPPED, error=f"Record {record_id} not found")
        return MutationResult(Outcome.SYNCED, record=target)

    # Confirmation flow

    def request_edit(self, record_id: str) -> Optional[PendingAction]:
        """Ask for a new duration. Returns None without an identity."""
        return self._request(ActionKind.EDIT, record_id)

    def request_delete(self, record_id: str) -> Optional[PendingAction]:
        """Ask for confirmation of a delete. Returns None without an identity."""
        return self._request(ActionKind.DELETE, record_id)

    def _request(self, kind: ActionKind, record_id: str) -> Optional[PendingAction]:
        if self.user_id is None:
            return None
        pending = PendingAction(kind=kind, record_id=record_id)
        self._pending[pending.token] = pending
        return pending

    def confirm(
        self, pending: PendingAction, value: Union[str, int, None] = None
    ) -> MutationResult:
        """Answer a pending action.

        For edits ``value`` is the new duration; an empty value cancels.
        An invalid value raises and leaves the action pending.

        Raises:
            RecordValidationError: If an edit value is invalid
        """
        if self._pending.get(pending.token) is not pending:
            return MutationResult(Outcome.SKIPPED, error="No such pending action")

        if pending.kind == ActionKind.EDIT:
            if value is not None and not (isinstance(value, str) and not value.strip()):
                parse_seconds(value, allow_zero=True)
            del self._pending[pending.token]
            return self.edit_duration(pending.record_id, value)

        del self._pending[pending.token]
        return self.delete(pending.record_id)

    def cancel(self, pending: PendingAction) -> None:
        """Drop a pending action without touching any record."""
        self._pending.pop(pending.token, None)

    @property
    def pending(self) -> list[PendingAction]:
        return list(self._pending.values())
