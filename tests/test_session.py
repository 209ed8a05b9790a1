"""Tests for the record session."""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import pytest  # type: ignore[import-not-found]

from daywatch.core.auth import AuthManager
from daywatch.core.kvstore import MemoryKeyValueStore
from daywatch.core.models import RecordValidationError, TimeRecord
from daywatch.core.session import ActionKind, Outcome, RecordSession, SyncStatus
from daywatch.core.storage import LocalRecordStore, RecordStore, StorageError

BERLIN = ZoneInfo("Europe/Berlin")


class FailingStore(RecordStore):
    """Store whose every operation fails."""

    def list_records(self, user_id: str) -> list[TimeRecord]:
        raise StorageError("offline")

    def insert(self, record: TimeRecord) -> TimeRecord:
        raise StorageError("offline")

    def update_duration(
        self, user_id: str, record_id: str, duration: int
    ) -> Optional[TimeRecord]:
        raise StorageError("offline")

    def delete(self, user_id: str, record_id: str) -> bool:
        raise StorageError("offline")


@pytest.fixture
def store() -> LocalRecordStore:
    return LocalRecordStore(MemoryKeyValueStore())


@pytest.fixture
def session(store: LocalRecordStore) -> RecordSession:
    session = RecordSession(store, "u1", BERLIN)
    session.load()
    return session


def interval(session: RecordSession, start: int, duration: int) -> TimeRecord:
    result = session.add_interval(start, start + duration * 1000, duration)
    assert result.record is not None
    return result.record


class TestLoad:
    """Test loading and identity switching."""

    def test_load_empty(self, session: RecordSession) -> None:
        """Test a new identity has no records and is synced."""
        assert session.records == []
        assert session.status == SyncStatus.SYNCED

    def test_load_sorted(self, store: LocalRecordStore) -> None:
        """Test loaded records are ordered by start descending."""
        for start in (1000, 3000, 2000):
            store.insert(TimeRecord(user_id="u1", start=start, end=start, duration=1))
        session = RecordSession(store, "u1", BERLIN)
        assert [r.start for r in session.load()] == [3000, 2000, 1000]

    def test_load_without_identity(self, store: LocalRecordStore) -> None:
        """Test no identity loads nothing."""
        session = RecordSession(store, None, BERLIN)
        assert session.load() == []
        assert session.status == SyncStatus.STALE

    def test_load_failure_leaves_stale(self) -> None:
        """Test a failed load is not mistaken for an empty history."""
        session = RecordSession(FailingStore(), "u1", BERLIN)
        assert session.load() == []
        assert session.status == SyncStatus.STALE
        assert session.last_error == "offline"

    def test_switch_user(self, store: LocalRecordStore, session: RecordSession) -> None:
        """Test switching identity reloads that identity's records."""
        store.insert(TimeRecord(user_id="u2", start=1, end=1, duration=5))
        session.switch_user("u2")
        assert [r.user_id for r in session.records] == ["u2"]

        session.switch_user(None)
        assert session.records == []


class TestAddManual:
    """Test manual entries."""

    def test_manual_entry_at_local_midnight(self, session: RecordSession) -> None:
        """Test a manual entry starts and ends at local midnight."""
        result = session.add_manual("120", "2025-11-16")

        assert result.outcome == Outcome.SYNCED
        record = result.record
        assert record is not None
        midnight = datetime(2025, 11, 15, 23, 0, tzinfo=timezone.utc)
        assert record.start == record.end == int(midnight.timestamp() * 1000)
        assert record.duration == 120
        assert session.buckets.total("2025-11-16") == 120

    def test_accepts_date_object(self, session: RecordSession) -> None:
        """Test a date object is accepted."""
        assert session.add_manual(60, date(2025, 11, 16)).ok

    @pytest.mark.parametrize("seconds", ["0", "-5", "abc", ""])
    def test_invalid_seconds(self, session: RecordSession, seconds: str) -> None:
        """Test invalid seconds are rejected and nothing is persisted."""
        with pytest.raises(RecordValidationError):
            session.add_manual(seconds, "2025-11-16")
        assert session.records == []
        assert session.store.list_records("u1") == []

    def test_invalid_date(self, session: RecordSession) -> None:
        """Test an invalid date is rejected."""
        with pytest.raises(RecordValidationError):
            session.add_manual("60", "not-a-date")

    def test_without_identity(self, store: LocalRecordStore) -> None:
        """Test adding without identity does nothing."""
        session = RecordSession(store, None, BERLIN)
        result = session.add_manual("60", "2025-11-16")
        assert result.outcome == Outcome.SKIPPED
        assert store.list_records("u1") == []

    def test_new_record_first(self, session: RecordSession) -> None:
        """Test new records go to the front of the cached list."""
        interval(session, 5000, 1)
        session.add_manual("60", "1999-01-01")
        assert session.records[0].duration == 60


class TestAddInterval:
    """Test stopwatch records."""

    def test_store_failure(self) -> None:
        """Test a failed insert is reported, not dropped."""
        session = RecordSession(FailingStore(), "u1", BERLIN)
        result = session.add_interval(1000, 61000, 60)
        assert result.outcome == Outcome.FAILED
        assert result.error == "offline"
        assert result.record is not None and result.record.duration == 60
        assert session.records == []
        assert session.status == SyncStatus.STALE

    def test_adding_guard(self, session: RecordSession) -> None:
        """Test a second insert while one is in flight is skipped."""
        session.adding = True
        result = session.add_interval(1000, 61000, 60)
        assert result.outcome == Outcome.SKIPPED
        assert session.store.list_records("u1") == []

    def test_guard_released(self, session: RecordSession) -> None:
        """Test the guard is released after success and failure."""
        interval(session, 1000, 1)
        assert session.adding is False

        failing = RecordSession(FailingStore(), "u1", BERLIN)
        failing.add_interval(1000, 2000, 1)
        assert failing.adding is False


class TestEditAndDelete:
    """Test edits and deletes."""

    def test_edit_duration(self, session: RecordSession) -> None:
        """Test only the duration changes, locally and in the store."""
        record = interval(session, 1000, 60)
        result = session.edit_duration(record.id, "90")

        assert result.ok
        cached = session.get(record.id)
        assert cached is not None
        assert (cached.start, cached.end, cached.duration) == (1000, 61000, 90)
        assert session.store.list_records("u1")[0].duration == 90

    def test_edit_to_zero(self, session: RecordSession) -> None:
        """Test zero is a valid edited duration."""
        record = interval(session, 1000, 60)
        assert session.edit_duration(record.id, "0").ok

    def test_edit_invalid(self, session: RecordSession) -> None:
        """Test an invalid edit leaves the record unchanged."""
        record = interval(session, 1000, 60)
        with pytest.raises(RecordValidationError):
            session.edit_duration(record.id, "-5")
        assert session.store.list_records("u1")[0].duration == 60

    def test_edit_empty_cancels(self, session: RecordSession) -> None:
        """Test an empty value cancels the edit."""
        record = interval(session, 1000, 60)
        result = session.edit_duration(record.id, "  ")
        assert result.outcome == Outcome.SKIPPED
        assert session.store.list_records("u1")[0].duration == 60

    def test_edit_unknown(self, session: RecordSession) -> None:
        """Test editing a missing record is skipped."""
        result = session.edit_duration("missing", "5")
        assert result.outcome == Outcome.SKIPPED
        assert "not found" in (result.error or "")

    def test_edit_failure_keeps_cache(self) -> None:
        """Test a failed edit does not change the cached record."""
        session = RecordSession(FailingStore(), "u1", BERLIN)
        session.records = [TimeRecord(id="r1", user_id="u1", start=1, end=1, duration=60)]
        result = session.edit_duration("r1", "90")
        assert result.outcome == Outcome.FAILED
        assert session.records[0].duration == 60

    def test_delete(self, session: RecordSession) -> None:
        """Test delete removes the record everywhere."""
        keep = interval(session, 1000, 1)
        gone = interval(session, 2000, 2)

        result = session.delete(gone.id)

        assert result.ok
        assert result.record == gone
        assert session.records == [keep]
        assert session.store.list_records("u1") == [keep]

    def test_delete_failure_keeps_cache(self) -> None:
        """Test a failed delete keeps the record in the list."""
        session = RecordSession(FailingStore(), "u1", BERLIN)
        session.records = [TimeRecord(id="r1", user_id="u1", start=1, end=1, duration=60)]
        assert session.delete("r1").outcome == Outcome.FAILED
        assert len(session.records) == 1

    def test_foreign_record_untouched(self, store: LocalRecordStore) -> None:
        """Test another identity's record cannot be edited or deleted."""
        other = store.insert(TimeRecord(user_id="u2", start=1, end=1, duration=60))
        session = RecordSession(store, "u1", BERLIN)
        session.load()

        assert session.edit_duration(other.id, "1").outcome == Outcome.SKIPPED
        assert session.delete(other.id).outcome == Outcome.SKIPPED
        assert store.list_records("u2") == [other]


class TestConfirmation:
    """Test the request/confirm flow."""

    def test_confirm_edit(self, session: RecordSession) -> None:
        """Test a confirmed edit applies the value."""
        record = interval(session, 1000, 60)
        pending = session.request_edit(record.id)
        assert pending is not None and pending.kind == ActionKind.EDIT

        assert session.confirm(pending, "30").ok
        assert session.get(record.id).duration == 30  # type: ignore[union-attr]
        assert session.pending == []

    def test_invalid_value_stays_pending(self, session: RecordSession) -> None:
        """Test an invalid answer can be corrected."""
        record = interval(session, 1000, 60)
        pending = session.request_edit(record.id)
        assert pending is not None

        with pytest.raises(RecordValidationError):
            session.confirm(pending, "abc")
        assert session.pending == [pending]
        assert session.confirm(pending, "45").ok

    def test_confirm_delete(self, session: RecordSession) -> None:
        """Test a confirmed delete removes the record."""
        record = interval(session, 1000, 60)
        pending = session.request_delete(record.id)
        assert pending is not None
        assert session.confirm(pending).ok
        assert session.records == []

    def test_cancel(self, session: RecordSession) -> None:
        """Test cancelling leaves the record alone and forgets the action."""
        record = interval(session, 1000, 60)
        pending = session.request_delete(record.id)
        assert pending is not None

        session.cancel(pending)

        assert session.pending == []
        assert session.confirm(pending).outcome == Outcome.SKIPPED
        assert session.records == [record]

    def test_without_identity(self, store: LocalRecordStore) -> None:
        """Test nothing is requested without an identity."""
        session = RecordSession(store, None, BERLIN)
        assert session.request_edit("r1") is None
        assert session.request_delete("r1") is None


class TestFollowAuth:
    """Test following an auth manager's session."""

    def test_follows_sign_in_and_out(self, store: LocalRecordStore) -> None:
        """Test sign-in switches to the subject and sign-out clears."""
        store.insert(TimeRecord(user_id="alice", start=1, end=1, duration=5))
        auth = AuthManager(MemoryKeyValueStore(), "secret")
        session = RecordSession(store, auth.subject, BERLIN)
        unfollow = session.follow(auth)

        auth.sign_in("alice")
        assert session.user_id == "alice"
        assert len(session.records) == 1

        auth.sign_out()
        assert session.user_id is None
        assert session.records == []

        unfollow()
        auth.sign_in("alice")
        assert session.user_id is None
