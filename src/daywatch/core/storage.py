"""Record storage backends.

Every backend implements the same four operations, all scoped by owner:
list (ordered by start, most recent first), insert, update of the
duration and delete. Update and delete match on both record id and
owner, so a guessed id of another identity has no effect.
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from daywatch.core.config import ConfigManager
from daywatch.core.files import atomic_write, locked_read
from daywatch.core.kvstore import KeyValueStore
from daywatch.core.models import TimeRecord

logger = logging.getLogger(__name__)

RECORD_FIELDS = ["id", "user_id", "start", "end", "duration"]


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


def sort_records(records: list[TimeRecord]) -> list[TimeRecord]:
    """Order records by start, most recent first."""
    return sorted(records, key=lambda r: r.start, reverse=True)


class RecordStore(ABC):
    """Persistence boundary for time records."""

    @abstractmethod
    def list_records(self, user_id: str) -> list[TimeRecord]:
        """Fetch all records of user_id, ordered by start descending.

        Raises:
            StorageError: If the store cannot be read
        """

    @abstractmethod
    def insert(self, record: TimeRecord) -> TimeRecord:
        """Persist a new record.

        Returns:
            The stored record, including its assigned id

        Raises:
            StorageError: If the record cannot be stored
        """

    @abstractmethod
    def update_duration(
        self, user_id: str, record_id: str, duration: int
    ) -> Optional[TimeRecord]:
        """Set the duration of one record owned by user_id.

        Returns:
            Updated record, or None if no such record belongs to user_id

        Raises:
            StorageError: If the store cannot be updated
        """

    @abstractmethod
    def delete(self, user_id: str, record_id: str) -> bool:
        """Delete one record owned by user_id.

        Returns:
            True if a record was deleted

        Raises:
            StorageError: If the store cannot be updated
        """


class _RowStore(RecordStore):
    """Shared logic for backends that rewrite the full row set."""

    @abstractmethod
    def _load_rows(self) -> list[dict[str, Any]]:
        """Read all raw rows."""

    @abstractmethod
    def _save_rows(self, rows: list[dict[str, Any]]) -> None:
        """Replace all raw rows."""

    def _load(self) -> list[TimeRecord]:
        try:
            return [TimeRecord.from_dict(row) for row in self._load_rows()]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed record data: {e}") from e

    def _save(self, records: list[TimeRecord]) -> None:
        self._save_rows([r.to_dict() for r in records])

    def list_records(self, user_id: str) -> list[TimeRecord]:
        return sort_records([r for r in self._load() if r.user_id == user_id])

    def insert(self, record: TimeRecord) -> TimeRecord:
        records = self._load()
        stored = TimeRecord(
            id=uuid4().hex,
            user_id=record.user_id,
            start=record.start,
            end=record.end,
            duration=record.duration,
        )
        records.append(stored)
        self._save(records)
        logger.debug(f"Inserted record {stored.id} for {stored.user_id}")
        return stored

    def update_duration(
        self, user_id: str, record_id: str, duration: int
    ) -> Optional[TimeRecord]:
        records = self._load()
        for record in records:
            if record.id == record_id and record.user_id == user_id:
                record.duration = duration
                self._save(records)
                logger.debug(f"Updated duration of record {record_id} to {duration}")
                return record
        return None

    def delete(self, user_id: str, record_id: str) -> bool:
        records = self._load()
        remaining = [
            r for r in records if not (r.id == record_id and r.user_id == user_id)
        ]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        logger.debug(f"Deleted record {record_id}")
        return True


class LocalRecordStore(_RowStore):
    """Offline backend: the whole record list serialized in the key-value store."""

    RECORDS_KEY = "records"

    def __init__(self, store: KeyValueStore):
        """Initialize local record store.

        Args:
            store: Local key-value store
        """
        self.store = store

    def _load_rows(self) -> list[dict[str, Any]]:
        try:
            raw = self.store.get(self.RECORDS_KEY)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read local records: {e}") from e
        if not raw:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt local records: {e}") from e
        if not isinstance(rows, list):
            raise StorageError("Corrupt local records: expected a list")
        return rows

    def _save_rows(self, rows: list[dict[str, Any]]) -> None:
        try:
            self.store.set(self.RECORDS_KEY, json.dumps(rows))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot write local records: {e}") from e


class CsvRecordStore(_RowStore):
    """File table backend: one CSV file for all identities."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize CSV record store.

        Args:
            data_dir: Custom data directory. Defaults to ~/.daywatch/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".daywatch" / "data"

        self.data_dir = data_dir
        self.records_file = self.data_dir / "records.csv"

        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.records_file.exists():
            self._save_rows([])

    def _load_rows(self) -> list[dict[str, Any]]:
        if not self.records_file.exists():
            return []
        try:
            with locked_read(self.records_file, newline="") as f:
                return list(csv.DictReader(f))
        except OSError as e:
            raise StorageError(f"Cannot read {self.records_file}: {e}") from e

    def _save_rows(self, rows: list[dict[str, Any]]) -> None:
        try:
            with atomic_write(self.records_file, newline="") as f:
                writer = csv.DictWriter(f, fieldnames=RECORD_FIELDS)
                writer.writeheader()
                writer.writerows(rows)
        except OSError as e:
            raise StorageError(f"Cannot write {self.records_file}: {e}") from e


def create_store(
    config: ConfigManager,
    kv_store: Optional[KeyValueStore] = None,
    access_token: Optional[str] = None,
) -> RecordStore:
    """Create the record store selected by ``storage.backend``.

    Args:
        config: Configuration manager
        kv_store: Local key-value store (required by the local backend)
        access_token: Session token sent to the remote table instead of the
            API key

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = config.get("storage.backend", "csv")

    if backend == "local":
        if kv_store is None:
            raise ValueError("The local backend needs a key-value store")
        return LocalRecordStore(kv_store)

    if backend == "csv":
        return CsvRecordStore(config.data_dir)

    if backend == "remote":
        from daywatch.core.remote import RemoteRecordStore

        url = config.get("storage.remote.url")
        api_key = config.get("storage.remote.api_key")
        if not url or not api_key:
            raise ValueError(
                "Remote backend needs storage.remote.url and storage.remote.api_key"
            )
        return RemoteRecordStore(
            url,
            api_key,
            table=config.get("storage.remote.table", "records"),
            timeout=config.get("storage.remote.timeout", 10),
            access_token=access_token,
        )

    raise ValueError(f"Unknown storage backend: {backend}")
