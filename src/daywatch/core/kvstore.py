"""Local persistent key-value store.

Holds a small number of string keys (identity token, session token,
running stopwatch start and, for the offline backend, the serialized
record list).
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from daywatch.core.files import atomic_write, locked_read

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String keys to string values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if unset."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, overwriting any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """Store backed by a JSON object in a file, written atomically."""

    def __init__(self, path: Path):
        """Initialize file store.

        Args:
            path: JSON file. Parent directories are created on demand.
        """
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        with locked_read(self.path) as f:
            content = f.read()

        if not content.strip():
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt key-value store {self.path}: {e}")
            raise

        if not isinstance(data, dict):
            raise ValueError(f"Key-value store {self.path} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        with atomic_write(self.path) as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug(f"Stored key {key!r} in {self.path}")

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
            logger.debug(f"Removed key {key!r} from {self.path}")
