"""Hosted table backend.

Talks to a PostgREST style REST endpoint (as exposed by Supabase) for a
``records`` table with the columns ``id, user_id, start, end, duration``.
"""

import logging
from typing import Any, Optional

import requests

from daywatch.core.models import TimeRecord
from daywatch.core.storage import RecordStore, StorageError

logger = logging.getLogger(__name__)


class RemoteRecordStore(RecordStore):
    """Record store backed by a remote table."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "records",
        timeout: float = 10,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize remote store.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Public API key sent with every request
            table: Table name
            timeout: Per-request timeout in seconds
            access_token: Bearer token of a signed-in user (defaults to api_key)
            session: HTTP session to use (created if None)
        """
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        params: Optional[dict[str, str]] = None,
        payload: Any = None,
        returning: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"} if returning else {}
        try:
            response = self.session.request(
                method,
                self.endpoint,
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{method} {self.endpoint} failed: {e}")
            raise StorageError(f"Remote table request failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Remote table returned invalid JSON: {e}") from e

    def _rows_to_records(self, rows: Any) -> list[TimeRecord]:
        if not isinstance(rows, list):
            raise StorageError("Remote table returned an unexpected payload")
        try:
            return [TimeRecord.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed remote row: {e}") from e

    def list_records(self, user_id: str) -> list[TimeRecord]:
        rows = self._request(
            "GET",
            params={"select": "*", "user_id": f"eq.{user_id}", "order": "start.desc"},
        )
        return self._rows_to_records(rows or [])

    def insert(self, record: TimeRecord) -> TimeRecord:
        payload = {
            "user_id": record.user_id,
            "start": record.start,
            "end": record.end,
            "duration": record.duration,
        }
        rows = self._rows_to_records(self._request("POST", payload=[payload], returning=True))
        if not rows:
            raise StorageError("Remote table did not return the inserted row")
        return rows[0]

    def update_duration(
        self, user_id: str, record_id: str, duration: int
    ) -> Optional[TimeRecord]:
        rows = self._rows_to_records(
            self._request(
                "PATCH",
                params={"id": f"eq.{record_id}", "user_id": f"eq.{user_id}"},
                payload={"duration": duration},
                returning=True,
            )
            or []
        )
        return rows[0] if rows else None

    def delete(self, user_id: str, record_id: str) -> bool:
        rows = self._request(
            "DELETE",
            params={"id": f"eq.{record_id}", "user_id": f"eq.{user_id}"},
            returning=True,
        )
        return bool(rows)
