"""Tests for stopwatch endpoints."""

from unittest.mock import patch

import pytest  # type: ignore[import-not-found]
from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from daywatch.core.stopwatch import Stopwatch
from daywatch.core.storage import CsvRecordStore, StorageError


class FakeClock:
    def __init__(self, now: int = 1_731_747_600_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock(test_app: FastAPI, user_id: str) -> FakeClock:
    """Give the client's stopwatch a controllable clock."""
    clock = FakeClock()
    test_app.state.stopwatches[user_id] = Stopwatch(clock)
    return clock


class TestStopwatchEndpoints:
    """Test /api/v1/stopwatch."""

    def test_idle_by_default(self, client: TestClient, user_id: str) -> None:
        """Test a new identity has an idle stopwatch."""
        response = client.get("/api/v1/stopwatch/")
        assert response.status_code == 200
        assert response.json() == {
            "state": "idle",
            "started_at": None,
            "elapsed": 0,
            "elapsed_text": "00:00:00",
        }

    def test_start_and_poll(self, client: TestClient, clock: FakeClock) -> None:
        """Test elapsed time is recomputed on every poll."""
        started = client.post("/api/v1/stopwatch/start").json()
        assert started["state"] == "running"
        assert started["started_at"] == clock.now

        clock.now += 75_000
        data = client.get("/api/v1/stopwatch/").json()
        assert data["elapsed"] == 75
        assert data["elapsed_text"] == "00:01:15"

    def test_start_twice_keeps_start(self, client: TestClient, clock: FakeClock) -> None:
        """Test a second start does not reset the stopwatch."""
        first = client.post("/api/v1/stopwatch/start").json()["started_at"]
        clock.now += 5_000
        assert client.post("/api/v1/stopwatch/start").json()["started_at"] == first

    def test_stop_records_interval(self, client: TestClient, clock: FakeClock) -> None:
        """Test stopping records the run and resets the stopwatch."""
        client.post("/api/v1/stopwatch/start")
        start = clock.now
        clock.now += 3_600_000

        response = client.post("/api/v1/stopwatch/stop")

        assert response.status_code == 200
        data = response.json()
        assert data["stopwatch"]["state"] == "idle"
        record = data["record"]
        assert (record["start"], record["end"], record["duration"]) == (
            start,
            start + 3_600_000,
            3600,
        )
        assert record["has_interval"] is True
        assert record["start_time"] == "10:00:00"
        assert len(client.get("/api/v1/records/").json()) == 1

    def test_double_stop_records_once(self, client: TestClient, clock: FakeClock) -> None:
        """Test a repeated stop inserts a single record."""
        client.post("/api/v1/stopwatch/start")
        clock.now += 10_000

        first = client.post("/api/v1/stopwatch/stop").json()
        second = client.post("/api/v1/stopwatch/stop")

        assert first["record"] is not None
        assert second.status_code == 200
        assert second.json()["record"] is None
        assert len(client.get("/api/v1/records/").json()) == 1

    def test_stop_store_failure(self, client: TestClient, clock: FakeClock) -> None:
        """Test a failed insert after stop is reported."""
        client.post("/api/v1/stopwatch/start")
        clock.now += 10_000

        with patch.object(CsvRecordStore, "insert", side_effect=StorageError("offline")):
            response = client.post("/api/v1/stopwatch/stop")

        assert response.status_code == 502
        assert "offline" in response.json()["detail"]

    def test_stopwatches_are_per_identity(
        self, test_app: FastAPI, client: TestClient, clock: FakeClock
    ) -> None:
        """Test another identity has its own stopwatch."""
        client.post("/api/v1/stopwatch/start")

        other = TestClient(test_app)
        assert other.get("/api/v1/stopwatch/").json()["state"] == "idle"
