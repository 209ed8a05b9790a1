"""Shared fixtures for API tests."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest  # type: ignore[import-not-found]
from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from daywatch.api import create_app
from daywatch.core.config import ConfigManager


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> ConfigManager:
    """Create a test configuration with its data in the temp directory."""
    config = ConfigManager(temp_dir / "config.yml")
    config.set("general.data_dir", str(temp_dir / "data"))
    config.set("general.timezone", "Europe/Berlin")
    return config


@pytest.fixture
def test_app(test_config: ConfigManager) -> FastAPI:
    """Create a test FastAPI application."""
    return create_app(test_config)


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(test_app)


@pytest.fixture
def user_id(client: TestClient) -> str:
    """Establish the client's anonymous identity."""
    response = client.get("/api/v1/identity")
    assert response.status_code == 200
    user: str = response.json()["user_id"]
    return user
