"""Tests for identity handling in the API."""

import pytest  # type: ignore[import-not-found]
from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from daywatch.api import create_app
from daywatch.api.auth import create_token_for_user
from daywatch.core.config import ConfigManager


class TestAnonymousIdentity:
    """Test cookie-based anonymous identities."""

    def test_identity_created_and_kept(self, client: TestClient) -> None:
        """Test the first request creates an identity stored in a cookie."""
        first = client.get("/api/v1/identity")

        assert first.status_code == 200
        user_id = first.json()["user_id"]
        assert first.cookies.get("user_id") == user_id
        assert client.get("/api/v1/identity").json()["user_id"] == user_id

    def test_share_url(self, client: TestClient, user_id: str) -> None:
        """Test the share link carries the identity."""
        data = client.get("/api/v1/identity").json()
        assert data["mode"] == "anonymous"
        assert data["share_url"] == f"http://localhost:8000/?user={user_id}"

    def test_user_parameter(self, client: TestClient, user_id: str) -> None:
        """Test the user parameter replaces the stored identity."""
        data = client.get("/api/v1/identity", params={"user": "shared-id"}).json()
        assert data["user_id"] == "shared-id"
        assert client.get("/api/v1/identity").json()["user_id"] == "shared-id"

    def test_separate_clients(self, test_app: FastAPI, user_id: str) -> None:
        """Test a client without the cookie gets a different identity."""
        other = TestClient(test_app)
        assert other.get("/api/v1/identity").json()["user_id"] != user_id

    def test_signed_out_session(self, client: TestClient) -> None:
        """Test the session endpoint without a token."""
        assert client.get("/api/v1/auth/session").json() == {
            "signed_in": False,
            "subject": None,
            "expires_at": None,
        }


@pytest.fixture
def auth_config(test_config: ConfigManager) -> ConfigManager:
    """Configuration in authenticated mode."""
    test_config.set("identity.mode", "authenticated")
    test_config.ensure_secret_key()
    return test_config


@pytest.fixture
def auth_client(auth_config: ConfigManager) -> TestClient:
    return TestClient(create_app(auth_config))


def bearer(config: ConfigManager, subject: str) -> dict[str, str]:
    token = create_token_for_user(config, subject)["access_token"]
    return {"Authorization": f"Bearer {token}"}


class TestAuthenticatedIdentity:
    """Test bearer-token identities."""

    def test_requires_token(self, auth_client: TestClient) -> None:
        """Test record endpoints need a session."""
        assert auth_client.get("/api/v1/records/").status_code == 401
        assert auth_client.post("/api/v1/stopwatch/start").status_code == 401

    def test_invalid_token(self, auth_client: TestClient) -> None:
        """Test a bad token is rejected."""
        response = auth_client.get(
            "/api/v1/records/", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_user_parameter_ignored(self, auth_client: TestClient) -> None:
        """Test a shared link cannot stand in for a session."""
        assert auth_client.get("/api/v1/records/", params={"user": "alice"}).status_code == 401

    def test_subject_is_identity(self, auth_client: TestClient, auth_config: ConfigManager) -> None:
        """Test the token subject owns the records."""
        headers = bearer(auth_config, "alice")

        identity = auth_client.get("/api/v1/identity", headers=headers).json()
        assert identity == {"user_id": "alice", "mode": "authenticated", "share_url": None}

        response = auth_client.post(
            "/api/v1/records/manual",
            json={"seconds": "60", "date": "2025-11-16"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == "alice"

    def test_subjects_isolated(self, auth_client: TestClient, auth_config: ConfigManager) -> None:
        """Test one subject cannot see or delete another's records."""
        alice = bearer(auth_config, "alice")
        bob = bearer(auth_config, "bob")
        record = auth_client.post(
            "/api/v1/records/manual",
            json={"seconds": "60", "date": "2025-11-16"},
            headers=alice,
        ).json()

        assert auth_client.get("/api/v1/records/", headers=bob).json() == []
        assert auth_client.delete(f"/api/v1/records/{record['id']}", headers=bob).status_code == 404
        assert len(auth_client.get("/api/v1/records/", headers=alice).json()) == 1

    def test_session_endpoint(self, auth_client: TestClient, auth_config: ConfigManager) -> None:
        """Test the session endpoint reports the subject."""
        data = auth_client.get("/api/v1/auth/session", headers=bearer(auth_config, "alice")).json()
        assert data["signed_in"] is True
        assert data["subject"] == "alice"
        assert data["expires_at"] is not None

    def test_missing_secret_key(self, test_config: ConfigManager) -> None:
        """Test authenticated mode without a signing key is a server error."""
        test_config.set("identity.mode", "authenticated")
        client = TestClient(create_app(test_config))
        assert client.get("/api/v1/records/").status_code == 500
