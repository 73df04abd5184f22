"""Tests for the document server REST API."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fitsync.server.app import create_app
from fitsync.server.database import Database


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Create a test database."""
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def client(db: Database) -> TestClient:
    """Create a test client with the app."""
    return TestClient(create_app(db))


@pytest.fixture
def auth_headers(db: Database) -> dict[str, str]:
    """Create auth headers with a valid token."""
    raw_token, _ = db.create_token("test-device")
    return {"Authorization": f"Bearer {raw_token}"}


DOC_URL = "/api/collections/workoutPlans/documents"


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Health endpoint should return OK without authentication."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuthentication:
    """Tests for bearer token enforcement."""

    def test_missing_token(self, client: TestClient) -> None:
        response = client.get(DOC_URL)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.get(DOC_URL, headers={"Authorization": "Bearer fs_wrong"})
        assert response.status_code == 401

    def test_revoked_token(self, client: TestClient, db: Database) -> None:
        raw_token, token = db.create_token("lost-phone")
        db.revoke_token(token.id)
        response = client.get(DOC_URL, headers={"Authorization": f"Bearer {raw_token}"})
        assert response.status_code == 401


class TestDocumentEndpoints:
    """Tests for document CRUD endpoints."""

    def test_put_creates_document(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        """PUT should create a document and echo it back."""
        response = client.put(
            f"{DOC_URL}/plan-1",
            json={"fields": {"autoTitle": "Push", "order": 1}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "plan-1"
        assert data["collection"] == "workoutPlans"
        assert data["fields"] == {"autoTitle": "Push", "order": 1}

    def test_put_replaces_whole_document(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        """A second PUT should drop fields absent from the new body."""
        client.put(f"{DOC_URL}/plan-1", json={"fields": {"a": 1, "b": 2}}, headers=auth_headers)
        client.put(f"{DOC_URL}/plan-1", json={"fields": {"a": 3}}, headers=auth_headers)

        response = client.get(f"{DOC_URL}/plan-1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["fields"] == {"a": 3}

    def test_get_missing(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get(f"{DOC_URL}/nope", headers=auth_headers)
        assert response.status_code == 404

    def test_list_documents(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        """Listing should only include the requested collection."""
        client.put(f"{DOC_URL}/b", json={"fields": {}}, headers=auth_headers)
        client.put(f"{DOC_URL}/a", json={"fields": {}}, headers=auth_headers)
        client.put("/api/collections/users/documents/u", json={"fields": {}}, headers=auth_headers)

        response = client.get(DOC_URL, headers=auth_headers)

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == ["a", "b"]

    def test_list_unknown_collection_is_empty(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/api/collections/ghosts/documents", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_delete(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        """DELETE should return 204, then 404 once the document is gone."""
        client.put(f"{DOC_URL}/plan-1", json={"fields": {}}, headers=auth_headers)

        first = client.delete(f"{DOC_URL}/plan-1", headers=auth_headers)
        second = client.delete(f"{DOC_URL}/plan-1", headers=auth_headers)

        assert first.status_code == 204
        assert second.status_code == 404

    def test_list_collections(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        client.put(f"{DOC_URL}/p", json={"fields": {}}, headers=auth_headers)
        client.put("/api/collections/users/documents/u", json={"fields": {}}, headers=auth_headers)

        response = client.get("/api/collections", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == ["users", "workoutPlans"]
