"""Tests for the FastAPI routes."""

import pytest
from fastapi.testclient import TestClient

from reflex_filter_grid.api import create_api
from reflex_filter_grid.auth import TokenIssuer
from reflex_filter_grid.config import CookieSettings, GridAppSettings, TokenSettings
from reflex_filter_grid.repository import EmployeeRepository


@pytest.fixture()
def settings() -> GridAppSettings:
    return GridAppSettings(
        token=TokenSettings(secret="api-secret", ttl_seconds=120),
        cookie=CookieSettings(),
    )


@pytest.fixture()
def client(settings: GridAppSettings, repository: EmployeeRepository) -> TestClient:
    return TestClient(create_api(settings=settings, repository=repository))


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/auth/login", json={"username": "test", "password": "test123"})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestLogin:
    """Tests for ``POST /auth/login``."""

    def test_success(self, client: TestClient):
        """Valid credentials return a token and set the cookie."""
        response = client.post("/auth/login", json={"username": "test", "password": "test123"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["access_token"]
        assert response.cookies.get("access_token") == body["access_token"]
        set_cookie = response.headers["set-cookie"].lower()
        assert "max-age=120" in set_cookie
        assert "samesite=strict" in set_cookie

    def test_bad_credentials(self, client: TestClient):
        """Wrong passwords get HTTP 401 with a message."""
        response = client.post("/auth/login", json={"username": "test", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_missing_fields(self, client: TestClient):
        """Malformed bodies are rejected by validation."""
        response = client.post("/auth/login", json={"username": "test"})
        assert response.status_code == 422


class TestTasks:
    """Tests for the bearer-protected listing routes."""

    def test_requires_token(self, client: TestClient):
        """Missing tokens get HTTP 401."""
        response = client.get("/tasks/table-data")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication token required"

    def test_rejects_invalid_token(self, client: TestClient):
        """Tokens that fail verification get HTTP 401."""
        response = client.get("/tasks/column-info", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    def test_rejects_foreign_token(self, client: TestClient):
        """Tokens signed with another secret are not accepted."""
        token = TokenIssuer(TokenSettings(secret="other")).login("test", "test123")
        response = client.get("/tasks/table-data", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_table_data_unfiltered(self, client: TestClient, auth_headers: dict[str, str]):
        """No query parameters list every row."""
        response = client.get("/tasks/table-data", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 8
        assert len(body["data"]) == 8

    def test_table_data_filtered(self, client: TestClient, auth_headers: dict[str, str]):
        """Query parameters are applied as filters."""
        response = client.get(
            "/tasks/table-data",
            params={"department": "개발팀", "age": "30"},
            headers=auth_headers,
        )
        body = response.json()
        assert [row["id"] for row in body["data"]] == [1, 7]
        assert body["total"] == 2

    def test_repeated_number_parameter_is_ignored(self, client: TestClient, auth_headers: dict[str, str]):
        """``?age=30&age=40`` does not constrain a number filter."""
        response = client.get("/tasks/table-data?age=30&age=40", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 8

    def test_column_info(self, client: TestClient, auth_headers: dict[str, str]):
        """Column descriptors are served as camelCase JSON."""
        response = client.get("/tasks/column-info", headers=auth_headers)
        columns = response.json()
        assert [c["key"] for c in columns][:2] == ["name", "email"]
        assert columns[4]["valueType"] == "number"
        assert columns[0]["bodyOptions"]["clickable"] is True
