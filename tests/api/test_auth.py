"""Tests for the authentication boundary shared by all routes."""

import pytest

from db.exceptions import DBConnectionError

PROTECTED_ROUTES = [
    ("get", "/api/problems"),
    ("get", "/api/attempts"),
    ("post", "/api/attempts"),
    ("get", "/api/user/stats"),
    ("get", "/api/user/attempts"),
    ("get", "/api/user/achievements"),
    ("get", "/api/user/progress"),
    ("get", "/api/user/profile"),
    ("get", "/api/leaderboard"),
]


@pytest.mark.parametrize("method, path", PROTECTED_ROUTES)
def test_missing_header_is_unauthorized(client, method, path) -> None:
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized"}


def test_blank_header_is_unauthorized(client) -> None:
    response = client.get("/api/problems", headers={"X-Auth-User-Id": "   "})
    assert response.status_code == 401


def test_unknown_user_is_not_found(client, mock_db_manager, auth_headers) -> None:
    mock_db_manager.fetchone.return_value = None
    response = client.get("/api/user/stats", headers=auth_headers)
    assert response.status_code == 404
    assert response.get_json()["error"] == "User not found"


def test_database_failure_during_lookup(client, mock_db_manager, auth_headers) -> None:
    mock_db_manager.fetchone.side_effect = DBConnectionError("connection refused")
    response = client.get("/api/user/stats", headers=auth_headers)
    assert response.status_code == 500
    assert "connection refused" not in response.get_data(as_text=True)


def test_health_needs_no_auth(client) -> None:
    assert client.get("/api/health").get_json() == {"status": "ok"}
