"""Tests for admin login, logout and the session guard."""

from datetime import timedelta

from fastapi.testclient import TestClient

from src.auth.security import create_admin_session_token
from src.config.settings import get_settings


def test_login_sets_http_only_cookie(client: TestClient) -> None:
    settings = get_settings()

    response = client.post(
        "/v1/admin/login",
        json={"username": settings.admin_username, "password": settings.admin_password},
    )

    assert response.status_code == 200
    assert response.json()["username"] == settings.admin_username
    set_cookie = response.headers["set-cookie"]
    assert settings.admin_cookie_name in set_cookie
    assert "HttpOnly" in set_cookie


def test_login_wrong_password(client: TestClient) -> None:
    response = client.post(
        "/v1/admin/login", json={"username": "admin", "password": "nope"}
    )
    assert response.status_code == 401
    assert "set-cookie" not in response.headers


def test_session_requires_cookie(client: TestClient) -> None:
    client.cookies.clear()
    response = client.get("/v1/admin/session")
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized access"


def test_session_with_cookie(client: TestClient, admin_cookies) -> None:
    client.cookies.update(admin_cookies)
    response = client.get("/v1/admin/session")
    assert response.status_code == 200
    assert response.json()["username"] == "admin"


def test_session_with_expired_cookie(client: TestClient) -> None:
    token, _ = create_admin_session_token("admin", timedelta(seconds=-1))
    client.cookies.set(get_settings().admin_cookie_name, token)

    response = client.get("/v1/admin/session")

    assert response.status_code == 401
    assert response.json()["message"] == "Session invalid or expired"


def test_session_with_tampered_cookie(client: TestClient, admin_cookies) -> None:
    name = get_settings().admin_cookie_name
    client.cookies.set(name, admin_cookies[name][:-2] + "xx")

    response = client.get("/v1/admin/session")

    assert response.status_code == 401


def test_logout_clears_cookie(client: TestClient, admin_cookies) -> None:
    client.cookies.update(admin_cookies)
    response = client.post("/v1/admin/logout")

    assert response.status_code == 200
    assert get_settings().admin_cookie_name in response.headers["set-cookie"]


def test_admin_routes_are_guarded(client: TestClient) -> None:
    client.cookies.clear()
    assert client.get("/v1/admin/registrants").status_code == 401
    assert client.get("/v1/admin/email/status").status_code == 401
