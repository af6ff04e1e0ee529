"""Signup, login and session gate tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from tourdesk.core.config import get_settings
from tourdesk.core.security import TokenService
from tourdesk.db.session import get_sessionmaker
from tourdesk.models import User, UserRole

pytestmark = pytest.mark.asyncio

SIGNUP = {
    "name": "Nora Newcomer",
    "email": "Nora@Example.com",
    "password": "SignMeUp1!",
    "password_confirm": "SignMeUp1!",
}


async def _stored_user(db_url: str, email: str) -> User | None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


async def test_signup_creates_user_role_and_session(
    app_context: dict[str, Any], db_url: str
) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/users/signup", json={**SIGNUP, "role": "admin"}
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["access_token"]
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "nora@example.com"
    assert body["user"]["role"] == "user"
    assert "hashed_password" not in body["user"]
    assert response.cookies.get("jwt") == body["access_token"]

    stored = await _stored_user(db_url, "nora@example.com")
    assert stored is not None
    assert stored.role is UserRole.USER
    assert stored.hashed_password != SIGNUP["password"]
    assert stored.password_changed_at is None

    welcome = app_context["notifier"].sent[-1]
    assert welcome["template"] == "welcome"
    assert welcome["recipient"] == "nora@example.com"
    assert welcome["context"]["first_name"] == "Nora"


async def test_signup_survives_welcome_failure(app_context: dict[str, Any]) -> None:
    app_context["notifier"].fail = True
    response = await app_context["client"].post("/api/v1/users/signup", json=SIGNUP)
    assert response.status_code == 201


async def test_signup_rejects_mismatch_and_duplicates(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    mismatch = await client.post(
        "/api/v1/users/signup", json={**SIGNUP, "password_confirm": "Different1!"}
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["errors"]

    duplicate = await client.post(
        "/api/v1/users/signup", json={**SIGNUP, "email": app_context["user_email"]}
    )
    assert duplicate.status_code == 409


async def test_login_success_and_failures(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    ok = await client.post(
        "/api/v1/users/login",
        json={"email": app_context["user_email"], "password": app_context["password"]},
    )
    assert ok.status_code == 200
    assert ok.json()["access_token"]
    set_cookie = ok.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "; secure" not in set_cookie

    wrong = await client.post(
        "/api/v1/users/login",
        json={"email": app_context["user_email"], "password": "not-the-password"},
    )
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Incorrect email or password"

    unknown = await client.post(
        "/api/v1/users/login",
        json={"email": "nobody@example.com", "password": "whatever1"},
    )
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == "Incorrect email or password"

    missing = await client.post(
        "/api/v1/users/login", json={"email": app_context["user_email"]}
    )
    assert missing.status_code == 400


async def test_me_requires_token(app_context: dict[str, Any], login) -> None:
    client: AsyncClient = app_context["client"]
    anonymous = await client.get("/api/v1/users/me")
    assert anonymous.status_code == 401
    assert anonymous.json()["detail"].startswith("You are not logged in")
    assert anonymous.headers["www-authenticate"] == "Bearer"

    headers = await login(app_context["user_email"])
    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["id"] == str(app_context["user_id"])


async def test_cookie_session_and_header_precedence(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    await client.post(
        "/api/v1/users/login",
        json={"email": app_context["user_email"], "password": app_context["password"]},
    )
    via_cookie = await client.get("/api/v1/users/me")
    assert via_cookie.status_code == 200
    assert via_cookie.json()["email"] == app_context["user_email"]

    admin_token = TokenService(get_settings()).issue(app_context["admin_id"])
    via_header = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {admin_token}"}
    )
    assert via_header.json()["email"] == app_context["admin_email"]


async def test_logout_replaces_cookie(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    await client.post(
        "/api/v1/users/login",
        json={"email": app_context["user_email"], "password": app_context["password"]},
    )
    response = await client.get("/api/v1/users/logout")
    assert response.status_code == 200
    assert client.cookies.get("jwt") == "loggedout"

    after = await client.get("/api/v1/users/me")
    assert after.status_code == 401
    assert after.json()["detail"] == "Invalid token. Please log in again!"


async def test_rejects_invalid_expired_and_orphaned_tokens(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    tokens = TokenService(get_settings())

    garbage = await client.get(
        "/api/v1/users/me", headers={"Authorization": "Bearer not.a.token"}
    )
    assert garbage.status_code == 401

    expired = tokens.issue(
        app_context["user_id"], now=datetime.now(UTC) - timedelta(days=400)
    )
    response = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {expired}"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Your token has expired! Please log in again."

    doomed = await login(app_context["other_user_email"])
    admin = await login(app_context["admin_email"])
    deleted = await client.delete(
        f"/api/v1/users/{app_context['other_user_id']}", headers=admin
    )
    assert deleted.status_code == 204
    orphan = await client.get("/api/v1/users/me", headers=doomed)
    assert orphan.status_code == 401
    assert orphan.json()["detail"] == (
        "The user belonging to this token no longer exists."
    )


async def test_password_change_invalidates_older_tokens(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    tokens = TokenService(get_settings())
    old_token = tokens.issue(
        app_context["user_id"], now=datetime.now(UTC) - timedelta(hours=1)
    )
    old_headers = {"Authorization": f"Bearer {old_token}"}
    assert (await client.get("/api/v1/users/me", headers=old_headers)).status_code == 200

    headers = await login(app_context["user_email"])
    changed = await client.patch(
        "/api/v1/users/updateMyPassword",
        headers=headers,
        json={
            "password_current": app_context["password"],
            "password": "BrandNew1!",
            "password_confirm": "BrandNew1!",
        },
    )
    assert changed.status_code == 200, changed.text
    fresh_headers = {"Authorization": f"Bearer {changed.json()['access_token']}"}
    client.cookies.clear()

    stale = await client.get("/api/v1/users/me", headers=old_headers)
    assert stale.status_code == 401
    assert stale.json()["detail"] == "User recently changed password! Please log in again."

    fresh = await client.get("/api/v1/users/me", headers=fresh_headers)
    assert fresh.status_code == 200


async def test_restrict_to_checks_roles(app_context: dict[str, Any], login) -> None:
    client: AsyncClient = app_context["client"]
    user_headers = await login(app_context["user_email"])
    forbidden = await client.get("/api/v1/users", headers=user_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == (
        "You do not have permission to perform this action"
    )

    admin_headers = await login(app_context["admin_email"])
    allowed = await client.get("/api/v1/users", headers=admin_headers)
    assert allowed.status_code == 200
    body = allowed.json()
    assert body["results"] == body["total"] == 5
    assert all("hashed_password" not in row for row in body["data"])
    assert all("version_id" not in row for row in body["data"])


async def test_user_listing_rejects_credential_fields(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    headers = await login(app_context["admin_email"])
    for params in (
        {"hashed_password": "x"},
        {"fields": "email,password_reset_token"},
        {"sort": "hashed_password"},
    ):
        response = await client.get("/api/v1/users", params=params, headers=headers)
        assert response.status_code == 400


async def test_admin_manages_users(app_context: dict[str, Any], login) -> None:
    client: AsyncClient = app_context["client"]
    headers = await login(app_context["admin_email"])
    user_url = f"/api/v1/users/{app_context['guide_id']}"

    fetched = await client.get(user_url, headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["role"] == "guide"

    promoted = await client.patch(
        user_url, headers=headers, json={"role": "lead-guide"}
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "lead-guide"
    assert promoted.json()["name"] == "Gus Guide"

    missing = await client.get(
        "/api/v1/users/00000000-0000-0000-0000-000000000000", headers=headers
    )
    assert missing.status_code == 404
    assert missing.json()["detail"] == "No document found with that ID"


async def test_update_me_changes_profile_only(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    headers = await login(app_context["user_email"])

    updated = await client.patch(
        "/api/v1/users/updateMe", headers=headers, json={"name": "Tara T."}
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Tara T."

    with_password = await client.patch(
        "/api/v1/users/updateMe",
        headers=headers,
        json={"password": "Sneaky123!", "password_confirm": "Sneaky123!"},
    )
    assert with_password.status_code == 400
    assert "updateMyPassword" in str(with_password.json()["errors"])

    with_role = await client.patch(
        "/api/v1/users/updateMe", headers=headers, json={"role": "admin"}
    )
    assert with_role.status_code == 400


async def test_overview_personalizes_without_rejecting(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    anonymous = await client.get("/api/v1/overview")
    assert anonymous.status_code == 200
    assert anonymous.json()["user"] is None

    bad = await client.get(
        "/api/v1/overview", headers={"Authorization": "Bearer broken"}
    )
    assert bad.status_code == 200
    assert bad.json()["user"] is None

    headers = await login(app_context["user_email"])
    personal = await client.get("/api/v1/overview", headers=headers)
    assert personal.json()["user"]["email"] == app_context["user_email"]
