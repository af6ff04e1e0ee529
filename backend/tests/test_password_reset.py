"""Password reset and password change flow tests."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta
from collections.abc import Mapping
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from tourdesk.core.config import get_settings
from tourdesk.core.security import CredentialStore, TokenService
from tourdesk.db.session import get_sessionmaker
from tourdesk.models import User
from tourdesk.services.password_reset_service import PasswordResetFlow

pytestmark = pytest.mark.asyncio

NEW_PASSWORD = {"password": "Recovered1!", "password_confirm": "Recovered1!"}


async def _load_user(db_url: str, email: str) -> User:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one()


async def _request_reset(app_context: dict[str, Any], email: str) -> str:
    client: AsyncClient = app_context["client"]
    response = await client.post("/api/v1/users/forgotPassword", json={"email": email})
    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Token sent to email!"
    return app_context["notifier"].last_url().rsplit("/", 1)[1]


async def test_reset_token_is_single_use(
    app_context: dict[str, Any], db_url: str
) -> None:
    client: AsyncClient = app_context["client"]
    email = app_context["user_email"]
    raw_token = await _request_reset(app_context, email)

    message = app_context["notifier"].sent[-1]
    assert message["template"] == "password_reset"
    assert message["recipient"] == email
    assert message["context"]["url"].startswith(
        "http://test/api/v1/users/resetPassword/"
    )

    stored = await _load_user(db_url, email)
    assert stored.password_reset_token == hashlib.sha256(raw_token.encode()).hexdigest()
    assert stored.password_reset_expires is not None

    first = await client.patch(
        f"/api/v1/users/resetPassword/{raw_token}", json=NEW_PASSWORD
    )
    assert first.status_code == 200, first.text
    assert first.json()["access_token"]
    assert first.json()["user"]["email"] == email
    assert raw_token not in first.text

    second = await client.patch(
        f"/api/v1/users/resetPassword/{raw_token}", json=NEW_PASSWORD
    )
    assert second.status_code == 400
    assert second.json()["detail"] == "Token is invalid or has expired."

    stored = await _load_user(db_url, email)
    assert stored.password_reset_token is None
    assert stored.password_reset_expires is None
    assert stored.password_changed_at is not None

    client.cookies.clear()
    old_login = await client.post(
        "/api/v1/users/login", json={"email": email, "password": app_context["password"]}
    )
    assert old_login.status_code == 401
    new_login = await client.post(
        "/api/v1/users/login", json={"email": email, "password": "Recovered1!"}
    )
    assert new_login.status_code == 200


async def test_expired_reset_token_rejected(
    app_context: dict[str, Any], db_url: str
) -> None:
    client: AsyncClient = app_context["client"]
    email = app_context["user_email"]
    raw_token = await _request_reset(app_context, email)

    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        user = (
            await session.execute(select(User).where(User.email == email))
        ).scalar_one()
        user.password_reset_expires = datetime.now(UTC) - timedelta(minutes=1)
        await session.commit()

    response = await client.patch(
        f"/api/v1/users/resetPassword/{raw_token}", json=NEW_PASSWORD
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Token is invalid or has expired."


async def test_unknown_reset_token_rejected(app_context: dict[str, Any]) -> None:
    response = await app_context["client"].patch(
        "/api/v1/users/resetPassword/" + "ab" * 32, json=NEW_PASSWORD
    )
    assert response.status_code == 400


async def test_dispatch_failure_revokes_token(
    app_context: dict[str, Any], db_url: str
) -> None:
    email = app_context["user_email"]
    app_context["notifier"].fail = True

    response = await app_context["client"].post(
        "/api/v1/users/forgotPassword", json={"email": email}
    )
    assert response.status_code == 500
    assert response.json()["detail"] == (
        "There was an error sending the email. Try again later!"
    )

    stored = await _load_user(db_url, email)
    assert stored.password_reset_token is None
    assert stored.password_reset_expires is None


class BrokenNotifier:
    async def send(
        self, *, recipient: str, template: str, context: Mapping[str, Any]
    ) -> None:
        raise RuntimeError("template context mismatch")


async def test_unexpected_dispatch_error_still_revokes_token(
    app_context: dict[str, Any], db_url: str
) -> None:
    email = app_context["user_email"]
    settings = get_settings()
    flow = PasswordResetFlow(
        settings,
        credentials=CredentialStore(settings),
        tokens=TokenService(settings),
        notifier=BrokenNotifier(),
    )

    async with get_sessionmaker(db_url)() as session:
        with pytest.raises(RuntimeError):
            await flow.request_reset(
                session, email=email, callback_base_url="http://test"
            )

    stored = await _load_user(db_url, email)
    assert stored.password_reset_token is None
    assert stored.password_reset_expires is None


async def test_unknown_email_gets_uniform_response(
    app_context: dict[str, Any],
) -> None:
    notifier = app_context["notifier"]
    response = await app_context["client"].post(
        "/api/v1/users/forgotPassword", json={"email": "ghost@example.com"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Token sent to email!"
    assert notifier.sent == []


async def test_unknown_email_can_be_revealed(
    app_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PASSWORD_RESET_REVEAL_UNKNOWN_EMAIL", "true")
    get_settings.cache_clear()
    try:
        response = await app_context["client"].post(
            "/api/v1/users/forgotPassword", json={"email": "ghost@example.com"}
        )
    finally:
        monkeypatch.delenv("PASSWORD_RESET_REVEAL_UNKNOWN_EMAIL")
        get_settings.cache_clear()
    assert response.status_code == 404
    assert response.json()["detail"] == "There is no user with that email address."


async def test_reset_requires_matching_confirmation(
    app_context: dict[str, Any],
) -> None:
    raw_token = await _request_reset(app_context, app_context["user_email"])
    response = await app_context["client"].patch(
        f"/api/v1/users/resetPassword/{raw_token}",
        json={"password": "Recovered1!", "password_confirm": "Recovered2!"},
    )
    assert response.status_code == 400


async def test_update_password_with_wrong_current_password(
    app_context: dict[str, Any], db_url: str, login
) -> None:
    client: AsyncClient = app_context["client"]
    email = app_context["user_email"]
    headers = await login(email)
    before = (await _load_user(db_url, email)).hashed_password

    response = await client.patch(
        "/api/v1/users/updateMyPassword",
        headers=headers,
        json={
            "password_current": "not-my-password",
            "password": "BrandNew1!",
            "password_confirm": "BrandNew1!",
        },
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Your current password is wrong."

    after = await _load_user(db_url, email)
    assert after.hashed_password == before
    assert after.password_changed_at is None


async def test_update_password_reissues_session(
    app_context: dict[str, Any], login
) -> None:
    client: AsyncClient = app_context["client"]
    email = app_context["user_email"]
    headers = await login(email)

    response = await client.patch(
        "/api/v1/users/updateMyPassword",
        headers=headers,
        json={
            "password_current": app_context["password"],
            "password": "BrandNew1!",
            "password_confirm": "BrandNew1!",
        },
    )
    assert response.status_code == 200
    assert response.cookies.get("jwt") == response.json()["access_token"]

    client.cookies.clear()
    relogin = await client.post(
        "/api/v1/users/login", json={"email": email, "password": "BrandNew1!"}
    )
    assert relogin.status_code == 200
