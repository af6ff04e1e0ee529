"""Password hashing and session token handling."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
from fastapi import Response
from fastapi.concurrency import run_in_threadpool
from jose import ExpiredSignatureError, JWTError, jwt

from tourdesk.core import errors
from tourdesk.core.config import Settings

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from tourdesk.models.user import User

# Subtracted from password_changed_at so a token reissued in the same second
# as the change still compares as fresh.
PASSWORD_CHANGE_MARGIN = timedelta(seconds=1)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class CredentialStore:
    """bcrypt based password hashing with a configurable cost factor."""

    def __init__(self, settings: Settings) -> None:
        self._rounds = settings.bcrypt_rounds

    def _hash_sync(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(self._rounds)).decode()

    @staticmethod
    def _verify_sync(password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), hashed_password.encode())
        except (ValueError, TypeError):  # guard against malformed hashes
            return False

    async def hash(self, password: str) -> str:
        """Hash a password off the event loop."""
        return await run_in_threadpool(self._hash_sync, password)

    async def verify(self, password: str, hashed_password: str | None) -> bool:
        """Check a password against its hash; never raises on mismatch."""
        if not hashed_password:
            return False
        return await run_in_threadpool(self._verify_sync, password, hashed_password)

    @staticmethod
    def touch_changed_at(user: "User") -> None:
        user.password_changed_at = datetime.now(UTC) - PASSWORD_CHANGE_MARGIN

    async def set_password(self, user: "User", password: str) -> None:
        """Replace a user's password and mark every older session as stale."""
        user.hashed_password = await self.hash(password)
        self.touch_changed_at(user)


@dataclass(frozen=True)
class TokenClaims:
    subject: uuid.UUID
    issued_at: int


class TokenService:
    """Issue and verify signed, stateless session tokens."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self._cookie_name = settings.jwt_cookie_name
        self._cookie_max_age = settings.jwt_cookie_expire_days * 24 * 60 * 60
        self._secure_cookie = settings.is_production

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def issue(self, user_id: uuid.UUID, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise errors.ExpiredTokenError() from exc
        except JWTError as exc:
            raise errors.InvalidTokenError() from exc

        subject = payload.get("sub")
        issued_at = payload.get("iat")
        if subject is None or not isinstance(issued_at, int):
            raise errors.InvalidTokenError()
        try:
            user_id = uuid.UUID(subject)
        except (ValueError, TypeError) as exc:
            raise errors.InvalidTokenError() from exc
        return TokenClaims(subject=user_id, issued_at=issued_at)

    def set_session_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            self._cookie_name,
            token,
            max_age=self._cookie_max_age,
            httponly=True,
            secure=self._secure_cookie,
            samesite="lax",
        )

    def clear_session_cookie(self, response: Response) -> None:
        response.set_cookie(
            self._cookie_name,
            "loggedout",
            max_age=10,
            httponly=True,
            secure=self._secure_cookie,
            samesite="lax",
        )


def password_changed_after(user: "User", issued_at: int) -> bool:
    """Return True when the password changed after a token was issued."""
    if user.password_changed_at is None:
        return False
    changed_at = int(as_utc(user.password_changed_at).timestamp())
    return changed_at > issued_at


__all__ = [
    "CredentialStore",
    "PASSWORD_CHANGE_MARGIN",
    "TokenClaims",
    "TokenService",
    "as_utc",
    "password_changed_after",
]
