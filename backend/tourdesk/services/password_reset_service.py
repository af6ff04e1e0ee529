"""Password reset and password change flows."""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.core.config import Settings
from tourdesk.core.security import CredentialStore, TokenService, as_utc
from tourdesk.models.user import User
from tourdesk.services import user_service
from tourdesk.services.notification_service import Notifier

logger = logging.getLogger(__name__)


def hash_reset_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class PasswordResetFlow:
    """Issue and consume single-use reset tokens and change passwords.

    Only the SHA-256 digest of a reset token is stored; the raw value leaves
    the server once, inside the callback URL handed to the notifier.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        credentials: CredentialStore,
        tokens: TokenService,
        notifier: Notifier,
    ) -> None:
        self._ttl = timedelta(minutes=settings.password_reset_expire_minutes)
        self._reveal_unknown_email = settings.password_reset_reveal_unknown_email
        self._reset_path = f"{settings.api_v1_prefix}/users/resetPassword"
        self._credentials = credentials
        self._tokens = tokens
        self._notifier = notifier

    async def request_reset(
        self, session: AsyncSession, *, email: str, callback_base_url: str
    ) -> None:
        user = await user_service.get_user_by_email(session, email)
        if user is None:
            if self._reveal_unknown_email:
                raise errors.NotFoundError("There is no user with that email address.")
            logger.info("Password reset requested for an unknown email")
            return

        raw_token = secrets.token_hex(32)
        user.password_reset_token = hash_reset_token(raw_token)
        user.password_reset_expires = datetime.now(UTC) + self._ttl
        await session.commit()

        reset_url = f"{callback_base_url.rstrip('/')}{self._reset_path}/{raw_token}"
        delivered = False
        try:
            await self._notifier.send(
                recipient=user.email,
                template="password_reset",
                context={
                    "first_name": user.name.split(" ")[0],
                    "url": reset_url,
                    "expires_minutes": int(self._ttl.total_seconds() // 60),
                },
            )
            delivered = True
        except errors.TransientError as exc:
            raise errors.NotificationError() from exc
        finally:
            if not delivered:
                user.clear_password_reset()
                await session.commit()
                logger.warning("Reset email for user %s failed; token revoked", user.id)
        logger.info("Password reset issued for user %s", user.id)

    async def consume_reset(
        self, session: AsyncSession, *, token: str, new_password: str
    ) -> tuple[User, str]:
        result = await session.execute(
            select(User).where(User.password_reset_token == hash_reset_token(token))
        )
        user = result.scalar_one_or_none()
        if (
            user is None
            or user.password_reset_expires is None
            or as_utc(user.password_reset_expires) <= datetime.now(UTC)
        ):
            raise errors.InvalidOrExpiredTokenError()

        await self._credentials.set_password(user, new_password)
        user.clear_password_reset()
        await session.commit()
        logger.info("Password reset completed for user %s", user.id)
        return user, self._tokens.issue(user.id)

    async def update_password(
        self,
        session: AsyncSession,
        *,
        user: User,
        current_password: str,
        new_password: str,
    ) -> tuple[User, str]:
        if not await self._credentials.verify(current_password, user.hashed_password):
            raise errors.WrongPasswordError()

        await self._credentials.set_password(user, new_password)
        user.clear_password_reset()
        await session.commit()
        logger.info("Password updated for user %s", user.id)
        return user, self._tokens.issue(user.id)
