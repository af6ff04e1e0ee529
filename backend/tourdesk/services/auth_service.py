"""Authentication service helpers."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.core.security import CredentialStore
from tourdesk.models.user import User
from tourdesk.schemas.auth import SignupRequest
from tourdesk.services import user_service
from tourdesk.services.notification_service import Notifier

logger = logging.getLogger(__name__)


async def authenticate_user(
    session: AsyncSession, credentials: CredentialStore, *, email: str, password: str
) -> User:
    """Validate credentials and return the matching user."""
    user = await user_service.get_user_by_email(session, email)
    if user is None or not await credentials.verify(password, user.hashed_password):
        raise errors.InvalidCredentialsError()
    return user


async def signup(
    session: AsyncSession,
    credentials: CredentialStore,
    notifier: Notifier,
    payload: SignupRequest,
    *,
    profile_url: str,
) -> User:
    """Register a traveller account and send the welcome email.

    The role is never taken from the request. A failed welcome email is
    logged and does not undo the signup.
    """
    user = await user_service.create_user(
        session,
        credentials,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    try:
        await notifier.send(
            recipient=user.email,
            template="welcome",
            context={"first_name": user.name.split(" ")[0], "url": profile_url},
        )
    except errors.TransientError:
        logger.warning("Welcome email for user %s was not delivered", user.id)
    return user
