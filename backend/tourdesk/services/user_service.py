"""User data access helpers."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.core.security import CredentialStore
from tourdesk.models.user import User, UserRole
from tourdesk.schemas.user import UserRecord, UserSelfUpdate
from tourdesk.services import review_service
from tourdesk.services.handler_factory import ResourceHandlerFactory
from tourdesk.services.repository import Repository

CREDENTIAL_FIELDS = (
    "hashed_password",
    "password_changed_at",
    "password_reset_token",
    "password_reset_expires",
)

user_repository: Repository[User] = Repository(User, hidden_fields=CREDENTIAL_FIELDS)
user_handlers: ResourceHandlerFactory[User] = ResourceHandlerFactory(
    user_repository, schema=UserRecord
)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Return a user by email address."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return a user by ID."""
    return await user_repository.find_by_id(session, user_id)


async def create_user(
    session: AsyncSession,
    credentials: CredentialStore,
    *,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Persist a new user with a hashed password.

    Account creation does not stamp ``password_changed_at``.
    """
    user = User(
        name=name,
        email=email.lower(),
        hashed_password=await credentials.hash(password),
        role=role,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise errors.ConflictError("Email already registered") from exc
    await session.refresh(user)
    return user


async def update_profile(
    session: AsyncSession, user: User, payload: UserSelfUpdate
) -> User:
    """Apply self-service profile changes through the generic update path."""
    return await user_handlers.update_one(session, user.id, payload)


async def delete_user(session: AsyncSession, user_id: uuid.UUID) -> None:
    """Delete a user with their reviews and refresh the affected tour ratings."""
    user = await user_handlers.get_one(session, user_id, expand=("reviews",))
    reviewed_tours = {review.tour_id for review in user.reviews}
    await user_handlers.delete_one(session, user_id)
    for tour_id in reviewed_tours:
        await review_service.recalculate_tour_ratings(session, tour_id)
