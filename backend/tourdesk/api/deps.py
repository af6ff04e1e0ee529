"""Common API dependencies, including the authentication gate."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.core.config import Settings, get_settings
from tourdesk.core.security import CredentialStore, TokenService, password_changed_after
from tourdesk.db.session import get_session
from tourdesk.models.user import User, UserRole
from tourdesk.security.permissions import require_roles
from tourdesk.services import user_service
from tourdesk.services.notification_service import EmailNotifier, Notifier
from tourdesk.services.password_reset_service import PasswordResetFlow

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_credential_store(settings: SettingsDep) -> CredentialStore:
    return CredentialStore(settings)


def get_token_service(settings: SettingsDep) -> TokenService:
    return TokenService(settings)


def get_notifier(settings: SettingsDep) -> Notifier:
    return EmailNotifier(settings)


CredentialsDep = Annotated[CredentialStore, Depends(get_credential_store)]
TokensDep = Annotated[TokenService, Depends(get_token_service)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_password_reset_flow(
    settings: SettingsDep,
    credentials: CredentialsDep,
    tokens: TokensDep,
    notifier: NotifierDep,
) -> PasswordResetFlow:
    return PasswordResetFlow(
        settings, credentials=credentials, tokens=tokens, notifier=notifier
    )


def extract_token(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None,
    cookie_name: str,
) -> str | None:
    """Bearer header first, then the session cookie."""
    if bearer is not None and bearer.credentials:
        return bearer.credentials
    return request.cookies.get(cookie_name) or None


async def _resolve_principal(
    session: AsyncSession, tokens: TokenService, token: str | None
) -> User:
    if not token:
        raise errors.MissingTokenError()
    claims = tokens.verify(token)
    user = await user_service.get_user(session, claims.subject)
    if user is None:
        raise errors.UserNotFoundError()
    if password_changed_after(user, claims.issued_at):
        raise errors.StalePasswordError()
    return user


async def protect(
    request: Request, session: SessionDep, tokens: TokensDep, bearer: BearerDep
) -> User:
    """Authenticate the request or stop it with a 401."""
    token = extract_token(request, bearer, tokens.cookie_name)
    user = await _resolve_principal(session, tokens, token)
    request.state.user = user
    return user


async def is_logged_in(
    request: Request, session: SessionDep, tokens: TokensDep, bearer: BearerDep
) -> User | None:
    """Resolve the principal when possible; never rejects the request."""
    token = extract_token(request, bearer, tokens.cookie_name)
    try:
        user = await _resolve_principal(session, tokens, token)
    except errors.AuthenticationError:
        return None
    request.state.user = user
    return user


CurrentUser = Annotated[User, Depends(protect)]
OptionalUser = Annotated[User | None, Depends(is_logged_in)]


def restrict_to(*roles: UserRole) -> Callable[..., Coroutine[Any, Any, User]]:
    """Dependency factory allowing only the given roles past ``protect``."""
    allowed = frozenset(roles)

    async def _require_role(current_user: CurrentUser) -> User:
        require_roles(current_user, allowed)
        return current_user

    return _require_role
