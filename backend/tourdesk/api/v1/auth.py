"""Account authentication endpoints: signup, login and password flows."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from tourdesk.api.deps import (
    CredentialsDep,
    CurrentUser,
    NotifierDep,
    SessionDep,
    TokensDep,
    get_password_reset_flow,
)
from tourdesk.api.rate_limit import rate_limit
from tourdesk.core.config import get_settings
from tourdesk.core.security import TokenService
from tourdesk.models.user import User
from tourdesk.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordUpdateRequest,
    SignupRequest,
)
from tourdesk.schemas.user import UserRead
from tourdesk.services import auth_service
from tourdesk.services.password_reset_service import PasswordResetFlow

router = APIRouter()

_settings = get_settings()

_LOGIN_RATE_DEP = rate_limit(_settings.rate_limit_login, fallback=(10, 60))
_DEFAULT_RATE_DEP = rate_limit(_settings.rate_limit_default, fallback=(100, 3600))

ResetFlowDep = Annotated[PasswordResetFlow, Depends(get_password_reset_flow)]


def _session_response(
    response: Response, tokens: TokenService, user: User, token: str | None = None
) -> AuthResponse:
    """Attach the session cookie and echo the token with the user."""
    token = token or tokens.issue(user.id)
    tokens.set_session_cookie(response, token)
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a traveller account",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def signup(
    payload: SignupRequest,
    request: Request,
    response: Response,
    session: SessionDep,
    credentials: CredentialsDep,
    tokens: TokensDep,
    notifier: NotifierDep,
) -> AuthResponse:
    user = await auth_service.signup(
        session,
        credentials,
        notifier,
        payload,
        profile_url=f"{_base_url(request)}{_settings.api_v1_prefix}/users/me",
    )
    return _session_response(response, tokens, user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
    dependencies=[_LOGIN_RATE_DEP],
)
async def login(
    payload: LoginRequest,
    response: Response,
    session: SessionDep,
    credentials: CredentialsDep,
    tokens: TokensDep,
) -> AuthResponse:
    """Validate credentials and issue a session token."""
    user = await auth_service.authenticate_user(
        session, credentials, email=payload.email, password=payload.password
    )
    return _session_response(response, tokens, user)


@router.get("/logout", response_model=MessageResponse, summary="Log out")
async def logout(response: Response, tokens: TokensDep) -> MessageResponse:
    """Overwrite the session cookie with a short-lived placeholder."""
    tokens.clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.post(
    "/forgotPassword",
    response_model=MessageResponse,
    summary="Email a password reset link",
    dependencies=[_LOGIN_RATE_DEP],
)
async def forgot_password(
    payload: PasswordResetRequest,
    request: Request,
    session: SessionDep,
    flow: ResetFlowDep,
) -> MessageResponse:
    await flow.request_reset(
        session, email=payload.email, callback_base_url=_base_url(request)
    )
    return MessageResponse(message="Token sent to email!")


@router.patch(
    "/resetPassword/{token}",
    response_model=AuthResponse,
    summary="Set a new password with a reset token",
    dependencies=[_LOGIN_RATE_DEP],
)
async def reset_password(
    token: str,
    payload: PasswordResetConfirm,
    response: Response,
    session: SessionDep,
    tokens: TokensDep,
    flow: ResetFlowDep,
) -> AuthResponse:
    user, session_token = await flow.consume_reset(
        session, token=token, new_password=payload.password
    )
    return _session_response(response, tokens, user, session_token)


@router.patch(
    "/updateMyPassword",
    response_model=AuthResponse,
    summary="Change the current user's password",
)
async def update_my_password(
    payload: PasswordUpdateRequest,
    response: Response,
    current_user: CurrentUser,
    session: SessionDep,
    tokens: TokensDep,
    flow: ResetFlowDep,
) -> AuthResponse:
    """Verify the current password, store the new one and reissue the session."""
    user, session_token = await flow.update_password(
        session,
        user=current_user,
        current_password=payload.password_current,
        new_password=payload.password,
    )
    return _session_response(response, tokens, user, session_token)
