"""Domain error taxonomy and the centralized HTTP mapping for it."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that are safe to show to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Something went very wrong!"
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input data"


class InvalidOrExpiredTokenError(ValidationError):
    detail = "Token is invalid or has expired."


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class MissingTokenError(AuthenticationError):
    detail = "You are not logged in! Please log in to get access."


class InvalidTokenError(AuthenticationError):
    detail = "Invalid token. Please log in again!"


class ExpiredTokenError(AuthenticationError):
    detail = "Your token has expired! Please log in again."


class UserNotFoundError(AuthenticationError):
    detail = "The user belonging to this token no longer exists."


class StalePasswordError(AuthenticationError):
    detail = "User recently changed password! Please log in again."


class InvalidCredentialsError(AuthenticationError):
    detail = "Incorrect email or password"


class WrongPasswordError(AuthenticationError):
    detail = "Your current password is wrong."


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "You do not have permission to perform this action"


class ForbiddenError(AuthorizationError):
    pass


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "No document found with that ID"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Duplicate field value. Please use another value!"


class TransientError(AppError):
    """A collaborator (mail transport, network) failed; the request may be retried."""

    detail = "Temporary failure. Try again later!"


class NotificationError(TransientError):
    detail = "There was an error sending the email. Try again later!"


def _error_response(
    status_code: int, detail: str, *, headers: dict[str, str] | None = None, **extra: Any
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, **extra},
        headers=headers,
    )


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return _error_response(exc.status_code, exc.detail, headers=exc.headers)


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.info("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error_response(status.HTTP_409_CONFLICT, ConflictError.detail)


async def _stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        "The document was modified by another request. Please retry.",
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = jsonable_encoder(exc.errors(), exclude={"input", "ctx"})
    return _error_response(
        status.HTTP_400_BAD_REQUEST, ValidationError.detail, errors=errors
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, AppError.detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Funnel every failure raised by a route into one status mapping."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StaleDataError, _stale_data_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)


__all__ = [
    "AppError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ExpiredTokenError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidOrExpiredTokenError",
    "InvalidTokenError",
    "MissingTokenError",
    "NotFoundError",
    "NotificationError",
    "StalePasswordError",
    "TransientError",
    "UserNotFoundError",
    "ValidationError",
    "WrongPasswordError",
    "register_exception_handlers",
]
