"""User profile and administrative user endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response, status

from tourdesk.api.deps import CurrentUser, SessionDep, restrict_to
from tourdesk.models.user import UserRole
from tourdesk.schemas.common import ResourceList
from tourdesk.schemas.user import UserRead, UserSelfUpdate, UserUpdate
from tourdesk.services import user_service
from tourdesk.services.user_service import user_handlers

router = APIRouter()

_ADMIN_ONLY = [Depends(restrict_to(UserRole.ADMIN))]


@router.get("/me", response_model=UserRead, summary="Current user profile")
async def read_current_user(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)


@router.patch("/updateMe", response_model=UserRead, summary="Update own profile")
async def update_current_user(
    payload: UserSelfUpdate, current_user: CurrentUser, session: SessionDep
) -> UserRead:
    """Change name or email; password fields are rejected by the schema."""
    user = await user_service.update_profile(session, current_user, payload)
    return UserRead.model_validate(user)


@router.get(
    "",
    response_model=ResourceList,
    summary="List users",
    dependencies=_ADMIN_ONLY,
)
async def list_users(request: Request, session: SessionDep) -> ResourceList:
    return await user_handlers.get_all(session, dict(request.query_params))


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get a user",
    dependencies=_ADMIN_ONLY,
)
async def get_user(user_id: uuid.UUID, session: SessionDep) -> UserRead:
    user = await user_handlers.get_one(session, user_id)
    return UserRead.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update a user",
    dependencies=_ADMIN_ONLY,
)
async def update_user(
    user_id: uuid.UUID, payload: UserUpdate, session: SessionDep
) -> UserRead:
    """Administrative update; passwords are only changed through the auth flows."""
    user = await user_handlers.update_one(session, user_id, payload)
    return UserRead.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a user",
    dependencies=_ADMIN_ONLY,
)
async def delete_user(user_id: uuid.UUID, session: SessionDep) -> Response:
    await user_service.delete_user(session, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
