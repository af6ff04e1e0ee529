"""Review endpoints, top level and nested under a tour."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.api.deps import SessionDep, protect, restrict_to
from tourdesk.core import errors
from tourdesk.models.user import User, UserRole
from tourdesk.schemas.common import ResourceList
from tourdesk.schemas.review import ReviewCreate, ReviewDetail, ReviewRead, ReviewUpdate
from tourdesk.security.permissions import require_owner_or_roles
from tourdesk.services.review_service import review_handlers
from tourdesk.services.tour_service import tour_handlers

router = APIRouter()
nested_router = APIRouter()

Reviewer = Annotated[User, Depends(restrict_to(UserRole.USER))]
ReviewEditor = Annotated[User, Depends(restrict_to(UserRole.USER, UserRole.ADMIN))]

_MODERATORS = {UserRole.ADMIN}
_SIGNED_IN = [Depends(protect)]


async def _create_review(
    session: AsyncSession,
    author: User,
    payload: ReviewCreate,
    tour_id: uuid.UUID | None,
) -> ReviewRead:
    if tour_id is None:
        raise errors.ValidationError("Review must belong to a tour.")
    await tour_handlers.get_one(session, tour_id)
    data = payload.model_dump(exclude={"tour_id"})
    data.update(tour_id=tour_id, user_id=author.id)
    review = await review_handlers.create_one(session, data)
    return ReviewRead.model_validate(review)


@router.get(
    "", response_model=ResourceList, summary="List reviews", dependencies=_SIGNED_IN
)
async def list_reviews(request: Request, session: SessionDep) -> ResourceList:
    return await review_handlers.get_all(session, dict(request.query_params))


@router.post(
    "",
    response_model=ReviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Review a tour",
)
async def create_review(
    payload: ReviewCreate, session: SessionDep, current_user: Reviewer
) -> ReviewRead:
    return await _create_review(session, current_user, payload, payload.tour_id)


@router.get(
    "/{review_id}",
    response_model=ReviewDetail,
    summary="Get a review",
    dependencies=_SIGNED_IN,
)
async def get_review(review_id: uuid.UUID, session: SessionDep) -> ReviewDetail:
    review = await review_handlers.get_one(session, review_id)
    return ReviewDetail.model_validate(review)


@router.patch("/{review_id}", response_model=ReviewRead, summary="Edit a review")
async def update_review(
    review_id: uuid.UUID,
    payload: ReviewUpdate,
    session: SessionDep,
    current_user: ReviewEditor,
) -> ReviewRead:
    """Authors edit their own reviews; admins may edit any."""
    review = await review_handlers.get_one(session, review_id)
    require_owner_or_roles(current_user, review.user_id, _MODERATORS)
    review = await review_handlers.update_one(session, review_id, payload)
    return ReviewRead.model_validate(review)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a review",
)
async def delete_review(
    review_id: uuid.UUID, session: SessionDep, current_user: ReviewEditor
) -> Response:
    review = await review_handlers.get_one(session, review_id)
    require_owner_or_roles(current_user, review.user_id, _MODERATORS)
    await review_handlers.delete_one(session, review_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@nested_router.get(
    "/{tour_id}/reviews",
    response_model=ResourceList,
    summary="List a tour's reviews",
    dependencies=_SIGNED_IN,
)
async def list_tour_reviews(
    tour_id: uuid.UUID, request: Request, session: SessionDep
) -> ResourceList:
    return await review_handlers.get_all(
        session, dict(request.query_params), scope={"tour_id": tour_id}
    )


@nested_router.post(
    "/{tour_id}/reviews",
    response_model=ReviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Review this tour",
)
async def create_tour_review(
    tour_id: uuid.UUID,
    payload: ReviewCreate,
    session: SessionDep,
    current_user: Reviewer,
) -> ReviewRead:
    """The tour comes from the path; any tour_id in the body is ignored."""
    return await _create_review(session, current_user, payload, tour_id)
