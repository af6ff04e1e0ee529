"""Tour catalog endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response, status

from tourdesk.api.deps import SessionDep, restrict_to
from tourdesk.models.user import UserRole
from tourdesk.schemas.common import ResourceList
from tourdesk.schemas.tour import TourCreate, TourDetail, TourRead, TourUpdate
from tourdesk.services.tour_service import TOP_CHEAP_PARAMS, tour_handlers

router = APIRouter()

_TOUR_MANAGERS = [Depends(restrict_to(UserRole.ADMIN, UserRole.LEAD_GUIDE))]


@router.get("", response_model=ResourceList, summary="List tours")
async def list_tours(request: Request, session: SessionDep) -> ResourceList:
    """Filter, sort, project and paginate the public catalog."""
    return await tour_handlers.get_all(session, dict(request.query_params))


@router.get(
    "/top-5-cheap", response_model=ResourceList, summary="Best rated budget tours"
)
async def top_cheap_tours(request: Request, session: SessionDep) -> ResourceList:
    """The list endpoint with preset parameters; explicit filters still apply."""
    params = {**request.query_params, **TOP_CHEAP_PARAMS}
    return await tour_handlers.get_all(session, params)


@router.post(
    "",
    response_model=TourRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tour",
    dependencies=_TOUR_MANAGERS,
)
async def create_tour(payload: TourCreate, session: SessionDep) -> TourRead:
    tour = await tour_handlers.create_one(session, payload)
    return TourRead.model_validate(tour)


@router.get("/{tour_id}", response_model=TourDetail, summary="Get a tour")
async def get_tour(tour_id: uuid.UUID, session: SessionDep) -> TourDetail:
    tour = await tour_handlers.get_one(session, tour_id, expand=("guides", "reviews"))
    return TourDetail.model_validate(tour)


@router.patch(
    "/{tour_id}",
    response_model=TourRead,
    summary="Update a tour",
    dependencies=_TOUR_MANAGERS,
)
async def update_tour(
    tour_id: uuid.UUID, payload: TourUpdate, session: SessionDep
) -> TourRead:
    tour = await tour_handlers.update_one(session, tour_id, payload)
    return TourRead.model_validate(tour)


@router.delete(
    "/{tour_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a tour",
    dependencies=_TOUR_MANAGERS,
)
async def delete_tour(tour_id: uuid.UUID, session: SessionDep) -> Response:
    """Remove a tour together with its reviews and guide assignments."""
    await tour_handlers.delete_one(session, tour_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
