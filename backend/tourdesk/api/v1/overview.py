"""Landing overview personalized for signed-in visitors."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from tourdesk.api.deps import OptionalUser, SessionDep
from tourdesk.schemas.common import ResourceList
from tourdesk.schemas.user import UserRead
from tourdesk.services.tour_service import tour_handlers

router = APIRouter()


class Overview(BaseModel):
    user: UserRead | None = None
    tours: ResourceList


@router.get("", response_model=Overview, summary="Tour overview")
async def overview(session: SessionDep, current_user: OptionalUser) -> Overview:
    """Never rejects; an invalid or missing session just yields an anonymous view."""
    tours = await tour_handlers.get_all(session, {})
    user = UserRead.model_validate(current_user) if current_user else None
    return Overview(user=user, tours=tours)
