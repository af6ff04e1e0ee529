"""Tour catalog rules: slugs, guides and secret tours."""

from __future__ import annotations

import re
import unicodedata

from sqlalchemy import ColumnElement, inspect
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.models.tour import Tour
from tourdesk.models.user import UserRole
from tourdesk.schemas.tour import TourCreate
from tourdesk.services.handler_factory import ResourceHandlerFactory
from tourdesk.services.repository import Repository

TOP_CHEAP_PARAMS = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}

GUIDE_ROLES = frozenset({UserRole.GUIDE, UserRole.LEAD_GUIDE})

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode()
    return _NON_SLUG_CHARS.sub("-", normalized.lower()).strip("-")


async def assign_slug(session: AsyncSession, tour: Tour) -> None:
    tour.slug = slugify(tour.name)


async def check_guides(session: AsyncSession, tour: Tour) -> None:
    if "guides" in inspect(tour).unloaded:
        return
    for guide in tour.guides:
        if guide.role not in GUIDE_ROLES:
            raise errors.ValidationError(
                f"User {guide.id} cannot guide tours; "
                "only guides and lead guides can be assigned"
            )


def visible_tours() -> list[ColumnElement[bool]]:
    """Secret tours never show up in reads."""
    return [Tour.secret_tour.is_(False)]


tour_repository: Repository[Tour] = Repository(
    Tour,
    scope=visible_tours,
    references={"guide_ids": "guides"},
    before_write=[assign_slug, check_guides],
)
tour_handlers: ResourceHandlerFactory[Tour] = ResourceHandlerFactory(
    tour_repository, schema=TourCreate
)
