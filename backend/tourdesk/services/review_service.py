"""Review persistence and the tour rating aggregate it maintains."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.models.review import Review
from tourdesk.models.tour import DEFAULT_RATINGS_AVERAGE, Tour
from tourdesk.schemas.review import ReviewRecord
from tourdesk.services.handler_factory import ResourceHandlerFactory
from tourdesk.services.repository import Repository

logger = logging.getLogger(__name__)


async def recalculate_tour_ratings(session: AsyncSession, tour_id: uuid.UUID) -> None:
    """Recompute ratings_average/ratings_quantity from the tour's reviews."""
    result = await session.execute(
        select(func.count(Review.id), func.avg(Review.rating)).where(
            Review.tour_id == tour_id
        )
    )
    quantity, average = result.one()
    tour = await session.get(Tour, tour_id)
    if tour is None:
        return
    if quantity:
        tour.ratings_quantity = int(quantity)
        tour.ratings_average = round(float(average), 1)
    else:
        tour.ratings_quantity = 0
        tour.ratings_average = DEFAULT_RATINGS_AVERAGE
    await session.commit()
    logger.debug("Tour %s now has %s ratings", tour_id, tour.ratings_quantity)


async def _refresh_tour_ratings(session: AsyncSession, review: Review) -> None:
    await recalculate_tour_ratings(session, review.tour_id)


review_repository: Repository[Review] = Repository(
    Review, after_write=[_refresh_tour_ratings]
)
review_handlers: ResourceHandlerFactory[Review] = ResourceHandlerFactory(
    review_repository, schema=ReviewRecord
)
