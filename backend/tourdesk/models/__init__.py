"""ORM models package export."""

from tourdesk.models.review import Review
from tourdesk.models.tour import (
    DEFAULT_RATINGS_AVERAGE,
    Tour,
    TourDifficulty,
    tour_guides,
)
from tourdesk.models.user import User, UserRole

__all__ = [
    "DEFAULT_RATINGS_AVERAGE",
    "Review",
    "Tour",
    "TourDifficulty",
    "User",
    "UserRole",
    "tour_guides",
]
