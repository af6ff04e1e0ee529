"""Tour review model."""
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourdesk.db.base import Base
from tourdesk.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from tourdesk.models.tour import Tour
    from tourdesk.models.user import User


class Review(TimestampMixin, Base):
    """A single user's rating of a tour."""

    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    review: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    tour_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    tour: Mapped["Tour"] = relationship("Tour", back_populates="reviews")
    user: Mapped["User"] = relationship("User", back_populates="reviews", lazy="selectin")

    __mapper_args__ = {"version_id_col": version_id}
