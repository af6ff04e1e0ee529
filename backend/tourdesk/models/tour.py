"""Tour catalog model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourdesk.db.base import Base
from tourdesk.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from tourdesk.models.review import Review
    from tourdesk.models.user import User

DEFAULT_RATINGS_AVERAGE = 4.5


tour_guides = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class TourDifficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


class Tour(TimestampMixin, Base):
    """A bookable tour with aggregated review statistics."""

    __tablename__ = "tours"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    max_group_size: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[TourDifficulty] = mapped_column(
        Enum(
            TourDifficulty,
            values_callable=lambda levels: [level.value for level in levels],
        ),
        nullable=False,
    )
    ratings_average: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_RATINGS_AVERAGE
    )
    ratings_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_discount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    image_cover: Mapped[str] = mapped_column(String(255), nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    start_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    secret_tour: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="tour",
        cascade="all, delete-orphan",
        order_by="Review.created_at.desc()",
    )
    guides: Mapped[list["User"]] = relationship(
        "User",
        secondary=tour_guides,
        back_populates="guided_tours",
        order_by="User.name",
    )

    __mapper_args__ = {"version_id_col": version_id}
