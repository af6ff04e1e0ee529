"""Pydantic schemas for tours."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    model_validator,
)

from tourdesk.models.tour import DEFAULT_RATINGS_AVERAGE, TourDifficulty
from tourdesk.models.user import UserRole
from tourdesk.schemas.review import ReviewDetail


class TourBase(BaseModel):
    """Writable tour fields."""

    name: str = Field(min_length=10, max_length=40)
    duration: int = Field(gt=0)
    max_group_size: int = Field(gt=0)
    difficulty: TourDifficulty
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    price_discount: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    summary: str = Field(min_length=1)
    description: str | None = None
    image_cover: str = Field(min_length=1)
    images: list[str] = Field(default_factory=list)
    start_dates: list[datetime] = Field(default_factory=list)
    secret_tour: bool = False
    guide_ids: list[uuid.UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def _discount_below_price(self) -> "TourBase":
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(
                f"Discount price ({self.price_discount}) must be below the regular price"
            )
        return self

    @field_serializer("start_dates")
    def _serialize_start_dates(self, value: list[datetime]) -> list[str]:
        return [item.isoformat() for item in value]

    @model_validator(mode="before")
    @classmethod
    def _strip_text(cls, data: object) -> object:
        if isinstance(data, dict):
            return {
                key: value.strip() if isinstance(value, str) else value
                for key, value in data.items()
            }
        return data


class TourCreate(TourBase):
    """Payload for creating a tour."""


class TourUpdate(BaseModel):
    """Mutable tour fields; merged over the stored tour before validation."""

    name: str | None = None
    duration: int | None = None
    max_group_size: int | None = None
    difficulty: TourDifficulty | None = None
    price: Decimal | None = None
    price_discount: Decimal | None = None
    summary: str | None = None
    description: str | None = None
    image_cover: str | None = None
    images: list[str] | None = None
    start_dates: list[datetime] | None = None
    secret_tour: bool | None = None
    guide_ids: list[uuid.UUID] | None = None


class TourRead(BaseModel):
    """Serialized tour."""

    id: uuid.UUID
    name: str
    slug: str
    duration: int
    max_group_size: int
    difficulty: TourDifficulty
    ratings_average: float = DEFAULT_RATINGS_AVERAGE
    ratings_quantity: int = 0
    price: Decimal
    price_discount: Decimal | None = None
    summary: str
    description: str | None = None
    image_cover: str
    images: list[str]
    start_dates: list[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_weeks(self) -> float:
        return round(self.duration / 7, 2)


class TourGuide(BaseModel):
    """Public profile of a user guiding a tour."""

    id: uuid.UUID
    name: str
    email: str
    photo: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class TourDetail(TourRead):
    """Tour with its guides and reviews expanded."""

    guides: list[TourGuide] = Field(default_factory=list)
    reviews: list[ReviewDetail] = Field(default_factory=list)
