"""Pydantic schemas for tour reviews."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewAuthor(BaseModel):
    """Public slice of the reviewing user."""

    id: uuid.UUID
    name: str
    photo: str

    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(BaseModel):
    """Payload for posting a review; the author is always the caller."""

    review: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    tour_id: uuid.UUID | None = None


class ReviewUpdate(BaseModel):
    """Mutable review fields."""

    review: str | None = None
    rating: int | None = None


class ReviewRecord(BaseModel):
    """Every writable review column, validated on create and update."""

    review: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    tour_id: uuid.UUID
    user_id: uuid.UUID


class ReviewRead(BaseModel):
    """Serialized review."""

    id: uuid.UUID
    review: str
    rating: int
    tour_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewDetail(ReviewRead):
    """Review with its author expanded."""

    user: ReviewAuthor | None = None
