"""User model for travellers, guides and administrators."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourdesk.db.base import Base
from tourdesk.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from tourdesk.models.review import Review
    from tourdesk.models.tour import Tour


class UserRole(str, enum.Enum):
    """Role enumeration for platform permissions."""

    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class User(TimestampMixin, Base):
    """User entity for authentication and authorization."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    photo: Mapped[str] = mapped_column(
        String(255), nullable=False, default="default.jpg"
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
        default=UserRole.USER,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    password_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    password_reset_token: Mapped[str | None] = mapped_column(String(128), index=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    guided_tours: Mapped[list["Tour"]] = relationship(
        "Tour",
        secondary="tour_guides",
        back_populates="guides",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None
