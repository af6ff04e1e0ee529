"""Service layer exports."""
from tourdesk.services import (
    user_service,
    auth_service,
    notification_service,
    password_reset_service,
    review_service,
    tour_service,
)

__all__ = [
    "auth_service",
    "notification_service",
    "password_reset_service",
    "review_service",
    "tour_service",
    "user_service",
]
