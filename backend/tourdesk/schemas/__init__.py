"""Schema exports."""

from tourdesk.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordUpdateRequest,
    SignupRequest,
    Token,
)
from tourdesk.schemas.common import ResourceList
from tourdesk.schemas.review import (
    ReviewAuthor,
    ReviewCreate,
    ReviewDetail,
    ReviewRead,
    ReviewRecord,
    ReviewUpdate,
)
from tourdesk.schemas.tour import (
    TourCreate,
    TourDetail,
    TourGuide,
    TourRead,
    TourUpdate,
)
from tourdesk.schemas.user import UserRead, UserRecord, UserSelfUpdate, UserUpdate

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "MessageResponse",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PasswordUpdateRequest",
    "ResourceList",
    "ReviewAuthor",
    "ReviewCreate",
    "ReviewDetail",
    "ReviewRead",
    "ReviewRecord",
    "ReviewUpdate",
    "SignupRequest",
    "Token",
    "TourCreate",
    "TourDetail",
    "TourGuide",
    "TourRead",
    "TourUpdate",
    "UserRead",
    "UserRecord",
    "UserSelfUpdate",
    "UserUpdate",
]
