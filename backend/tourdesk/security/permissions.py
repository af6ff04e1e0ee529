"""Role helper for explicit authorization checks."""

from __future__ import annotations

from collections.abc import Collection

from tourdesk.core import errors
from tourdesk.models.user import User, UserRole


def require_roles(user: User, allowed: Collection[UserRole]) -> None:
    """Raise ForbiddenError if a user is not a member of the allowed role set."""

    if user.role not in allowed:
        raise errors.ForbiddenError()


def require_owner_or_roles(
    user: User, owner_id: object, allowed: Collection[UserRole]
) -> None:
    """Allow the owner of a record, or any member of the allowed roles."""

    if user.id != owner_id:
        require_roles(user, allowed)


__all__ = ["require_owner_or_roles", "require_roles"]
