"""Versioned API router."""

from fastapi import APIRouter

from . import auth, health, overview, reviews, tours, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/users", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(tours.router, prefix="/tours", tags=["tours"])
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
router.include_router(reviews.nested_router, prefix="/tours", tags=["reviews"])
router.include_router(overview.router, prefix="/overview", tags=["overview"])

__all__ = ["router"]
