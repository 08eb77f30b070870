"""API routes mounted under API_PREFIX."""

from fastapi import APIRouter

from app.api.routes import announcements, auth, health, users

router = APIRouter()
router.include_router(health.router, tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
