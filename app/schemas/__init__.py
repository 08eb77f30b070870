"""Pydantic request/response schemas."""

from app.schemas.announcements import (
    AnnouncementIn,
    AnnouncementOut,
    AnnouncementPage,
    AnnouncementResponse,
)
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
    UsersListResponse,
)
from app.schemas.health import HealthResponse, PingResponse

__all__ = [
    "AnnouncementIn",
    "AnnouncementOut",
    "AnnouncementPage",
    "AnnouncementResponse",
    "AuthResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PingResponse",
    "RegisterRequest",
    "UserResponse",
    "UsersListResponse",
]
