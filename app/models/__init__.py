"""SQLAlchemy ORM models."""

from app.models.announcement import Announcement
from app.models.auth_token import AuthToken
from app.models.base import Base
from app.models.user import ROLE_ADMIN, ROLE_USER, User

__all__ = ["Announcement", "AuthToken", "Base", "ROLE_ADMIN", "ROLE_USER", "User"]
