"""Core app configuration, database and shared context."""

from app.core.config import Settings, get_settings
from app.core.context import AppContext, get_context
from app.core.database import get_db

__all__ = ["AppContext", "Settings", "get_context", "get_db", "get_settings"]
