"""Request/response schemas for announcements."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AnnouncementIn(BaseModel):
    """Body for create and update. Required fields are checked by the handler on create."""

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    date: str | None = Field(default=None, max_length=32, description="Event date, e.g. 2026-10-25")
    time: str | None = Field(default=None, max_length=32)
    venue: str | None = Field(default=None, max_length=255)


class AnnouncementOut(BaseModel):
    """Announcement as returned by the API; created_by is the author's username."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    date: str
    time: str | None = None
    venue: str | None = None
    created_by: str
    created_at: datetime


class AnnouncementResponse(BaseModel):
    success: bool = True
    data: AnnouncementOut
    message: str | None = None


class AnnouncementPage(BaseModel):
    """Paginated list; next/previous are query strings for the neighbouring pages."""

    results: list[AnnouncementOut]
    count: int
    next: str | None = None
    previous: str | None = None
