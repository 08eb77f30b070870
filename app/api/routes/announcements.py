"""Announcements: public reads, admin-only writes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routes.auth import require_admin
from app.core.context import AppContext, get_context
from app.core.database import get_db
from app.models import Announcement
from app.schemas.announcements import (
    AnnouncementIn,
    AnnouncementOut,
    AnnouncementPage,
    AnnouncementResponse,
)
from app.schemas.auth import CurrentUser, MessageResponse

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _to_out(row: Announcement) -> AnnouncementOut:
    return AnnouncementOut(
        id=str(row.id),
        title=row.title,
        description=row.description,
        date=row.date,
        time=row.time,
        venue=row.venue,
        created_by=row.author.username if row.author is not None else "",
        created_at=row.created_at,
    )


def _get_or_404(db: Session, announcement_id: int) -> Announcement:
    row = db.query(Announcement).filter(Announcement.id == announcement_id).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    return row


@router.get("", response_model=AnnouncementPage)
def list_announcements(
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AnnouncementPage:
    """Most recent first (event date, then creation time)."""
    total = db.query(Announcement).count()
    rows = (
        db.query(Announcement)
        .order_by(Announcement.date.desc(), Announcement.created_at.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return AnnouncementPage(
        results=[_to_out(r) for r in rows],
        count=total,
        next=f"?limit={limit}&offset={offset + limit}" if offset + limit < total else None,
        previous=f"?limit={limit}&offset={max(0, offset - limit)}" if offset > 0 else None,
    )


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
def get_announcement(
    announcement_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> AnnouncementResponse:
    return AnnouncementResponse(data=_to_out(_get_or_404(db, announcement_id)))


@router.post("", response_model=AnnouncementResponse, status_code=201)
def create_announcement(
    body: AnnouncementIn,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> AnnouncementResponse:
    if not body.title or not body.description or not body.date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title, description, and date are required",
        )
    row = Announcement(
        title=body.title,
        description=body.description,
        date=body.date,
        time=body.time or None,
        venue=body.venue or None,
        created_by=admin.user_id,
        created_at=ctx.now(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Announcement created", extra={"announcement_id": row.id, "user_id": admin.id})
    return AnnouncementResponse(data=_to_out(row), message="Announcement created successfully")


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
def update_announcement(
    announcement_id: int,
    body: AnnouncementIn,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AnnouncementResponse:
    """Partial update: only non-empty fields in the body are changed."""
    row = _get_or_404(db, announcement_id)
    for name, value in body.model_dump(exclude_none=True).items():
        if value != "":
            setattr(row, name, value)
    db.commit()
    db.refresh(row)
    return AnnouncementResponse(data=_to_out(row), message="Announcement updated successfully")


@router.delete("/{announcement_id}", response_model=MessageResponse)
def delete_announcement(
    announcement_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    row = _get_or_404(db, announcement_id)
    db.delete(row)
    db.commit()
    return MessageResponse(message="Announcement deleted successfully")
