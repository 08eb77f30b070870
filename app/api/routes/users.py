"""Admin-only user listing."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.routes.auth import require_admin
from app.core.database import get_db
from app.models import User
from app.schemas.auth import CurrentUser, UsersListResponse

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (admin only). Password hashes are never returned."""
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(data=[CurrentUser.model_validate(u) for u in users])
