"""Liveness endpoints; exempt from origin validation."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.context import AppContext, get_context
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse, PingResponse

router = APIRouter()


@router.get("/ping", response_model=PingResponse)
def ping(ctx: Annotated[AppContext, Depends(get_context)]) -> PingResponse:
    return PingResponse(message=ctx.settings.PING_MESSAGE)


@router.get("/health", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=ctx.settings.APP_ENV,
        database=db_status,
    )
