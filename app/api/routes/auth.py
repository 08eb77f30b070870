"""Login, registration, logout and the bearer-token auth dependencies (get_current_user, require_admin)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.context import AppContext, get_context
from app.core.database import get_db
from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, USERNAME_MAX_LEN
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from app.services.auth import (
    DuplicateUserError,
    authenticate,
    issue_token,
    register_user,
    resolve_token,
    revoke_token,
)

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

AUTH_REQUIRED = "Authentication required"
TOKEN_REQUIRED = "Authentication token required"
INVALID_TOKEN = "Invalid or expired token"
INVALID_CREDENTIALS = "Invalid email or password"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
    ctx: AppContext,
    missing_detail: str,
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise _unauthorized(missing_detail)
    user = resolve_token(db, credentials.credentials, ctx.now())
    if user is None:
        raise _unauthorized(INVALID_TOKEN)
    return CurrentUser.model_validate(user)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> CurrentUser:
    """Dependency: require a valid, unexpired Bearer token and return its user. Raises 401 otherwise."""
    return _resolve_user(credentials, db, ctx, AUTH_REQUIRED)


def get_token_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> CurrentUser:
    """Same check as get_current_user, with the wording used by GET /auth/user."""
    return _resolve_user(credentials, db, ctx, TOKEN_REQUIRED)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def _validate_registration(body: RegisterRequest) -> tuple[str, str, str]:
    if not body.username or not body.email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username, email, and password are required",
        )
    if len(body.username) > USERNAME_MAX_LEN:
        raise HTTPException(status_code=400, detail="Invalid username length.")
    if len(body.email) > EMAIL_MAX_LEN:
        raise HTTPException(status_code=400, detail="Invalid email length.")
    if len(body.password) > PASSWORD_MAX_LEN:
        raise HTTPException(status_code=400, detail="Invalid password length.")
    return body.username, body.email, body.password


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the user and a bearer token.
    Include the token in the Authorization header as: Bearer <token>
    """
    if not body.email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    user = authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Login failed", extra={"email": body.email})
        raise _unauthorized(INVALID_CREDENTIALS)

    current = CurrentUser.model_validate(user)
    issued = issue_token(db, user.id, ctx.now(), ctx.settings.TOKEN_TTL_HOURS)
    logger.info("Login succeeded", extra={"user_id": current.id, "role": current.role})
    return AuthResponse(user=current, token=issued.token, message="Login successful")


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> AuthResponse:
    """Create a regular ('user') account and log it in."""
    username, email, password = _validate_registration(body)
    try:
        user = register_user(
            db,
            username=username,
            email=email,
            password=password,
            now=ctx.now(),
            bcrypt_rounds=ctx.settings.BCRYPT_ROUNDS,
        )
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e

    current = CurrentUser.model_validate(user)
    issued = issue_token(db, user.id, ctx.now(), ctx.settings.TOKEN_TTL_HOURS)
    return AuthResponse(user=current, token=issued.token, message="Registration successful")


@router.post("/logout", response_model=MessageResponse)
def logout(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke the presented token, if any. Always succeeds."""
    if credentials is not None and credentials.credentials:
        if revoke_token(db, credentials.credentials):
            logger.info("Token revoked")
    return MessageResponse(message="Logout successful")


@router.get("/user", response_model=UserResponse)
def get_user(
    current_user: Annotated[CurrentUser, Depends(get_token_user)],
) -> UserResponse:
    """Return the user that owns the presented token."""
    return UserResponse(data=current_user)
