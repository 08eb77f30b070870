"""Credential checks, registration and session token lifecycle."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import generate_token, hash_password, verify_password
from app.models import ROLE_USER, AuthToken, User

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_HOURS = 24


class DuplicateUserError(Exception):
    """Raised when the email or the username is already taken."""

    def __init__(self, message: str = "Email or username already in use") -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


def issue_token(
    db: Session,
    user_id: int,
    now: datetime,
    ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS,
) -> IssuedToken:
    """Persist a new random token for user_id, valid until now + ttl_hours."""
    issued = IssuedToken(token=generate_token(), expires_at=now + timedelta(hours=ttl_hours))
    db.add(
        AuthToken(
            user_id=user_id,
            token=issued.token,
            expires_at=issued.expires_at,
            created_at=now,
        )
    )
    db.commit()
    return issued


def authenticate(db: Session, email: str, password: str) -> User | None:
    """
    Return the user whose email and password match, else None.

    An unknown email and a wrong password are indistinguishable to the caller.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def register_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    now: datetime,
    bcrypt_rounds: int,
) -> User:
    """Create a 'user' account. Raises DuplicateUserError if email or username exists."""
    existing = (
        db.query(User.id)
        .filter(or_(User.email == email, User.username == username))
        .first()
    )
    if existing is not None:
        raise DuplicateUserError()

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=ROLE_USER,
        created_at=now,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # A concurrent registration won the unique constraint after our check.
        db.rollback()
        raise DuplicateUserError() from e
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "username": user.username})
    return user


def resolve_token(db: Session, token: str, now: datetime) -> User | None:
    """Return the owner of token if the token exists and has not expired."""
    return (
        db.query(User)
        .join(AuthToken, AuthToken.user_id == User.id)
        .filter(AuthToken.token == token, AuthToken.expires_at > now)
        .first()
    )


def revoke_token(db: Session, token: str) -> bool:
    """Delete token if present. Returns whether a row was removed; never fails on absence."""
    deleted = (
        db.query(AuthToken)
        .filter(AuthToken.token == token)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0
