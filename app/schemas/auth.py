"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    """Credentials for login. Presence is checked by the handler (400, not 422)."""

    email: str | None = Field(default=None, description="Account email")
    password: str | None = Field(default=None, description="Password")


class RegisterRequest(BaseModel):
    """New account details; role is always 'user'."""

    username: str | None = Field(default=None, description="Unique display name")
    email: str | None = Field(default=None, description="Unique email address")
    password: str | None = Field(default=None, description="Password")


class CurrentUser(BaseModel):
    """Authenticated user resolved from a bearer token, for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: Literal["admin", "user"]
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @property
    def user_id(self) -> int:
        return int(self.id)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthResponse(BaseModel):
    """Returned by login and registration."""

    user: CurrentUser
    token: str = Field(..., description="Opaque bearer token")
    message: str


class UserResponse(BaseModel):
    """Response for GET /auth/user."""

    success: bool = True
    data: CurrentUser


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    success: bool = True
    data: list[CurrentUser]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
