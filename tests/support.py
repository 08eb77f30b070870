"""Shared helpers for tests: settings, a controllable clock and an app wired to in-memory SQLite."""

from datetime import UTC, datetime, timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.context import AppContext
from app.core.security import hash_password
from app.main import create_app
from app.models import User

START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: in-memory DB, cheap bcrypt, no sweeper, generous auth limit."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "TOKEN_SWEEP_ENABLED": False,
        "AUTH_RATE_LIMIT_MAX": 1000,
        "API_RATE_LIMIT_MAX": 1000,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_app(clock: FakeClock | None = None, **overrides: object) -> tuple[FastAPI, FakeClock]:
    clock = clock or FakeClock()
    app = create_app(make_settings(**overrides), clock=clock)
    return app, clock


def make_client(clock: FakeClock | None = None, **overrides: object) -> tuple[TestClient, AppContext, FakeClock]:
    app, clock = make_app(clock, **overrides)
    return TestClient(app), app.state.context, clock


def add_user(
    ctx: AppContext,
    username: str,
    email: str,
    password: str,
    role: str = "user",
) -> int:
    """Insert a user directly (e.g. an admin, which registration cannot create)."""
    db = ctx.session_factory()
    try:
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=4),
            role=role,
            created_at=ctx.now(),
        )
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


def login_token(client: TestClient, email: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
