"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite:",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
)

DEFAULT_CONTENT_SECURITY_POLICY = (
    "default-src 'self'; script-src 'self' 'unsafe-inline'; "
    "style-src 'self' 'unsafe-inline'; img-src 'self' data: https:;"
)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # "dev" disables origin validation and allows any CORS origin. Deployments must set APP_ENV=prod.
    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    PING_MESSAGE: str = "ping"

    # SQLite for local use; PostgreSQL is accepted for deployments
    DATABASE_URL: str = "sqlite:///./parish.db"
    # Create tables on startup. Turn off when the schema is managed by Alembic.
    DB_AUTO_CREATE: bool = True

    # Password hashing and session tokens
    BCRYPT_ROUNDS: int = 12
    TOKEN_TTL_HOURS: int = 24
    TOKEN_SWEEP_ENABLED: bool = True
    TOKEN_SWEEP_INTERVAL_SEC: int = 3600

    # Rate limiting: strict on /api/auth, looser on the rest of /api
    AUTH_RATE_LIMIT_WINDOW_SEC: int = 15 * 60
    AUTH_RATE_LIMIT_MAX: int = 5
    API_RATE_LIMIT_WINDOW_SEC: int = 60
    API_RATE_LIMIT_MAX: int = 100

    # Origin allow-list for state-changing requests outside dev (comma-separated in env)
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "https://localhost:3000",
    ]
    FRONTEND_URL: str | None = None

    CONTENT_SECURITY_POLICY: str = DEFAULT_CONTENT_SECURITY_POLICY

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:///./parish.db)"
            )
        return v.strip()

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith("/"):
            raise ValueError("API_PREFIX must start with '/' (e.g. /api)")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("TOKEN_TTL_HOURS")
    @classmethod
    def validate_token_ttl_hours(cls, v: int) -> int:
        if v < 1 or v > 720:
            raise ValueError("TOKEN_TTL_HOURS must be between 1 and 720 (1 hour to 30 days)")
        return v

    @field_validator("TOKEN_SWEEP_INTERVAL_SEC")
    @classmethod
    def validate_sweep_interval(cls, v: int) -> int:
        if v < 10 or v > 86400:
            raise ValueError("TOKEN_SWEEP_INTERVAL_SEC must be between 10 and 86400")
        return v

    @field_validator(
        "AUTH_RATE_LIMIT_WINDOW_SEC",
        "AUTH_RATE_LIMIT_MAX",
        "API_RATE_LIMIT_WINDOW_SEC",
        "API_RATE_LIMIT_MAX",
    )
    @classmethod
    def validate_rate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Rate limit windows and maximums must be at least 1")
        return v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_allowed_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("FRONTEND_URL")
    @classmethod
    def validate_frontend_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        s = v.strip().lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError("FRONTEND_URL must use http or https")
        return v.strip().rstrip("/")

    @property
    def origin_allow_list(self) -> list[str]:
        """ALLOWED_ORIGINS plus FRONTEND_URL when it is configured."""
        origins = list(self.ALLOWED_ORIGINS)
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        return origins


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
