"""Application configuration loaded from environment variables."""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
    "sqlite://",
)

DEFAULT_JWT_SECRET = "change-me-access-secret"
DEFAULT_REFRESH_TOKEN_SECRET = "change-me-refresh-secret"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([a-z]*)\s*$", re.IGNORECASE)

_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "msec": timedelta(milliseconds=1),
    "msecs": timedelta(milliseconds=1),
    "millisecond": timedelta(milliseconds=1),
    "milliseconds": timedelta(milliseconds=1),
    "": timedelta(seconds=1),
    "s": timedelta(seconds=1),
    "sec": timedelta(seconds=1),
    "secs": timedelta(seconds=1),
    "second": timedelta(seconds=1),
    "seconds": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "mins": timedelta(minutes=1),
    "minute": timedelta(minutes=1),
    "minutes": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "hrs": timedelta(hours=1),
    "hour": timedelta(hours=1),
    "hours": timedelta(hours=1),
    "d": timedelta(days=1),
    "day": timedelta(days=1),
    "days": timedelta(days=1),
    "w": timedelta(weeks=1),
    "week": timedelta(weeks=1),
    "weeks": timedelta(weeks=1),
    "y": timedelta(days=365.25),
    "yr": timedelta(days=365.25),
    "yrs": timedelta(days=365.25),
    "year": timedelta(days=365.25),
    "years": timedelta(days=365.25),
}


def parse_duration(value: str | int) -> timedelta:
    """
    Parse a token lifetime such as "1h", "30d", "15 minutes" or "3600".

    A bare number is a count of seconds. Raises ValueError for anything else.
    """
    if isinstance(value, int):
        amount, unit = value, ""
    else:
        match = _DURATION_RE.match(value)
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = int(match.group(1)), match.group(2).lower()
    if unit not in _DURATION_UNITS:
        raise ValueError(f"Unknown duration unit in {value!r}")
    duration = _DURATION_UNITS[unit] * amount
    if duration <= timedelta(0):
        raise ValueError(f"Duration must be positive: {value!r}")
    return duration


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    # Prepended to every route; the public surface is served at the root by default.
    API_PREFIX: str = ""

    # Either a full DATABASE_URL or the individual DB_* parts (Postgres).
    DATABASE_URL: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: SecretStr = SecretStr("postgres")
    DB_NAME: str = "users"
    # Create missing tables from ORM metadata on startup.
    DB_SYNCHRONIZE: bool = True

    # JWT: access and refresh tokens are signed with different secrets.
    JWT_SECRET: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE: str = "1h"
    REFRESH_TOKEN_SECRET: SecretStr = SecretStr(DEFAULT_REFRESH_TOKEN_SECRET)
    REFRESH_TOKEN_EXPIRE: str = "30d"

    # Bcrypt cost factor (log2 rounds).
    BCRYPT_ROUNDS: int = 10

    # Kafka: when disabled, account events are only logged.
    KAFKA_ENABLED: bool = False
    KAFKA_BROKERS: str = "kafka:9092"
    KAFKA_CLIENT_ID: str = "user"
    KAFKA_MAX_BLOCK_MS: int = 5000
    USER_CREATED_TOPIC: str = "user.created"
    USER_DELETED_TOPIC: str = "user.deleted"

    # When set, every route requires a matching x-api-key header.
    X_API_KEY: SecretStr | None = None

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL or SQLite URL (e.g. postgresql+psycopg2://)"
            )
        return v.strip()

    @field_validator("PORT", "DB_PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError("API_PREFIX must start with '/' (e.g. /api)")
        return v

    @field_validator("JWT_SECRET", "REFRESH_TOKEN_SECRET")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("Token secrets must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("JWT_EXPIRE", "REFRESH_TOKEN_EXPIRE")
    @classmethod
    def validate_expire(cls, v: str) -> str:
        parse_duration(v)
        return v.strip()

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("KAFKA_MAX_BLOCK_MS")
    @classmethod
    def validate_kafka_max_block(cls, v: int) -> int:
        if v < 0 or v > 60000:
            raise ValueError("KAFKA_MAX_BLOCK_MS must be between 0 and 60000")
        return v

    @model_validator(mode="after")
    def validate_token_secrets(self) -> "Settings":
        access = self.JWT_SECRET.get_secret_value()
        refresh = self.REFRESH_TOKEN_SECRET.get_secret_value()
        if access == refresh:
            raise ValueError("JWT_SECRET and REFRESH_TOKEN_SECRET must differ")
        if self.APP_ENV == "prod" and (
            access == DEFAULT_JWT_SECRET or refresh == DEFAULT_REFRESH_TOKEN_SECRET
        ):
            raise ValueError("Default token secrets are not allowed when APP_ENV=prod")
        return self

    @property
    def database_url(self) -> str:
        """DATABASE_URL when given, else a Postgres URL built from DB_*."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD.get_secret_value(),
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRE)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.REFRESH_TOKEN_EXPIRE)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
