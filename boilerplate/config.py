"""
API Boilerplate - Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the database layer, the envelope middleware, and main.py.
When:  Loaded once at module import time.

Storage selection:
    USE_POSTGRES=false (default) → SQLite file through aiosqlite
    USE_POSTGRES=true            → PostgreSQL through asyncpg
    DATABASE_URL (if set)        → used verbatim, overrides both
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments should
    set ENVIRONMENT=production (the default) and real database credentials.
    """

    # ── Database ──────────────────────────────────────────────────────────
    use_postgres: bool = Field(
        default=False,
        description="Store data in PostgreSQL instead of the local SQLite file",
    )
    database_url: str = Field(
        default="",
        description="Explicit async SQLAlchemy URL; overrides the fields below",
    )

    postgres_host: str = Field(default="localhost")
    postgres_port: int = Field(default=5432, ge=1, le=65535)
    postgres_user: str = Field(default="boilerplate")
    postgres_password: str = Field(default="boilerplate_secret")
    postgres_db: str = Field(default="boilerplate")

    sqlite_path: str = Field(default="./boilerplate.db")

    # Pool sizing only applies to PostgreSQL; SQLite ignores it
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── API Envelope & Audit Logging ──────────────────────────────────────
    enable_api_logging: bool = Field(
        default=True,
        description="Persist one audit record per /api request",
    )
    api_prefix: str = Field(default="/api")
    documentation_prefix: str = Field(default="/swagger")

    # Login and profile endpoints carry credentials/PII; never audited
    api_log_excluded_paths: List[str] = Field(
        default=["/api/authorize/", "/api/userprofile/"],
    )

    # Tenacity retry settings for audit writes (transient DB errors only)
    api_log_retry_attempts: int = Field(default=3, ge=1, le=10)
    api_log_retry_min_wait: float = Field(default=0.1, ge=0)
    api_log_retry_max_wait: float = Field(default=1.0, ge=0)

    # ── Runtime ───────────────────────────────────────────────────────────
    # Anything other than "production" exposes fault messages and tracebacks
    environment: str = Field(default="production")

    cors_origins: str = Field(default="http://localhost:3000")

    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("api_prefix", "documentation_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Prefixes are matched segment-wise: leading slash, no trailing slash."""
        v = "/" + v.strip().strip("/")
        if v == "/":
            raise ValueError("Path prefix must name at least one segment")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.sqlalchemy_url.startswith("sqlite")

    @property
    def sqlalchemy_url(self) -> str:
        """Resolve the async connection URL from the storage selection flags."""
        if self.database_url:
            return self.database_url
        if self.use_postgres:
            return (
                f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
                f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            )
        return f"sqlite+aiosqlite:///{self.sqlite_path}"


settings = Settings()
