"""
API Boilerplate - Database Session Management
==============================================

What:  Async SQLAlchemy engine and session factory.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine for the configured backend (PostgreSQL via
       asyncpg or SQLite via aiosqlite) and the session factory used by the
       audit writer.
When:  Engine is created at module import; sessions are created per use.

Connection Pooling Strategy:
    PostgreSQL: pool_size / max_overflow / pool_pre_ping from settings,
                connections recycled hourly.
    SQLite:     SQLAlchemy's default pool for file databases; pool sizing
                arguments are not accepted by the sqlite dialect's pools.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from boilerplate.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.sqlalchemy_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after commit without a new query
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections. Called from the app lifespan on shutdown."""
    await engine.dispose()
