"""Async database engine, session factory, and declarative base."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, MetaData, String, func, text
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Naming convention for constraints (Alembic auto-migration friendly)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all ORM models."""

    metadata = MetaData(naming_convention=convention)


class AuditMixin:
    """Mixin that adds the activo flag and creation / modification audit columns.

    The service layer stamps fecha_creacion / fecha_mod explicitly; the
    fecha_creacion server default only covers rows inserted outside the ORM.
    fecha_mod stays NULL until the first change for entities created unstamped.
    """

    activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    usuario_creacion: Mapped[Optional[str]] = mapped_column(String(100))
    fecha_creacion: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    usuario_mod: Mapped[Optional[str]] = mapped_column(String(100))
    fecha_mod: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


# ---------------------------------------------------------------------------
# Engine / session factory
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

DEFAULT_DATABASE_URL = "postgresql+asyncpg://localhost/vetregistry"


def _pool_setting(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup.

    The URL falls back to ``VETREGISTRY_DATABASE_URL``; the pool is sized by
    ``VETREGISTRY_DB_POOL_SIZE`` (default 5) and ``VETREGISTRY_DB_MAX_OVERFLOW``
    (default 10). An engine left by a previous call is replaced, not disposed.
    """
    global _engine, _session_factory  # noqa: PLW0603
    url = database_url or os.environ.get("VETREGISTRY_DATABASE_URL", DEFAULT_DATABASE_URL)
    _engine = create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=_pool_setting("VETREGISTRY_DB_POOL_SIZE", 5),
        max_overflow=_pool_setting("VETREGISTRY_DB_MAX_OVERFLOW", 10),
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_engine() -> AsyncEngine:
    """Return the engine created by init_session_factory()."""
    if _engine is None:
        raise RuntimeError("call init_session_factory() first")
    return _engine


def set_session_factory(factory: async_sessionmaker[AsyncSession] | None) -> None:
    """Override session factory (for testing)."""
    global _session_factory  # noqa: PLW0603
    _session_factory = factory


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Yield a unit-of-work session with automatic commit/rollback."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before opening a session")
    async with _session_factory() as session:
        async with session.begin():
            yield session
