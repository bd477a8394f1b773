"""
Database pool lifecycle and request session dependency.

The engine is the process-wide connection pool. It is opened once at
startup, handed explicitly to the schema bootstrapper and to request
handlers, and disposed on shutdown.
"""

from __future__ import annotations

import logging
import ssl
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import Settings

logger = logging.getLogger(__name__)


def masked_url(url: str) -> str:
    """Render a connection URL with the password hidden."""
    return make_url(url).render_as_string(hide_password=True)


def build_ssl_context(settings: Settings) -> ssl.SSLContext | bool:
    """
    TLS policy for asyncpg.

    Peer verification stays on whenever TLS is used; DB_SSL_CA_FILE adds
    a private CA instead of switching verification off.
    """
    if not settings.ssl_required:
        return False
    context = ssl.create_default_context(cafile=settings.DB_SSL_CA_FILE)
    return context


def open_pool(settings: Settings) -> AsyncEngine:
    """Create the process-wide engine (connection pool)."""
    url = settings.database_url
    logger.info(
        "Opening database pool: url=%s ssl=%s",
        masked_url(url),
        settings.ssl_required,
    )
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        connect_args={
            "ssl": build_ssl_context(settings),
            "timeout": settings.DB_CONNECT_TIMEOUT,
        },
    )


async def close_pool(engine: AsyncEngine) -> None:
    """Dispose the pool on graceful shutdown."""
    await engine.dispose()
    logger.info("Database pool closed")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a session bound to the app's pool."""
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
