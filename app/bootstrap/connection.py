"""
Connection acquisition with bounded retry.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.bootstrap.errors import ConnectionAcquisitionError

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 2.0

TRANSIENT_ERRORS = (DBAPIError, OSError, asyncio.TimeoutError)


async def connect_with_retry(
    engine: AsyncEngine,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
) -> AsyncConnection:
    """
    Check one connection out of the pool.

    Waits `delay` seconds between failed attempts and raises
    ConnectionAcquisitionError once `attempts` are used up.
    """
    remaining = attempts
    while True:
        try:
            return await engine.connect()
        except TRANSIENT_ERRORS as exc:
            remaining -= 1
            logger.warning(
                "Connection attempt failed. Retries left: %d. Error: %s",
                remaining,
                exc,
            )
            if remaining <= 0:
                raise ConnectionAcquisitionError(attempts, exc) from exc
            await asyncio.sleep(delay)


@asynccontextmanager
async def acquire_connection(
    engine: AsyncEngine,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
) -> AsyncIterator[AsyncConnection]:
    """Yield an exclusive connection; it always goes back to the pool."""
    conn = await connect_with_retry(engine, attempts=attempts, delay=delay)
    try:
        yield conn
    finally:
        await conn.close()
