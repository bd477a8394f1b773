"""
Connection acquisition retry tests.
"""

import logging

import pytest

from app.bootstrap.connection import acquire_connection, connect_with_retry
from app.bootstrap.errors import BootstrapError, ConnectionAcquisitionError
from tests.conftest import FakeEngine


@pytest.mark.asyncio
async def test_connects_on_first_attempt(engine, conn):
    result = await connect_with_retry(engine, attempts=5, delay=0)
    assert result is conn
    assert engine.attempts == 1


@pytest.mark.asyncio
async def test_retries_until_success(caplog):
    engine = FakeEngine(fail_times=2)
    with caplog.at_level(logging.WARNING, logger="app.bootstrap.connection"):
        result = await connect_with_retry(engine, attempts=5, delay=0)

    assert result is engine.conn
    assert engine.attempts == 3
    messages = [r.getMessage() for r in caplog.records]
    assert any("Retries left: 4" in m for m in messages)
    assert any("Retries left: 3" in m for m in messages)


@pytest.mark.asyncio
async def test_gives_up_after_all_attempts():
    engine = FakeEngine(fail_times=10)
    with pytest.raises(ConnectionAcquisitionError) as exc_info:
        await connect_with_retry(engine, attempts=5, delay=0)

    assert engine.attempts == 5
    assert exc_info.value.attempts == 5
    assert isinstance(exc_info.value, BootstrapError)
    assert "connection refused" in str(exc_info.value.__cause__)


@pytest.mark.asyncio
async def test_os_errors_are_retried():
    engine = FakeEngine(fail_times=1, error=ConnectionRefusedError("refused"))
    result = await connect_with_retry(engine, attempts=2, delay=0)
    assert result is engine.conn
    assert engine.attempts == 2


@pytest.mark.asyncio
async def test_programming_errors_are_not_retried():
    engine = FakeEngine(fail_times=3, error=ValueError("bad url"))
    with pytest.raises(ValueError):
        await connect_with_retry(engine, attempts=5, delay=0)
    assert engine.attempts == 1


@pytest.mark.asyncio
async def test_connection_released_when_body_raises(engine, conn):
    with pytest.raises(RuntimeError):
        async with acquire_connection(engine, attempts=1, delay=0):
            raise RuntimeError("phase blew up")
    assert conn.closed


@pytest.mark.asyncio
async def test_connection_released_on_success(engine, conn):
    async with acquire_connection(engine, attempts=1, delay=0) as acquired:
        assert acquired is conn
        assert not conn.closed
    assert conn.closed
