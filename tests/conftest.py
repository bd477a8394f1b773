"""
Pytest configuration and shared fakes for the Wiki backend tests.

The fakes stand in for an AsyncEngine / AsyncConnection pair: every
statement is compiled with the PostgreSQL dialect and recorded, catalog
lookups answer from in-memory sets, and individual statements can be told
to fail with a given SQLSTATE.
"""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import Settings


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class FakeDriverError(Exception):
    """Mimics the asyncpg adapter error: carries a SQLSTATE."""

    def __init__(self, sqlstate: str, message: str = "") -> None:
        super().__init__(message or f"driver error {sqlstate}")
        self.sqlstate = sqlstate


def db_error(sqlstate: str, statement: str = "SELECT 1") -> ProgrammingError:
    return ProgrammingError(statement, None, FakeDriverError(sqlstate))


class FakeResult:
    def __init__(self, rows: list[tuple] | None = None, scalar: Any = None, rowcount: int = 0) -> None:
        self._rows = rows or []
        self._scalar = scalar
        self.rowcount = rowcount

    def all(self) -> list[tuple]:
        return list(self._rows)

    def scalar_one_or_none(self) -> Any:
        return self._scalar

    def scalar_one(self) -> Any:
        return self._scalar


class FakeTransaction:
    def __init__(self, conn: FakeConnection, nested: bool) -> None:
        self.conn = conn
        self.nested = nested

    async def __aenter__(self) -> FakeTransaction:
        self.conn.events.append("savepoint" if self.nested else "begin")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if self.nested:
            self.conn.events.append("rollback_savepoint" if exc_type else "release")
        else:
            self.conn.events.append("rollback" if exc_type else "commit")
        return False


class FakeConnection:
    dialect = postgresql.dialect()

    def __init__(self) -> None:
        self.executed: list[str] = []
        self.events: list[str] = []
        self.failures: list[list[Any]] = []
        self.columns: set[tuple[str, str]] = set()
        self.constraints: set[tuple[str, str]] = set()
        self.indexes: set[str] = set()
        self.default_wiki_id: int | None = 1
        self.orphans: dict[str, int] = {}
        self.adopted: dict[str, int] = {}
        self.closed = False

    def fail_on(self, needle: str, sqlstate: str, times: int | None = None) -> None:
        """
        Make statements containing `needle` fail with `sqlstate`.

        Every match fails unless `times` limits it to the first few.
        """
        self.failures.append([needle, sqlstate, times])

    def begin(self) -> FakeTransaction:
        return FakeTransaction(self, nested=False)

    def begin_nested(self) -> FakeTransaction:
        return FakeTransaction(self, nested=True)

    async def execute(self, statement: Any, parameters: Any = None) -> FakeResult:
        sql = str(statement.compile(dialect=self.dialect)).strip()
        self.executed.append(sql)
        self.events.append(sql)
        for failure in self.failures:
            needle, sqlstate, remaining = failure
            if needle in sql and remaining != 0:
                if remaining is not None:
                    failure[2] = remaining - 1
                raise db_error(sqlstate, sql)

        if "information_schema.columns" in sql:
            return FakeResult(rows=sorted(self.columns))
        if "information_schema.table_constraints" in sql:
            return FakeResult(rows=sorted(self.constraints))
        if "pg_indexes" in sql:
            return FakeResult(rows=[(name,) for name in sorted(self.indexes)])
        if sql.startswith("SELECT wikis.id"):
            return FakeResult(scalar=self.default_wiki_id)
        if sql.startswith("SELECT count(*)"):
            table = sql.split("FROM ")[1].split()[0]
            return FakeResult(scalar=self.orphans.get(table, 0))
        if sql.startswith("UPDATE"):
            table = sql.split()[1]
            return FakeResult(rowcount=self.adopted.get(table, 0))
        return FakeResult()

    async def close(self) -> None:
        self.closed = True

    def statements_containing(self, needle: str) -> list[str]:
        return [sql for sql in self.executed if needle in sql]

    def first_index(self, needle: str) -> int:
        for i, sql in enumerate(self.executed):
            if needle in sql:
                return i
        raise AssertionError(f"no statement contains {needle!r}")


class FakeEngine:
    """Hands out one FakeConnection; the first `fail_times` connects fail."""

    def __init__(self, conn: FakeConnection | None = None, fail_times: int = 0, error: BaseException | None = None) -> None:
        self.conn = conn or FakeConnection()
        self.fail_times = fail_times
        self.error = error
        self.attempts = 0

    async def connect(self) -> FakeConnection:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise self.error or OperationalError(
                "connect", None, FakeDriverError("08006", "connection refused")
            )
        return self.conn


@pytest.fixture
def settings() -> Settings:
    return Settings(
        BOOTSTRAP_RETRY_DELAY=0,
        BOOTSTRAP_CONNECT_ATTEMPTS=5,
        BOOTSTRAP_PHASE_RETRY_DELAY=0,
    )


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def engine(conn: FakeConnection) -> FakeEngine:
    return FakeEngine(conn)
