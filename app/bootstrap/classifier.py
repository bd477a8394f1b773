"""
Idempotent-error classifier.

Decides whether a failed DDL/DML statement means "someone already did
this" (a previous boot, a concurrent replica, a manual fix) or a real
problem. The allow-list is PostgreSQL-specific.
"""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError

DUPLICATE_COLUMN = "42701"
DUPLICATE_TABLE = "42P07"
DUPLICATE_OBJECT = "42710"
UNIQUE_VIOLATION = "23505"
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"

SCHEMA_CONFLICTS: frozenset[str] = frozenset(
    {DUPLICATE_COLUMN, DUPLICATE_TABLE, DUPLICATE_OBJECT}
)

IDEMPOTENT_SQLSTATES: frozenset[str] = SCHEMA_CONFLICTS | {UNIQUE_VIOLATION}

# Lost a lock race with a concurrent replica; the whole transaction can be re-run
TRANSIENT_SQLSTATES: frozenset[str] = frozenset({SERIALIZATION_FAILURE, DEADLOCK_DETECTED})


def sqlstate_of(exc: BaseException) -> str | None:
    """
    Extract the SQLSTATE code from a driver error.

    SQLAlchemy wraps the asyncpg exception twice: the dbapi adapter
    exposes `sqlstate`/`pgcode`, and its __cause__ is the raw asyncpg
    error which carries `sqlstate` as well.
    """
    candidates: list[object] = [exc]
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        candidates.append(exc.orig)
        candidates.append(exc.orig.__cause__)
    for candidate in candidates:
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str) and code:
                return code
    return None


def is_idempotent_conflict(
    exc: BaseException,
    allowed: frozenset[str] = IDEMPOTENT_SQLSTATES,
) -> bool:
    """True when the error only says the change is already in place."""
    return sqlstate_of(exc) in allowed


def is_transient(exc: BaseException) -> bool:
    """True for deadlocks and serialization failures."""
    return sqlstate_of(exc) in TRANSIENT_SQLSTATES
