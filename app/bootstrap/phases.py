"""
The bootstrap phases.

Each phase receives a PhaseContext bound to the bootstrap connection and
runs inside a transaction opened by the sequencer. Every statement runs
in its own SAVEPOINT so an already-applied change can be rolled back and
skipped without poisoning the rest of the phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.engine import Result
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.schema import CreateIndex, CreateTable
from sqlalchemy.sql import Executable

from app.bootstrap.classifier import (
    IDEMPOTENT_SQLSTATES,
    SCHEMA_CONFLICTS,
    is_idempotent_conflict,
    is_transient,
    sqlstate_of,
)
from app.bootstrap.errors import PhaseError
from app.bootstrap.manifest import (
    COLUMN_INJECTIONS,
    CONSTRAINT_MIGRATIONS,
    INJECTED_TABLES,
    ORPHAN_BACKFILLS,
    expected_tables,
    model_indexes,
)
from app.models.wiki import Wiki

logger = logging.getLogger(__name__)


@dataclass
class BootstrapState:
    """Values carried from one phase to the next."""

    default_wiki_name: str
    default_wiki_slug: str
    default_wiki_description: str | None = None
    default_wiki_id: int | None = None


class PhaseContext:
    """Statement runner for one phase."""

    def __init__(self, conn: AsyncConnection, phase: str) -> None:
        self.conn = conn
        self.phase = phase
        self.statements = 0
        self.tolerated = 0

    def _sql(self, statement: Executable) -> str:
        return str(statement.compile(dialect=self.conn.dialect)).strip()

    async def execute(
        self,
        label: str,
        statement: Executable,
        params: dict[str, Any] | None = None,
        tolerate: frozenset[str] = IDEMPOTENT_SQLSTATES,
    ) -> Result[Any] | None:
        """
        Run one statement in a savepoint.

        Returns None when the statement failed with a SQLSTATE in `tolerate`.
        Raises PhaseError on anything else.
        """
        self.statements += 1
        try:
            async with self.conn.begin_nested():
                result = await self.conn.execute(statement, params)
        except DBAPIError as exc:
            if is_idempotent_conflict(exc, tolerate):
                self.tolerated += 1
                logger.info(
                    "[%s] %s: already exists or handled (sqlstate=%s)",
                    self.phase,
                    label,
                    sqlstate_of(exc),
                )
                return None
            if is_transient(exc):
                logger.warning(
                    "[%s] %s: lost a lock race (sqlstate=%s), phase will be retried",
                    self.phase,
                    label,
                    sqlstate_of(exc),
                )
                raise PhaseError(self.phase, label, exc, transient=True) from exc
            logger.error(
                "[%s] %s: error (sqlstate=%s) -> %s\n%s",
                self.phase,
                label,
                sqlstate_of(exc),
                exc.orig if exc.orig is not None else exc,
                self._sql(statement),
            )
            raise PhaseError(self.phase, label, exc) from exc
        logger.info("[%s] %s: success", self.phase, label)
        return result


PhaseFn = Callable[[PhaseContext, BootstrapState], Awaitable[None]]


@dataclass(frozen=True)
class Phase:
    name: str
    apply: PhaseFn
    foundational: bool = False
    requires_default_wiki: bool = False


# ---------------------------------------------------------------------------
# Catalog lookups
# ---------------------------------------------------------------------------

async def existing_columns(ctx: PhaseContext) -> set[tuple[str, str]]:
    result = await ctx.execute(
        "Read columns",
        text(
            "SELECT table_name, column_name FROM information_schema.columns "
            "WHERE table_schema = current_schema()"
        ),
    )
    if result is None:
        return set()
    return {(row[0], row[1]) for row in result.all()}


async def existing_constraints(ctx: PhaseContext) -> set[tuple[str, str]]:
    result = await ctx.execute(
        "Read constraints",
        text(
            "SELECT table_name, constraint_name FROM information_schema.table_constraints "
            "WHERE table_schema = current_schema()"
        ),
    )
    if result is None:
        return set()
    return {(row[0], row[1]) for row in result.all()}


async def existing_indexes(ctx: PhaseContext) -> set[str]:
    result = await ctx.execute(
        "Read indexes",
        text("SELECT indexname FROM pg_indexes WHERE schemaname = current_schema()"),
    )
    if result is None:
        return set()
    return {row[0] for row in result.all()}


# ---------------------------------------------------------------------------
# Phase 1: base tables
# ---------------------------------------------------------------------------

async def create_tables(ctx: PhaseContext, state: BootstrapState) -> None:
    tables = expected_tables()
    for table in tables:
        await ctx.execute(f"Table {table.name}", CreateTable(table, if_not_exists=True))

    # Tables without injected columns already have every indexed column.
    # Indexes on the others wait for phase 4.
    for table in tables:
        if table.name in INJECTED_TABLES:
            continue
        for index in model_indexes(table):
            await ctx.execute(f"Index {index.name}", CreateIndex(index, if_not_exists=True))


# ---------------------------------------------------------------------------
# Phase 2: default tenant
# ---------------------------------------------------------------------------

async def seed_default_wiki(ctx: PhaseContext, state: BootstrapState) -> None:
    seed = (
        pg_insert(Wiki.__table__)
        .values(
            name=state.default_wiki_name,
            slug=state.default_wiki_slug,
            description=state.default_wiki_description,
        )
        .on_conflict_do_nothing(index_elements=["slug"])
    )
    await ctx.execute("Seed default wiki", seed)

    label = "Resolve default wiki"
    result = await ctx.execute(
        label, select(Wiki.id).where(Wiki.slug == state.default_wiki_slug)
    )
    wiki_id = result.scalar_one_or_none() if result is not None else None
    if wiki_id is None:
        raise PhaseError(ctx.phase, label, f"no wiki with slug {state.default_wiki_slug!r}")
    state.default_wiki_id = wiki_id
    logger.info("[%s] Default wiki %r has id=%s", ctx.phase, state.default_wiki_slug, wiki_id)


# ---------------------------------------------------------------------------
# Phase 3: surgical column injection
# ---------------------------------------------------------------------------

async def inject_columns(ctx: PhaseContext, state: BootstrapState) -> None:
    present = await existing_columns(ctx)
    for injection in COLUMN_INJECTIONS:
        if (injection.table, injection.column) in present:
            logger.debug("[%s] %s: present", ctx.phase, injection.label)
            continue
        # IF NOT EXISTS still guards against a replica racing us
        await ctx.execute(injection.label, text(injection.ddl()))


# ---------------------------------------------------------------------------
# Phase 4: constraints and indexes
# ---------------------------------------------------------------------------

async def finalize_constraints(ctx: PhaseContext, state: BootstrapState) -> None:
    constraints = await existing_constraints(ctx)
    indexes = await existing_indexes(ctx)

    for migration in CONSTRAINT_MIGRATIONS:
        for legacy in migration.legacy_constraints:
            if (migration.table, legacy) in constraints:
                await ctx.execute(
                    f"Drop legacy constraint {legacy}",
                    text(f"ALTER TABLE {migration.table} DROP CONSTRAINT IF EXISTS {legacy}"),
                )
                # A unique constraint takes its backing index with it
                indexes.discard(legacy)
        for index in migration.stale_indexes:
            if index in indexes:
                await ctx.execute(
                    f"Drop stale index {index}",
                    text(f"DROP INDEX IF EXISTS {index}"),
                )
        if (migration.table, migration.name) in constraints:
            logger.debug("[%s] Constraint %s: present", ctx.phase, migration.name)
            continue
        # A unique violation here is bad data, not an earlier run
        await ctx.execute(
            f"Add constraint {migration.name}",
            text(migration.ddl()),
            tolerate=SCHEMA_CONFLICTS,
        )

    for table in expected_tables():
        for index in model_indexes(table):
            if index.name in indexes:
                logger.debug("[%s] Index %s: present", ctx.phase, index.name)
                continue
            await ctx.execute(f"Index {index.name}", CreateIndex(index, if_not_exists=True))


# ---------------------------------------------------------------------------
# Phase 5: orphan backfill
# ---------------------------------------------------------------------------

async def backfill_orphans(ctx: PhaseContext, state: BootstrapState) -> None:
    params = {"wiki_id": state.default_wiki_id}
    for backfill in ORPHAN_BACKFILLS:
        result = await ctx.execute(
            f"Backfill {backfill.table}", text(backfill.update_sql()), params
        )
        adopted = result.rowcount if result is not None else 0
        if adopted:
            logger.info(
                "[%s] Assigned %d orphan row(s) in %s to wiki id=%s",
                ctx.phase,
                adopted,
                backfill.table,
                state.default_wiki_id,
            )

        counted = await ctx.execute(f"Count orphans {backfill.table}", text(backfill.count_sql()))
        remaining = counted.scalar_one() if counted is not None else 0
        if remaining:
            logger.warning(
                "[%s] %d row(s) in %s still have no wiki_id (key collides in the default wiki)",
                ctx.phase,
                remaining,
                backfill.table,
            )


PHASES: tuple[Phase, ...] = (
    Phase("create_tables", create_tables, foundational=True),
    Phase("seed_default_wiki", seed_default_wiki),
    Phase("inject_columns", inject_columns),
    Phase("finalize_constraints", finalize_constraints),
    Phase("backfill_orphans", backfill_orphans, requires_default_wiki=True),
)
