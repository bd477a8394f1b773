"""
Schema bootstrap sequencer.

Runs the phases in order over one pooled connection, each phase in its
own transaction. A phase that loses a lock race with a concurrent replica
is re-run; any other failing phase is rolled back and reported. Only a
failure of a foundational phase stops the sequence.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.bootstrap.classifier import is_transient
from app.bootstrap.connection import acquire_connection
from app.bootstrap.errors import FoundationalPhaseError, PhaseError
from app.bootstrap.phases import PHASES, BootstrapState, Phase, PhaseContext
from app.core.config import Settings

logger = logging.getLogger(__name__)


class PhaseStatus(str, enum.Enum):
    ok = "ok"
    failed = "failed"
    skipped = "skipped"


@dataclass
class PhaseResult:
    name: str
    status: PhaseStatus
    statements: int = 0
    tolerated: int = 0
    attempts: int = 1
    error: str | None = None


@dataclass
class BootstrapReport:
    phases: list[PhaseResult] = field(default_factory=list)
    default_wiki_id: int | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return all(result.status is PhaseStatus.ok for result in self.phases)

    @property
    def failed_phases(self) -> list[str]:
        return [r.name for r in self.phases if r.status is not PhaseStatus.ok]


class SchemaBootstrapper:
    """Brings the database schema up to the shape the models describe."""

    def __init__(
        self,
        engine: AsyncEngine,
        settings: Settings,
        phases: Sequence[Phase] = PHASES,
    ) -> None:
        self.engine = engine
        self.settings = settings
        self.phases = tuple(phases)

    def _initial_state(self) -> BootstrapState:
        return BootstrapState(
            default_wiki_name=self.settings.DEFAULT_WIKI_NAME,
            default_wiki_slug=self.settings.DEFAULT_WIKI_SLUG,
            default_wiki_description=self.settings.DEFAULT_WIKI_DESCRIPTION,
        )

    async def run(self) -> BootstrapReport:
        """
        Run every phase once.

        Raises:
            ConnectionAcquisitionError: no connection after all attempts.
            FoundationalPhaseError: base tables could not be created.
        """
        logger.info("Starting schema bootstrap (%d phases)", len(self.phases))
        started = time.monotonic()
        report = BootstrapReport()
        state = self._initial_state()

        async with acquire_connection(
            self.engine,
            attempts=self.settings.BOOTSTRAP_CONNECT_ATTEMPTS,
            delay=self.settings.BOOTSTRAP_RETRY_DELAY,
        ) as conn:
            for phase in self.phases:
                result = await self._run_phase(conn, phase, state)
                report.phases.append(result)
                if result.status is PhaseStatus.failed and phase.foundational:
                    report.elapsed = time.monotonic() - started
                    logger.error(
                        "FATAL: schema bootstrap stopped in phase %r: %s",
                        phase.name,
                        result.error,
                    )
                    raise FoundationalPhaseError(phase.name, result.error or "", report=report)

        report.default_wiki_id = state.default_wiki_id
        report.elapsed = time.monotonic() - started
        if report.ok:
            logger.info("Schema bootstrap complete in %.2fs", report.elapsed)
        else:
            logger.warning(
                "Schema bootstrap finished in %.2fs with incomplete phases: %s",
                report.elapsed,
                ", ".join(report.failed_phases),
            )
        return report

    async def _run_phase(
        self, conn: AsyncConnection, phase: Phase, state: BootstrapState
    ) -> PhaseResult:
        if phase.requires_default_wiki and state.default_wiki_id is None:
            logger.warning("[%s] Skipped: default wiki is unresolved", phase.name)
            return PhaseResult(
                phase.name, PhaseStatus.skipped, error="default wiki is unresolved"
            )

        snapshot = dataclasses.replace(state)
        max_attempts = self.settings.BOOTSTRAP_PHASE_ATTEMPTS
        attempt = 0
        while True:
            attempt += 1
            ctx = PhaseContext(conn, phase.name)
            error, transient = await self._apply(conn, phase, ctx, state)
            if error is None:
                break

            # Rolled-back work must not leak into later phases
            vars(state).update(vars(snapshot))
            if not transient or attempt >= max_attempts:
                logger.error("[%s] Rolled back: %s", phase.name, error)
                return PhaseResult(
                    phase.name,
                    PhaseStatus.failed,
                    statements=ctx.statements,
                    tolerated=ctx.tolerated,
                    attempts=attempt,
                    error=error,
                )

            # Jitter keeps racing replicas from colliding again in lockstep
            delay = self.settings.BOOTSTRAP_PHASE_RETRY_DELAY * random.uniform(1, 2)
            logger.warning(
                "[%s] Rolled back after a lock conflict; retrying in %.2fs (attempt %d of %d)",
                phase.name,
                delay,
                attempt + 1,
                max_attempts,
            )
            await asyncio.sleep(delay)

        logger.info(
            "[%s] Committed (%d statement(s), %d already applied)",
            phase.name,
            ctx.statements,
            ctx.tolerated,
        )
        return PhaseResult(
            phase.name,
            PhaseStatus.ok,
            statements=ctx.statements,
            tolerated=ctx.tolerated,
            attempts=attempt,
        )

    async def _apply(
        self,
        conn: AsyncConnection,
        phase: Phase,
        ctx: PhaseContext,
        state: BootstrapState,
    ) -> tuple[str | None, bool]:
        """Run one phase transaction; return (error, transient)."""
        try:
            async with conn.begin():
                await phase.apply(ctx, state)
        except PhaseError as exc:
            return str(exc), exc.transient
        except SQLAlchemyError as exc:
            # begin/commit itself failed
            if is_transient(exc):
                logger.warning("[%s] Transaction lost a lock race -> %s", phase.name, exc)
                return str(exc), True
            logger.error("[%s] Transaction error -> %s", phase.name, exc)
            return str(exc), False
        return None, False
