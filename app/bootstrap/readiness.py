"""
Readiness signal for the schema bootstrap.

The web layer starts one bootstrap run and awaits it before serving.
What happens on a fatal failure (refuse to start, or serve degraded) is
the caller's decision; this module only reports the outcome.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.bootstrap.errors import BootstrapError
from app.bootstrap.sequencer import BootstrapReport, SchemaBootstrapper
from app.core.config import Settings

logger = logging.getLogger(__name__)


def _retrieve_outcome(task: asyncio.Task[BootstrapReport]) -> None:
    # Nobody may await a run that outlived the startup wait; its outcome
    # is already on the readiness object.
    if not task.cancelled():
        task.exception()


class ReadinessState(str, enum.Enum):
    pending = "pending"
    ready = "ready"
    incomplete = "incomplete"
    failed = "failed"


class BootstrapReadiness:
    """Future-like handle over one bootstrap run."""

    def __init__(self) -> None:
        self._task: asyncio.Task[BootstrapReport] | None = None
        self.state = ReadinessState.pending
        self.report: BootstrapReport | None = None
        self.error: BootstrapError | None = None

    @property
    def started(self) -> bool:
        return self._task is not None

    def start(self, bootstrapper: SchemaBootstrapper) -> None:
        if self._task is not None:
            raise RuntimeError("bootstrap already started")
        self._task = asyncio.create_task(self._run(bootstrapper), name="schema-bootstrap")
        self._task.add_done_callback(_retrieve_outcome)

    async def stop(self) -> None:
        """Cancel a run that is still in progress."""
        if self._task is None or self._task.done():
            return
        logger.warning("Cancelling schema bootstrap still in progress")
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self, bootstrapper: SchemaBootstrapper) -> BootstrapReport:
        try:
            report = await bootstrapper.run()
        except BootstrapError as exc:
            self.state = ReadinessState.failed
            self.error = exc
            self.report = exc.report
            raise
        self.report = report
        self.state = ReadinessState.ready if report.ok else ReadinessState.incomplete
        return report

    async def wait(self) -> BootstrapReport:
        """
        Resolve once the run has finished.

        Returns the report when only non-fatal phases failed; raises the
        BootstrapError of a fatal run.
        """
        if self._task is None:
            raise RuntimeError("bootstrap not started")
        # shield: a cancelled waiter must not cancel the run itself
        return await asyncio.shield(self._task)


async def await_bootstrap(engine: AsyncEngine, settings: Settings) -> BootstrapReport:
    """Run one bootstrap to completion."""
    readiness = BootstrapReadiness()
    readiness.start(SchemaBootstrapper(engine, settings))
    return await readiness.wait()
