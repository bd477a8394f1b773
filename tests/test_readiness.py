"""
Readiness signal tests.
"""

import asyncio

import pytest

from app.bootstrap.errors import ConnectionAcquisitionError, FoundationalPhaseError
from app.bootstrap.readiness import BootstrapReadiness, ReadinessState, await_bootstrap
from app.bootstrap.sequencer import SchemaBootstrapper
from tests.conftest import FakeEngine


@pytest.mark.asyncio
async def test_resolves_with_report(engine, settings):
    readiness = BootstrapReadiness()
    assert readiness.state is ReadinessState.pending

    readiness.start(SchemaBootstrapper(engine, settings))
    report = await readiness.wait()

    assert report.ok
    assert readiness.state is ReadinessState.ready
    assert readiness.report is report
    assert readiness.error is None


@pytest.mark.asyncio
async def test_non_fatal_failure_still_resolves(engine, conn, settings):
    conn.fail_on("CREATE INDEX IF NOT EXISTS ix_pages", "42501")
    readiness = BootstrapReadiness()

    readiness.start(SchemaBootstrapper(engine, settings))
    report = await readiness.wait()

    assert not report.ok
    assert readiness.state is ReadinessState.incomplete


@pytest.mark.asyncio
async def test_foundational_failure_rejects(engine, conn, settings):
    conn.fail_on("CREATE TABLE IF NOT EXISTS users", "42501")
    readiness = BootstrapReadiness()

    readiness.start(SchemaBootstrapper(engine, settings))
    with pytest.raises(FoundationalPhaseError):
        await readiness.wait()

    assert readiness.state is ReadinessState.failed
    assert isinstance(readiness.error, FoundationalPhaseError)
    assert readiness.report is readiness.error.report


@pytest.mark.asyncio
async def test_connection_failure_rejects(settings):
    readiness = BootstrapReadiness()

    readiness.start(SchemaBootstrapper(FakeEngine(fail_times=99), settings))
    with pytest.raises(ConnectionAcquisitionError):
        await readiness.wait()

    assert readiness.state is ReadinessState.failed
    assert readiness.report is None


@pytest.mark.asyncio
async def test_several_waiters_see_the_same_outcome(engine, settings):
    readiness = BootstrapReadiness()
    readiness.start(SchemaBootstrapper(engine, settings))

    first, second = await asyncio.gather(readiness.wait(), readiness.wait())

    assert first is second


@pytest.mark.asyncio
async def test_wait_before_start_is_an_error():
    with pytest.raises(RuntimeError):
        await BootstrapReadiness().wait()


@pytest.mark.asyncio
async def test_cannot_start_twice(engine, settings):
    readiness = BootstrapReadiness()
    readiness.start(SchemaBootstrapper(engine, settings))
    with pytest.raises(RuntimeError):
        readiness.start(SchemaBootstrapper(engine, settings))
    await readiness.wait()


@pytest.mark.asyncio
async def test_await_bootstrap_runs_once(engine, conn, settings):
    report = await await_bootstrap(engine, settings)

    assert report.ok
    assert engine.attempts == 1
    assert conn.closed


class StuckBootstrapper:
    async def run(self):
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_stop_cancels_a_run_in_progress():
    readiness = BootstrapReadiness()
    readiness.start(StuckBootstrapper())

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(readiness.wait(), 0.01)
    assert readiness.state is ReadinessState.pending

    await readiness.stop()
    with pytest.raises(asyncio.CancelledError):
        await readiness.wait()


@pytest.mark.asyncio
async def test_stop_after_completion_is_a_no_op(engine, settings):
    readiness = BootstrapReadiness()
    readiness.start(SchemaBootstrapper(engine, settings))
    report = await readiness.wait()

    await readiness.stop()

    assert await readiness.wait() is report
