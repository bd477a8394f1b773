"""
Idempotent schema bootstrap.

Converges the database to the shape of app.models on every process start:
base tables, default wiki, additive column injection, tenant-scoped
constraints and indexes, orphan backfill. No migration ledger is kept;
the current state is re-read from the catalog on every run.
"""

from app.bootstrap.errors import (
    BootstrapError,
    ConnectionAcquisitionError,
    FoundationalPhaseError,
)
from app.bootstrap.readiness import BootstrapReadiness, ReadinessState, await_bootstrap
from app.bootstrap.sequencer import (
    BootstrapReport,
    PhaseResult,
    PhaseStatus,
    SchemaBootstrapper,
)

__all__ = [
    "BootstrapError",
    "ConnectionAcquisitionError",
    "FoundationalPhaseError",
    "BootstrapReadiness",
    "ReadinessState",
    "await_bootstrap",
    "BootstrapReport",
    "PhaseResult",
    "PhaseStatus",
    "SchemaBootstrapper",
]
