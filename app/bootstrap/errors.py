"""
Schema bootstrap exceptions.

Only BootstrapError subclasses escape a bootstrap run. PhaseError stays
inside the sequencer, which turns it into a failed phase result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.bootstrap.sequencer import BootstrapReport


class BootstrapError(Exception):
    """Base class for fatal bootstrap failures."""

    def __init__(self, message: str, report: BootstrapReport | None = None) -> None:
        super().__init__(message)
        self.report = report


class ConnectionAcquisitionError(BootstrapError):
    """Every connection attempt failed."""

    def __init__(self, attempts: int, cause: BaseException) -> None:
        super().__init__(f"could not connect after {attempts} attempt(s): {cause}")
        self.attempts = attempts


class FoundationalPhaseError(BootstrapError):
    """Base tables could not be created; nothing else can work."""

    def __init__(self, phase: str, error: str, report: BootstrapReport | None = None) -> None:
        super().__init__(f"phase {phase!r} failed: {error}", report=report)
        self.phase = phase


class PhaseError(Exception):
    """
    An unexpected error aborted one phase's transaction.

    `transient` marks a deadlock or serialization failure: the phase may
    succeed when its transaction is run again.
    """

    def __init__(
        self,
        phase: str,
        label: str,
        cause: BaseException | str,
        transient: bool = False,
    ) -> None:
        super().__init__(f"{label}: {cause}")
        self.phase = phase
        self.label = label
        self.cause = cause
        self.transient = transient
