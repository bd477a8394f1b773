"""
Health endpoint.

Reports liveness plus the outcome of the schema bootstrap, so a degraded
start is visible to load balancers and operators.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from app.bootstrap.readiness import BootstrapReadiness, ReadinessState
from app.schemas.health import HealthResponse, PhaseSummary

router = APIRouter()

APP_VERSION = "1.0.0"

_STATUS_BY_STATE = {
    ReadinessState.pending: "starting",
    ReadinessState.ready: "ok",
    ReadinessState.incomplete: "degraded",
    ReadinessState.failed: "degraded",
}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    readiness: BootstrapReadiness = request.app.state.readiness
    report = readiness.report
    phases = []
    if report is not None:
        phases = [
            PhaseSummary(name=r.name, status=r.status.value, error=r.error)
            for r in report.phases
        ]
    return HealthResponse(
        status=_STATUS_BY_STATE[readiness.state],
        environment=request.app.state.settings.ENVIRONMENT,
        version=APP_VERSION,
        schema_state=readiness.state.value,
        phases=phases,
    )
