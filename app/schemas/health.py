"""
Pydantic schemas for the health endpoint.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class PhaseSummary(BaseModel):
    name: str
    status: str
    error: str | None = None


class HealthResponse(BaseModel):
    """
    `degraded` means the app is serving although the schema bootstrap
    failed or left phases incomplete.
    """
    status: Literal["ok", "starting", "degraded"]
    environment: str
    version: str
    schema_state: str
    phases: list[PhaseSummary] = []
