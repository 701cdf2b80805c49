"""Health check endpoints.

- GET /health/live — fast liveness probe
- GET /health — policy status
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mwr.api.dependencies import get_policy
from mwr.api.schemas import HealthResponse
from mwr.policy.resolver import MaintenanceWindowPolicy

router = APIRouter()


class LivenessResponse(BaseModel):
    """Liveness probe response."""

    status: str


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_probe() -> LivenessResponse:
    """Fast liveness probe — is the process running?"""
    return LivenessResponse(status="alive")


@router.get("/health", response_model=HealthResponse)
async def health_check(
    policy: MaintenanceWindowPolicy = Depends(get_policy),
) -> HealthResponse:
    """Report the loaded policy. The app does not start without one."""
    return HealthResponse(
        status="healthy",
        policy_version=policy.version,
        rule_count=len(policy.rules),
    )
