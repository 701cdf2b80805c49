"""POST /resolve: resolve the maintenance window for a runtime."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mwr.api.dependencies import get_policy
from mwr.api.schemas import ResolveRequest, ResolveResponse
from mwr.policy.options import ResolutionOptions
from mwr.policy.resolver import MaintenanceWindowPolicy

router = APIRouter()


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_window(
    body: ResolveRequest,
    policy: MaintenanceWindowPolicy = Depends(get_policy),
) -> ResolveResponse:
    """Resolve the applicable maintenance window.

    Unknown or malformed options return 422; when no window can be
    resolved the response is 404.
    """
    options = ResolutionOptions.from_mapping(body.options)
    window = policy.resolve(body.runtime.to_runtime(), options)
    return ResolveResponse.from_window(window)
