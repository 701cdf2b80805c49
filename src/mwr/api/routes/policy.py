"""Policy management routes.

POST /policy/reload: reload the configured ruleset and swap the active policy
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from mwr.api.dependencies import get_policy, get_settings
from mwr.api.schemas import PolicyReloadResponse
from mwr.config import Settings
from mwr.policy.loader import configured_policy_path, reload_policy
from mwr.policy.resolver import MaintenanceWindowPolicy

router = APIRouter()


@router.post("/policy/reload", response_model=PolicyReloadResponse)
async def reload_active_policy(
    request: Request,
    current: MaintenanceWindowPolicy = Depends(get_policy),
    settings: Settings = Depends(get_settings),
) -> PolicyReloadResponse:
    """Hot reload the policy file.

    The new ruleset is fully validated before it replaces the active policy;
    on failure the current policy stays in place. Requests already resolving
    keep the policy they started with.
    """
    new_policy, diff = await reload_policy(configured_policy_path(settings), current)
    request.app.state.policy = new_policy

    return PolicyReloadResponse(
        status="reloaded",
        version=new_policy.version,
        rule_count=len(new_policy.rules),
        diff=diff,
    )
