"""Pydantic request/response schemas for the API endpoints.

These are wire-format schemas, separate from the ruleset models
(policy/models.py). Options stay an untyped mapping here so that
ResolutionOptions.from_mapping() is the single place they are decoded.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mwr.policy.matcher import Runtime
from mwr.policy.schedule import ResolvedWindow, format_utc


class RuntimeSchema(BaseModel):
    """Identifying attributes of the workload to resolve for."""

    model_config = ConfigDict(extra="forbid")

    global_account_id: str = Field(default="", max_length=255)
    plan: str = Field(default="", max_length=255)
    region: str = Field(default="", max_length=255)
    platform_region: str = Field(default="", max_length=255)

    def to_runtime(self) -> Runtime:
        return Runtime(
            global_account_id=self.global_account_id,
            plan=self.plan,
            region=self.region,
            platform_region=self.platform_region,
        )


class ResolveRequest(BaseModel):
    """POST /resolve request body."""

    model_config = ConfigDict(extra="forbid")

    runtime: RuntimeSchema = Field(default_factory=RuntimeSchema)
    options: dict[str, Any] = Field(default_factory=dict)


class ResolveResponse(BaseModel):
    """POST /resolve response body. Times are RFC 3339 UTC strings."""

    begin: str
    end: str
    duration_seconds: int

    @classmethod
    def from_window(cls, window: ResolvedWindow) -> ResolveResponse:
        return cls(
            begin=format_utc(window.begin),
            end=format_utc(window.end),
            duration_seconds=int(window.duration.total_seconds()),
        )


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str
    policy_version: str
    rule_count: int


class PolicyReloadResponse(BaseModel):
    """POST /policy/reload response body."""

    status: str
    version: str
    rule_count: int
    diff: str | None = None
