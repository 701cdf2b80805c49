"""FastAPI dependency injection: policy and configuration.

All dependencies read from app.state, which is populated during lifespan startup.
"""

from __future__ import annotations

from fastapi import Request

from mwr.config import Settings
from mwr.policy.resolver import MaintenanceWindowPolicy


def get_policy(request: Request) -> MaintenanceWindowPolicy:
    """Get the loaded MaintenanceWindowPolicy from app state."""
    return request.app.state.policy


def get_settings(request: Request) -> Settings:
    """Get the Settings instance from app state."""
    return request.app.state.settings
