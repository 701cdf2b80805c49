"""FastAPI application factory, lifespan management, and middleware configuration.

Creates the FastAPI app with:
- Async lifespan (logging, policy load)
- Request body size limit middleware
- All route modules registered
- Global error handlers
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from starlette.responses import JSONResponse

from mwr import __version__
from mwr.api.error_handlers import register_error_handlers
from mwr.api.routes import health, policy, resolve
from mwr.config import Settings
from mwr.log_config import configure_logging
from mwr.policy.loader import load_configured_policy

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown logic.

    Startup:
        1. Configure structured logging
        2. Load the maintenance window policy (a bad policy aborts startup)
        3. Store it on app.state

    The policy object is never mutated; POST /policy/reload swaps in a new one.
    """
    settings: Settings = app.state.settings

    # 1. Logging
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    # 2-3. Policy
    loaded = await load_configured_policy(settings)
    app.state.policy = loaded

    await logger.ainfo(
        "startup_complete",
        policy_version=loaded.version,
        rule_count=len(loaded.rules),
    )

    yield

    await logger.ainfo("shutdown_complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory — create and configure the FastAPI app.

    Args:
        settings: Optional Settings instance. If None, loads from environment.

    Returns:
        A fully configured FastAPI application.
    """
    if settings is None:
        from mwr.config import get_settings
        settings = get_settings()

    app = FastAPI(
        title="Maintenance Window Resolver",
        description="Resolves maintenance windows for tenant workloads from an ordered rule policy",
        version=__version__,
        lifespan=lifespan,
    )

    # Attach settings before lifespan runs
    app.state.settings = settings

    # --- Request body size limit ---
    max_body = settings.max_request_body_bytes

    @app.middleware("http")
    async def limit_request_body(request: Request, call_next: object) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > max_body:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large"},
            )
        response = await call_next(request)  # type: ignore[operator]
        return response

    # --- Routes ---
    app.include_router(resolve.router)
    app.include_router(health.router)
    app.include_router(policy.router)

    # --- Error handlers ---
    register_error_handlers(app)

    return app
