"""Global exception handlers — logs full details internally, returns sanitized errors to callers.

Never exposes stack traces, internal paths, or implementation details in API responses.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mwr.policy.errors import InvalidOptionError, NoWindowResolvedError, PolicyLoadError

logger = structlog.get_logger()


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(InvalidOptionError)
    async def invalid_option_handler(request: Request, exc: InvalidOptionError) -> JSONResponse:
        await logger.awarning("invalid_option", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=422,
            content={"detail": "Invalid option", "error": str(exc)},
        )

    @app.exception_handler(NoWindowResolvedError)
    async def no_window_handler(request: Request, exc: NoWindowResolvedError) -> JSONResponse:
        await logger.ainfo("no_window_resolved_response", path=request.url.path)
        return JSONResponse(
            status_code=404,
            content={"detail": "No maintenance window resolved"},
        )

    @app.exception_handler(PolicyLoadError)
    async def policy_load_handler(request: Request, exc: PolicyLoadError) -> JSONResponse:
        await logger.aerror("policy_load_failed", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=422,
            content={"detail": "Invalid policy"},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        await logger.awarning(
            "validation_error",
            path=request.url.path,
            errors=exc.error_count(),
        )
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors(include_url=False)},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        await logger.aerror(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
