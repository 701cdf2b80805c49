"""CLI entrypoint — Typer-based command interface.

Commands:
    mwr resolve        — One-shot window resolution for a runtime
    mwr validate       — Load a ruleset and summarize its rules
    mwr serve          — Start the FastAPI server
"""

from __future__ import annotations

import asyncio
from typing import Any

import typer

app = typer.Typer(
    name="mwr",
    help="Maintenance Window Resolver: finds when disruptive operations on a workload are allowed",
)


@app.command()
def resolve(
    policy_file: str | None = typer.Option(
        None, "--policy", help="Ruleset file (defaults to MWR_POLICY_NAME or MWR_POLICY_FILE_PATH)"
    ),
    global_account_id: str = typer.Option("", help="Global account ID of the runtime"),
    plan: str = typer.Option("", help="Plan of the runtime"),
    region: str = typer.Option("", help="Region of the runtime"),
    platform_region: str = typer.Option("", help="Platform region of the runtime"),
    at: str | None = typer.Option(None, help="RFC 3339 instant to resolve from (default: now)"),
    ongoing: bool = typer.Option(False, help="Accept a window already in progress"),
    min_window_size: str | None = typer.Option(
        None, help="Minimum ongoing window size, seconds or ISO 8601 duration (e.g. PT5H)"
    ),
    first_match_only: bool = typer.Option(True, help="Only try the first matching rule"),
    fallback_default: bool = typer.Option(True, help="Fall back to the default rule"),
) -> None:
    """Resolve the maintenance window for a runtime and print it."""
    from mwr.config import get_settings
    from mwr.log_config import configure_logging
    from mwr.policy.errors import MaintenanceWindowError
    from mwr.policy.loader import load_configured_policy, load_policy
    from mwr.policy.matcher import Runtime
    from mwr.policy.options import ResolutionOptions

    settings = get_settings()
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    raw_options: dict[str, Any] = {
        "ongoing": ongoing,
        "first_match_only": first_match_only,
        "fallback_default": fallback_default,
    }
    if at is not None:
        raw_options["at"] = at
    if min_window_size is not None:
        raw_options["min_window_size"] = int(min_window_size) if min_window_size.isdigit() else min_window_size

    runtime = Runtime(
        global_account_id=global_account_id,
        plan=plan,
        region=region,
        platform_region=platform_region,
    )

    try:
        if policy_file:
            policy = asyncio.run(load_policy(policy_file))
        else:
            policy = asyncio.run(load_configured_policy(settings))
        options = ResolutionOptions.from_mapping(raw_options)
        window = policy.resolve(runtime, options)
    except (MaintenanceWindowError, FileNotFoundError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Begin:    {window.to_dict()['begin']}")
    typer.echo(f"End:      {window.to_dict()['end']}")
    typer.echo(f"Duration: {window.duration}")


@app.command()
def validate(
    path: str = typer.Argument(help="Ruleset file to validate"),
) -> None:
    """Load a ruleset and print its rules in priority order."""
    from mwr.policy.errors import PolicyLoadError
    from mwr.policy.loader import load_policy

    try:
        policy = asyncio.run(load_policy(path))
    except (PolicyLoadError, FileNotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Version: {policy.version}")
    typer.echo(f"Rules:   {len(policy.rules)}")
    for index, rule in enumerate(policy.rules):
        typer.echo(f"  [{index}] {rule.match}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="API server host"),
    port: int = typer.Option(8000, help="API server port"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the resolver FastAPI server."""
    import uvicorn

    uvicorn.run(
        "mwr.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    app()
