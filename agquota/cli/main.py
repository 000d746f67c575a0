"""Main entry point for the agquota CLI."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from agquota._version import __version__
from agquota.cli.helpers import (
    account_lines,
    dim,
    format_timestamp,
    get_rich_toolkit,
    quota_table,
)
from agquota.config.settings import ConfigurationError, Settings
from agquota.core.logging import mask_secret, setup_logging
from agquota.models.quota import QuotaSnapshot, RefreshState
from agquota.models.sorting import QuotaSortOrder, sort_quotas
from agquota.services.container import ServiceContainer
from agquota.services.credentials import Credentials, CredentialsError
from agquota.services.language_server import DiscoveryError, ProcessLocator


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"agquota {__version__}", tag="version")
        raise typer.Exit()


def _use_json_logs(log_format: str) -> bool:
    if log_format == "auto":
        return not sys.stderr.isatty()
    return log_format == "json"


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
) -> None:
    """Antigravity model quota monitor."""
    try:
        settings = Settings.from_config(
            config_path=config, logging={"level": log_level}
        )
    except ConfigurationError as e:
        get_rich_toolkit().print(str(e), tag="error")
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=_use_json_logs(settings.logging.format),
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _get_settings(ctx: typer.Context) -> Settings:
    settings: Settings = ctx.obj["settings"]
    return settings


def _print_snapshot(snapshot: QuotaSnapshot, order: QuotaSortOrder) -> None:
    toolkit = get_rich_toolkit()

    source = "Cloud Code" if snapshot.used_cloud_code else "Language Server"
    toolkit.print(
        f"{source} {dim('updated ' + format_timestamp(snapshot.last_update))}",
        tag="cloud" if snapshot.used_cloud_code else "server",
    )
    toolkit.print_line()

    if snapshot.account is not None:
        for line in account_lines(snapshot.account):
            toolkit.print(line, tag="account")
        toolkit.print_line()

    quotas = sort_quotas(snapshot.quotas, order)
    if not quotas:
        toolkit.print("No model quotas reported", tag="warning")
        return

    console.print(quota_table(quotas, title=f"Model quotas ({order.value})"))
    console.print(f"Primary: {snapshot.status_summary_verbose(order)}")


@app.command()
def status(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Ask Cloud Code first for fresh data"),
    ] = False,
    sort: Annotated[
        QuotaSortOrder | None,
        typer.Option("--sort", "-s", help="Sort order for the quota table"),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the snapshot as JSON")
    ] = False,
) -> None:
    """Fetch quotas once and print them."""
    settings = _get_settings(ctx)
    order = sort or settings.refresh.sort_order

    async def _run() -> QuotaSnapshot:
        async with ServiceContainer(settings) as container:
            orchestrator = container.get_orchestrator()
            if force:
                snapshot = await orchestrator.force_refresh()
                await orchestrator.wait_for_account_refresh()
                return orchestrator.snapshot if snapshot.is_connected else snapshot
            return await orchestrator.refresh()

    snapshot = asyncio.run(_run())

    if json_output:
        data: dict[str, Any] = snapshot.model_dump(mode="json")
        data["quotas"] = [
            q.model_dump(mode="json") for q in sort_quotas(snapshot.quotas, order)
        ]
        typer.echo(json.dumps(data, indent=2))
    elif snapshot.state == RefreshState.CONNECTED:
        _print_snapshot(snapshot, order)

    if snapshot.state == RefreshState.ERROR:
        if not json_output:
            get_rich_toolkit().print(snapshot.error or "Refresh failed", tag="error")
        raise typer.Exit(1)


@app.command()
def watch(
    ctx: typer.Context,
    interval: Annotated[
        float | None,
        typer.Option(
            "--interval", "-i", min=5.0, help="Seconds between refreshes"
        ),
    ] = None,
) -> None:
    """Refresh periodically and print a line per update until interrupted."""
    settings = _get_settings(ctx)
    order = settings.refresh.sort_order

    def on_snapshot(snapshot: QuotaSnapshot) -> None:
        if snapshot.is_loading:
            return
        timestamp = format_timestamp(snapshot.last_update)
        if snapshot.is_connected:
            source = "cloud" if snapshot.used_cloud_code else "local"
            console.print(
                f"{dim(timestamp)} {snapshot.status_summary_verbose(order)} "
                f"{dim('(' + source + ')')}"
            )
        else:
            console.print(f"{dim(timestamp)} [red]{snapshot.error}[/red]")

    async def _run() -> None:
        async with ServiceContainer(settings) as container:
            orchestrator = container.get_orchestrator()
            orchestrator.subscribe(on_snapshot)
            orchestrator.start_auto_refresh(interval)
            await asyncio.Event().wait()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


@app.command()
def discover(ctx: typer.Context) -> None:
    """Locate the language server and print its connection details."""
    settings = _get_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        connection = ProcessLocator(settings.discovery).discover_connection()
    except DiscoveryError as e:
        toolkit.print(str(e), tag="error")
        raise typer.Exit(1) from e

    toolkit.print(f"PID: {connection.pid}", tag="server")
    toolkit.print(f"Port: {connection.port}", tag="server")
    toolkit.print(f"URL: {connection.base_url}", tag="server")
    toolkit.print(f"CSRF token: {mask_secret(connection.csrf_token)}", tag="server")


@app.command()
def credentials(
    ctx: typer.Context,
    refresh: Annotated[
        bool,
        typer.Option("--refresh", help="Refresh the access token if it expired"),
    ] = False,
) -> None:
    """Show where credentials are stored and what they contain."""
    settings = _get_settings(ctx)
    toolkit = get_rich_toolkit()

    async def _run() -> tuple[Path, Credentials]:
        async with ServiceContainer(settings) as container:
            manager = container.get_credentials_manager()
            path = manager.find_database_path()
            if refresh:
                return path, await manager.get_credentials()
            return path, await manager.load_from_store()

    try:
        path, creds = asyncio.run(_run())
    except CredentialsError as e:
        toolkit.print(str(e), tag="error")
        raise typer.Exit(1) from e

    expiry = format_timestamp(creds.expires_at) if creds.expires_at else "unknown"
    if creds.is_expired:
        expiry = f"{expiry} [red](expired)[/red]"

    toolkit.print(f"Database: {path}", tag="config")
    toolkit.print(f"Email: {creds.email or 'unknown'}", tag="account")
    toolkit.print(f"Access token: {mask_secret(creds.access_token)}", tag="account")
    toolkit.print(f"Expires: {expiry}", tag="account")
    toolkit.print(f"Project: {creds.project_id or 'not stored'}", tag="account")
    toolkit.print(
        f"Refreshable: {'yes' if creds.can_refresh else 'no'}", tag="account"
    )


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
