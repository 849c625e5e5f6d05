"""
Command-line interface for workload-bench.

`wb run` executes workload files against the target service and reports the
invocation to the results dashboard; `wb env` prints what would be reported
about this machine.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from wb_common.api import LoggingConfig, collect_build_info, collect_environment
from wb_common.errors import WBError
from wb_controller.api import BenchSettings, InvocationController, RunStatus
from wb_controller.models.settings import (
    DEFAULT_ASSET_FOLDER,
    DEFAULT_DASHBOARD_URL,
    DEFAULT_REPORT_FOLDER,
    DEFAULT_TARGET_URL,
)

console = Console(stderr=True)

app = typer.Typer(
    help="Run benchmark workloads and report them to the results dashboard.",
    no_args_is_help=True,
)


@app.command("run")
def run(
    workload_files: List[Path] = typer.Argument(
        ...,
        metavar="WORKLOAD_FILE...",
        help="Workload files; pass several to run them in the given order.",
    ),
    dashboard_url: str = typer.Option(
        DEFAULT_DASHBOARD_URL, "--dashboard-url", envvar="WB_DASHBOARD_URL", help="URL of the dashboard."
    ),
    target_url: str = typer.Option(
        DEFAULT_TARGET_URL, "--target-url", envvar="WB_TARGET_URL", help="URL of the target service."
    ),
    report_folder: Path = typer.Option(
        DEFAULT_REPORT_FOLDER, "--report-folder", help="Directory to output reports."
    ),
    asset_folder: Path = typer.Option(
        DEFAULT_ASSET_FOLDER, "--asset-folder", help="Directory to store the remote assets."
    ),
    log_filter: Optional[str] = typer.Option(
        None,
        "--log-filter",
        "-l",
        envvar="WB_LOG_FILTER",
        help="Log directives, e.g. 'info,httpx=warning'. Defaults to WB_LOG_LEVEL, then info.",
    ),
    log_json: bool = typer.Option(
        False, "--log-json/--no-log-json", envvar="WB_LOG_JSON", help="Emit JSON logs."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", envvar="WB_API_KEY", help="Benchmark dashboard API key."
    ),
    target_key: Optional[str] = typer.Option(
        None, "--target-key", envvar="WB_TARGET_KEY", help="Bearer for the target service."
    ),
    assets_key: Optional[str] = typer.Option(
        None, "--assets-key", envvar="WB_ASSETS_KEY", help="Bearer for fetching assets."
    ),
    reason: Optional[str] = typer.Option(
        None, "--reason", "-r", help="Reason for the benchmark invocation."
    ),
) -> None:
    """Run benchmarks from workload files."""
    try:
        settings = BenchSettings(
            workload_files=workload_files,
            dashboard_url=dashboard_url,
            target_url=target_url,
            report_folder=report_folder,
            asset_folder=asset_folder,
            log_filter=log_filter,
            api_key=api_key,
            target_key=target_key,
            assets_key=assets_key,
            reason=reason,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid settings:[/red] {exc}")
        raise typer.Exit(1)

    controller = InvocationController(
        settings,
        log_config=LoggingConfig(log_filter=settings.log_filter, json=log_json),
    )
    try:
        outcome = asyncio.run(controller.run())
    except WBError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if outcome.status is RunStatus.FAILURE:
        console.print(f"[red]Invocation {outcome.invocation_uuid} failed:[/red] {outcome.error}")
    elif outcome.status is RunStatus.CANCELLED:
        console.print(f"[yellow]Invocation {outcome.invocation_uuid} cancelled.[/yellow]")
    else:
        console.print(f"[green]Invocation {outcome.invocation_uuid} succeeded.[/green]")
    raise typer.Exit(outcome.exit_code)


@app.command("env")
def env() -> None:
    """Print the environment snapshot and build info reported with invocations."""
    payload = {
        "environment": collect_environment().to_dict(),
        "build": collect_build_info().to_dict(),
    }
    typer.echo(json.dumps(payload, indent=2))


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
