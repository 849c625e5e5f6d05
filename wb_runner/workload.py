"""Load workload files and execute them against the target service."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from wb_common.errors import RemoteRequestError, WorkloadExecutionError, WorkloadLoadError
from wb_runner.assets import fetch_assets
from wb_runner.commands import run_commands
from wb_runner.log_stream import LogStreamRecorder
from wb_runner.models.context import WorkloadContext
from wb_runner.models.workload import Workload
from wb_runner.report import RunReport, safe_name

logger = logging.getLogger(__name__)


def load_workload(path: Path) -> Workload:
    """Read and validate a workload file."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise WorkloadLoadError(
            f"error opening {path}: {exc.strerror or exc}",
            context={"path": path},
            cause=exc,
        ) from exc
    try:
        return Workload.model_validate_json(raw)
    except ValidationError as exc:
        raise WorkloadLoadError(
            f"error parsing {path} as JSON: {exc}",
            context={"path": path},
            cause=exc,
        ) from exc


async def execute_workload(context: WorkloadContext, workload: Workload) -> None:
    """Run every repetition of ``workload`` and report each run to the dashboard."""
    logger.info("Running workload %s (%d runs)", workload.name, workload.run_count)
    asset_paths = await fetch_assets(context.assets_client, workload.assets, context.asset_folder)

    workload_uuid = await context.dashboard.create_workload(
        context.invocation_uuid, workload.name, workload.run_count
    )
    report_folder = context.report_folder / str(context.invocation_uuid)

    for run in range(1, workload.run_count + 1):
        report = await _execute_run(context, workload, run, asset_paths, report_folder)
        path = report.write(report_folder)
        logger.info("Wrote report for %s run %d to %s", workload.name, run, path)
        try:
            await context.dashboard.create_run(workload_uuid, report.to_dict())
        except RemoteRequestError as exc:
            raise WorkloadExecutionError(
                f"could not report run {run} of workload {workload.name}: {exc}",
                context={"workload": workload.name, "run": run},
                cause=exc,
            ) from exc


async def _execute_run(
    context: WorkloadContext,
    workload: Workload,
    run: int,
    asset_paths: dict[str, Path],
    report_folder: Path,
) -> RunReport:
    if workload.precommands:
        logger.debug("Running %d precommands", len(workload.precommands))
        await run_commands(
            context.target_client, workload.precommands, workload.assets, asset_paths
        )

    recorder: LogStreamRecorder | None = None
    if workload.log_stream is not None:
        trace_path = report_folder / f"{safe_name(workload.name)}-run{run}.trace.jsonl"
        recorder = LogStreamRecorder(context.logs_client, workload.log_stream, trace_path)
        recorder.start()

    started_at = datetime.now(timezone.utc).isoformat()
    started = time.perf_counter()
    try:
        results = await run_commands(
            context.target_client, workload.commands, workload.assets, asset_paths
        )
        duration_ms = (time.perf_counter() - started) * 1000.0
    finally:
        trace_lines = await recorder.stop() if recorder else 0

    return RunReport(
        workload=workload.name,
        run=run,
        started_at=started_at,
        duration_ms=duration_ms,
        commands=results,
        trace_path=recorder.destination if recorder else None,
        trace_lines=trace_lines,
    )
