"""Send workload commands to the target service."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from wb_common.client import Client
from wb_common.errors import RemoteRequestError, WorkloadExecutionError, wrap_error
from wb_runner.models.workload import Asset, Command, SyncMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    route: str
    method: str
    status: int
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _request_body(
    command: Command,
    assets: Mapping[str, Asset],
    asset_paths: Mapping[str, Path],
) -> Dict[str, Any]:
    if command.body is None:
        return {}
    if command.body.asset is None:
        return {"json": command.body.inline}
    name = command.body.asset
    path = asset_paths[name]
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise wrap_error(
            WorkloadExecutionError,
            f"could not read asset {name} at {path}: {exc}",
            context={"asset": name, "path": path},
            cause=exc,
        ) from exc
    return {
        "content": content,
        "headers": {"Content-Type": assets[name].format.content_type},
    }


async def run_command(
    client: Client,
    command: Command,
    assets: Mapping[str, Asset],
    asset_paths: Mapping[str, Path],
) -> CommandResult:
    """Send one command and fail unless the target answers with 2xx."""
    kwargs = _request_body(command, assets, asset_paths)
    started = time.perf_counter()
    try:
        response = await client.request(command.method, command.route, **kwargs)
    except RemoteRequestError as exc:
        raise WorkloadExecutionError(
            f"command {command.method} {command.route} failed: {exc}",
            context={"route": command.route, "method": command.method},
            cause=exc,
        ) from exc
    duration_ms = (time.perf_counter() - started) * 1000.0
    if not response.is_success:
        raise WorkloadExecutionError(
            f"command {command.method} {command.route} returned status "
            f"{response.status_code}: {response.text}",
            context={
                "route": command.route,
                "method": command.method,
                "status": response.status_code,
            },
        )
    logger.debug(
        "%s %s -> %s in %.1fms", command.method, command.route, response.status_code, duration_ms
    )
    return CommandResult(
        route=command.route,
        method=command.method,
        status=response.status_code,
        duration_ms=duration_ms,
    )


async def _drain(pending: List[asyncio.Task[CommandResult]]) -> List[CommandResult]:
    """Await every pending command; on the first failure cancel the others."""
    if not pending:
        return []
    tasks = list(pending)
    pending.clear()
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def run_commands(
    client: Client,
    commands: Sequence[Command],
    assets: Mapping[str, Asset],
    asset_paths: Mapping[str, Path],
) -> List[CommandResult]:
    """Run commands in order.

    ``DontWait`` commands are dispatched without waiting; they are awaited
    together with the next ``WaitForResponse`` command, or at the end.
    Results are returned in command order.
    """
    results: List[CommandResult] = []
    pending: List[asyncio.Task[CommandResult]] = []
    try:
        for command in commands:
            pending.append(
                asyncio.create_task(run_command(client, command, assets, asset_paths))
            )
            if command.synchronous is SyncMode.WAIT_FOR_RESPONSE:
                results.extend(await _drain(pending))
        results.extend(await _drain(pending))
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    return results
