"""Results dashboard API client.

The dashboard is the system of record for invocations: it allocates invocation
and workload identifiers and stores run reports. Success is implicit; only
failure and cancellation are signalled explicitly.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

import httpx

from wb_common.build_info import BuildInfo
from wb_common.client import Client, expect_success
from wb_common.env_info import Environment
from wb_common.errors import RemoteRequestError
from wb_common.observability.reporting import report_best_effort

logger = logging.getLogger(__name__)

PANIC_MESSAGE = "Panicked"


def _parse_uuid(response: httpx.Response, action: str) -> uuid.UUID:
    try:
        data = response.json()
    except ValueError as exc:
        raise RemoteRequestError(
            f"{action}: response is not JSON", context={"body": response.text}, cause=exc
        ) from exc
    raw = data.get("uuid") if isinstance(data, dict) else data
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError) as exc:
        raise RemoteRequestError(
            f"{action}: response does not contain a uuid", context={"body": response.text}, cause=exc
        ) from exc


class DashboardClient:
    """Dashboard reporting protocol over a configured ``Client``."""

    def __init__(self, client: Client) -> None:
        self._client = client

    async def send_machine_info(self, environment: Environment) -> None:
        response = await self._client.put("machine", json={"hostname": environment.hostname})
        expect_success(response, "could not send machine info")

    async def create_invocation(
        self,
        build_info: BuildInfo,
        commit_message: str,
        environment: Environment,
        max_workloads: int,
        reason: str | None = None,
    ) -> uuid.UUID:
        payload = {
            "commit": {
                "sha1": build_info.commit_sha1,
                "message": commit_message,
                "commit_date": build_info.commit_date,
                "branch": build_info.branch,
                "tag": build_info.tag,
            },
            "machine_hostname": environment.hostname,
            "environment": environment.to_dict(),
            "max_workloads": max_workloads,
            "reason": reason,
        }
        response = await self._client.put("invocation", json=payload)
        expect_success(response, "could not create new invocation")
        invocation_uuid = _parse_uuid(response, "could not create new invocation")
        logger.info("created invocation %s", invocation_uuid)
        return invocation_uuid

    async def create_workload(
        self, invocation_uuid: uuid.UUID, name: str, max_runs: int
    ) -> uuid.UUID:
        response = await self._client.put(
            "workload",
            json={
                "invocation_uuid": str(invocation_uuid),
                "name": name,
                "max_runs": max_runs,
            },
        )
        expect_success(response, "could not create new workload")
        return _parse_uuid(response, "could not create new workload")

    async def create_run(self, workload_uuid: uuid.UUID, report: Mapping[str, Any]) -> None:
        response = await self._client.put(
            "run", json={"workload_uuid": str(workload_uuid), "data": dict(report)}
        )
        expect_success(response, "could not create new run")

    async def _cancel_invocation(self, payload: dict[str, Any]) -> None:
        response = await self._client.post("cancel-invocation", json=payload)
        expect_success(response, "could not cancel invocation")

    async def mark_as_failed(
        self, invocation_uuid: uuid.UUID, message: str | None = None
    ) -> bool:
        """Record the invocation as failed. Never raises."""
        return await report_best_effort(
            "mark invocation as failed",
            self._cancel_invocation(
                {"invocation_uuid": str(invocation_uuid), "failure_reason": message}
            ),
            invocation_uuid=invocation_uuid,
        )

    async def cancel(self, invocation_uuid: uuid.UUID) -> bool:
        """Record the invocation as cancelled by the operator. Never raises."""
        return await report_best_effort(
            "cancel invocation",
            self._cancel_invocation({"invocation_uuid": str(invocation_uuid)}),
            invocation_uuid=invocation_uuid,
        )
