"""Invocation lifecycle controller.

Creates the invocation on the dashboard, runs the workload sequence next to a
cancellation watcher, classifies how the sequence ended and reports it.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable

import structlog

from wb_common.build_info import BuildInfo, collect_build_info
from wb_common.env_info import Environment, collect_environment
from wb_common.errors import WBError
from wb_common.logging import LoggingConfig
from wb_common.observability.dashboard import PANIC_MESSAGE, DashboardClient
from wb_controller.engine.interrupts import InterruptSource, SignalInterrupt
from wb_controller.engine.sequencer import ExecuteFn, WorkloadSequencer
from wb_controller.engine.tasks import join_task
from wb_controller.engine.watcher import CancellationWatcher
from wb_controller.models.outcome import RunOutcome, RunStatus, TaskOutcome, TaskStatus
from wb_controller.models.settings import BenchSettings
from wb_controller.services.clients import BenchClients, build_clients
from wb_runner.api import WorkloadContext, execute_workload

logger = logging.getLogger(__name__)


class InvocationController:
    """Drive one invocation from creation to its final status."""

    def __init__(
        self,
        settings: BenchSettings,
        *,
        log_config: LoggingConfig | None = None,
        clients: BenchClients | None = None,
        interrupt: InterruptSource | None = None,
        collect_env: Callable[[], Environment] = collect_environment,
        collect_build: Callable[[], BuildInfo] = collect_build_info,
        execute: ExecuteFn = execute_workload,
    ) -> None:
        self._settings = settings
        self._log_config = log_config
        self._clients = clients
        self._interrupt = interrupt
        self._collect_env = collect_env
        self._collect_build = collect_build
        self._execute = execute

    async def run(self) -> RunOutcome:
        """Run the invocation.

        Raises before the invocation exists (configuration, environment or
        creation errors) and re-raises faults of the workload task after
        reporting them. Every other ending is returned as a ``RunOutcome``.
        """
        if self._log_config is not None:
            self._log_config.apply()

        environment = self._collect_env()
        build_info = self._collect_build()
        commit_message = build_info.commit_summary()

        owns_clients = self._clients is None
        clients = self._clients or build_clients(self._settings)
        try:
            dashboard = DashboardClient(clients.dashboard)
            await dashboard.send_machine_info(environment)
            invocation_uuid = await dashboard.create_invocation(
                build_info,
                commit_message,
                environment,
                len(self._settings.workload_files),
                self._settings.reason,
            )
            with structlog.contextvars.bound_contextvars(invocation_uuid=str(invocation_uuid)):
                return await self._supervise(invocation_uuid, clients, dashboard)
        finally:
            if owns_clients:
                await clients.aclose()

    async def _supervise(
        self,
        invocation_uuid: uuid.UUID,
        clients: BenchClients,
        dashboard: DashboardClient,
    ) -> RunOutcome:
        context = WorkloadContext(
            invocation_uuid=invocation_uuid,
            assets_client=clients.assets,
            dashboard=dashboard,
            logs_client=clients.logs,
            target_client=clients.target,
            asset_folder=self._settings.asset_folder,
            report_folder=self._settings.report_folder,
        )
        sequencer = WorkloadSequencer(self._settings.workload_files, context, self._execute)
        interrupt = self._interrupt or SignalInterrupt()

        with interrupt:
            workload_runs = asyncio.create_task(sequencer.run(), name="workload-runs")
            watcher = CancellationWatcher(invocation_uuid, dashboard, workload_runs, interrupt)
            watch = asyncio.create_task(watcher.run(), name="cancellation-watcher")
            try:
                outcome = await join_task(workload_runs)
            finally:
                workload_runs.cancel()
                if not watcher.fired:
                    watch.cancel()
                await asyncio.gather(workload_runs, watch, return_exceptions=True)

        return await self._conclude(invocation_uuid, outcome, dashboard)

    async def _conclude(
        self,
        invocation_uuid: uuid.UUID,
        outcome: TaskOutcome,
        dashboard: DashboardClient,
    ) -> RunOutcome:
        if outcome.status is TaskStatus.CANCELLED:
            logger.warning("task was canceled")
            return RunOutcome(invocation_uuid, RunStatus.CANCELLED)

        if outcome.status is TaskStatus.FAULTED and outcome.error is not None:
            # The fault payload stays local; the dashboard only gets a marker.
            logger.error("invocation panicked, attempting to report the failure to dashboard")
            await dashboard.mark_as_failed(invocation_uuid, PANIC_MESSAGE)
            raise outcome.error

        if outcome.error is None:
            logger.info("Success")
            return RunOutcome(invocation_uuid, RunStatus.SUCCESS)

        details = (
            outcome.error.to_dict()
            if isinstance(outcome.error, WBError)
            else {"type": type(outcome.error).__name__, "message": str(outcome.error)}
        )
        logger.error(
            "invocation failed, attempting to report the failure to dashboard: %s",
            outcome.error,
            extra={"error": details},
        )
        await dashboard.mark_as_failed(invocation_uuid, str(outcome.error))
        logger.warning("invocation marked as failed following error")
        return RunOutcome(invocation_uuid, RunStatus.FAILURE, outcome.error)
