"""Cancel an invocation when an interrupt arrives."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from wb_common.observability.dashboard import DashboardClient
from wb_controller.engine.interrupts import InterruptSource

logger = logging.getLogger(__name__)


class CancellationWatcher:
    """Wait for an interrupt, report the cancellation, then stop the workloads.

    The dashboard call is awaited before the workload task is cancelled so the
    cancellation is recorded even if the process exits right after.
    """

    def __init__(
        self,
        invocation_uuid: uuid.UUID,
        dashboard: DashboardClient,
        target: asyncio.Task[Any],
        interrupt: InterruptSource,
    ) -> None:
        self._invocation_uuid = invocation_uuid
        self._dashboard = dashboard
        self._target = target
        self._interrupt = interrupt
        self.fired = False

    async def run(self) -> None:
        logger.info("press Ctrl-C to cancel the invocation")
        await self._interrupt.wait()
        self.fired = True
        logger.info("cancelling invocation %s", self._invocation_uuid)
        await self._dashboard.cancel(self._invocation_uuid)
        self._target.cancel()
