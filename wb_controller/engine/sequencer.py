"""Run workload files one after the other."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable, Sequence

from wb_runner.api import Workload, WorkloadContext, execute_workload, load_workload

logger = logging.getLogger(__name__)

ExecuteFn = Callable[[WorkloadContext, Workload], Awaitable[None]]


class WorkloadSequencer:
    """Load and execute workloads strictly in list order.

    Target state carries over from one workload to the next, so the first
    failure stops the sequence: later workloads are neither loaded nor run.
    """

    def __init__(
        self,
        workload_files: Sequence[Path],
        context: WorkloadContext,
        execute: ExecuteFn = execute_workload,
    ) -> None:
        self._workload_files = list(workload_files)
        self._context = context
        self._execute = execute
        self.completed: list[Path] = []

    async def run(self) -> None:
        logger.info("handling %d workload files", len(self._workload_files))
        total = len(self._workload_files)
        for index, workload_file in enumerate(self._workload_files, start=1):
            workload = load_workload(workload_file)
            logger.info("[%d/%d] %s (%s)", index, total, workload.name, workload_file)
            await self._execute(self._context, workload)
            self.completed.append(workload_file)
