"""Record the target's diagnostic log stream into a trace file."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from wb_common.client import Client
from wb_common.errors import WorkloadExecutionError, wrap_error
from wb_runner.models.workload import LogStreamConfig

logger = logging.getLogger(__name__)


class LogStreamRecorder:
    """Copy a streaming response line by line into ``destination``.

    Runs as a background task between ``start()`` and ``stop()``. The log
    client has no timeout, so the stream lasts as long as the recorder does.
    A trace folder that cannot be created fails the run; failures while
    streaming are only logged.
    """

    def __init__(self, client: Client, config: LogStreamConfig, destination: Path) -> None:
        self._client = client
        self._config = config
        self.destination = destination
        self.lines = 0
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("log stream recorder already started")
        try:
            self.destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise wrap_error(
                WorkloadExecutionError,
                f"could not create trace folder {self.destination.parent}: {exc}",
                context={"path": self.destination.parent},
                cause=exc,
            ) from exc
        self._task = asyncio.create_task(self._record(), name=f"log-stream:{self.destination.name}")

    async def _record(self) -> None:
        async with self._client.stream(
            self._config.method, self._config.route, json=self._config.body
        ) as response:
            if not response.is_success:
                await response.aread()
                logger.warning(
                    "log stream returned status %s: %s", response.status_code, response.text
                )
                return
            with self.destination.open("w", encoding="utf-8") as fh:
                async for line in response.aiter_lines():
                    fh.write(line + "\n")
                    fh.flush()
                    self.lines += 1

    async def stop(self) -> int:
        """Stop recording and return the number of lines captured."""
        task = self._task
        if task is None:
            return self.lines
        if not task.done():
            task.cancel()
        result = (await asyncio.gather(task, return_exceptions=True))[0]
        if isinstance(result, Exception):
            logger.warning("log stream to %s failed: %s", self.destination, result)
        logger.debug("recorded %d log lines into %s", self.lines, self.destination)
        return self.lines
