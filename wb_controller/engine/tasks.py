"""Join an asyncio task into an explicit ``TaskOutcome``."""

from __future__ import annotations

import asyncio
from typing import Any

from wb_common.errors import WBError
from wb_controller.models.outcome import TaskOutcome


async def join_task(task: asyncio.Task[Any]) -> TaskOutcome:
    """Wait for ``task`` and classify how it ended.

    A ``WBError`` is a returned failure, a cancelled task is a cancellation,
    anything else is a fault. Cancelling the caller does not cancel ``task``.
    """
    await asyncio.wait({task})
    if task.cancelled():
        return TaskOutcome.cancelled()
    error = task.exception()
    if error is None:
        return TaskOutcome.completed()
    if isinstance(error, WBError):
        return TaskOutcome.completed(error)
    return TaskOutcome.faulted(error)
