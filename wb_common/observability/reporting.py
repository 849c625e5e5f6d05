"""Best-effort reporting: attempt a remote call, log on failure, never raise."""

from __future__ import annotations

import logging
from typing import Any, Awaitable

logger = logging.getLogger(__name__)


async def report_best_effort(action: str, call: Awaitable[Any], **fields: Any) -> bool:
    """Await ``call``; return False and log instead of raising if it fails.

    Used for secondary reports (failure, cancellation) whose own failure must
    not replace the error being reported. Cancellation is not swallowed.
    """
    try:
        await call
    except Exception as exc:
        details = "".join(f" {key}={value}" for key, value in fields.items())
        logger.error("failed to %s%s: %s", action, details, exc, exc_info=exc)
        return False
    return True
