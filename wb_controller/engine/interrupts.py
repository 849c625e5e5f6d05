"""Interrupt sources that can stop an invocation.

An interrupt source is awaited by the cancellation watcher. It fires at most
once; further deliveries are ignored.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import AbstractContextManager
from enum import Enum
from types import FrameType
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)


class InterruptState(str, Enum):
    """Explicit interrupt lifecycle states."""

    IDLE = "idle"
    LISTENING = "listening"
    FIRED = "fired"
    CLOSED = "closed"


class InterruptSource(Protocol):
    def __enter__(self) -> Any: ...

    def __exit__(self, exc_type, exc, tb) -> Any: ...

    async def wait(self) -> None: ...


class ManualInterrupt(AbstractContextManager["ManualInterrupt"]):
    """Interrupt fired programmatically through ``trigger()``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.state = InterruptState.IDLE

    def __enter__(self) -> "ManualInterrupt":
        self.state = InterruptState.LISTENING
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.state != InterruptState.FIRED:
            self.state = InterruptState.CLOSED

    def trigger(self) -> bool:
        """Fire the interrupt; returns False when it already fired."""
        if self._event.is_set():
            return False
        self.state = InterruptState.FIRED
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()


class SignalInterrupt(AbstractContextManager["SignalInterrupt"]):
    """Fires on SIGINT or SIGTERM delivered to the process.

    Must be entered from the running event loop. Handlers are installed on the
    loop when supported, otherwise with ``signal.signal``; previous handlers
    are restored on exit.
    """

    def __init__(self, signals: Sequence[signal.Signals] = (signal.SIGINT, signal.SIGTERM)) -> None:
        self._signals = tuple(signals)
        self._event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_handlers: list[signal.Signals] = []
        self._prev_handlers: dict[signal.Signals, Any] = {}
        self.state = InterruptState.IDLE

    def __enter__(self) -> "SignalInterrupt":
        self._loop = asyncio.get_running_loop()
        for sig in self._signals:
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
                self._loop_handlers.append(sig)
            except (NotImplementedError, RuntimeError):
                self._prev_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)  # type: ignore[arg-type]
        self.state = InterruptState.LISTENING
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._loop is not None:
            for sig in self._loop_handlers:
                self._loop.remove_signal_handler(sig)
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler)  # type: ignore[arg-type]
        self._loop_handlers.clear()
        self._prev_handlers.clear()
        if self.state != InterruptState.FIRED:
            self.state = InterruptState.CLOSED

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._on_signal, signal.Signals(signum))

    def _on_signal(self, sig: signal.Signals) -> None:
        if self.state == InterruptState.FIRED:
            logger.warning("received %s, cancellation already in progress", sig.name)
            return
        logger.info("received %s", sig.name)
        self.state = InterruptState.FIRED
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
