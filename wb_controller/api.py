"""Public controller API surface."""

from wb_controller.engine.controller import InvocationController
from wb_controller.engine.interrupts import (
    InterruptSource,
    InterruptState,
    ManualInterrupt,
    SignalInterrupt,
)
from wb_controller.engine.sequencer import WorkloadSequencer
from wb_controller.engine.tasks import join_task
from wb_controller.engine.watcher import CancellationWatcher
from wb_controller.models import BenchSettings, RunOutcome, RunStatus, TaskOutcome, TaskStatus
from wb_controller.services import BenchClients, build_clients

__all__ = [
    "BenchClients",
    "BenchSettings",
    "CancellationWatcher",
    "InterruptSource",
    "InterruptState",
    "InvocationController",
    "ManualInterrupt",
    "RunOutcome",
    "RunStatus",
    "SignalInterrupt",
    "TaskOutcome",
    "TaskStatus",
    "WorkloadSequencer",
    "build_clients",
    "join_task",
]
