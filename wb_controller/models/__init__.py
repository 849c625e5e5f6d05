"""Controller models."""

from wb_controller.models.outcome import RunOutcome, RunStatus, TaskOutcome, TaskStatus
from wb_controller.models.settings import BenchSettings

__all__ = ["BenchSettings", "RunOutcome", "RunStatus", "TaskOutcome", "TaskStatus"]
