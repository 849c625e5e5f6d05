"""Outcome types for the workload task and the whole invocation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum


class TaskStatus(str, Enum):
    """How a joined task terminated."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAULTED = "faulted"


@dataclass(frozen=True)
class TaskOutcome:
    """Tagged result of joining a task.

    ``COMPLETED`` carries the returned error (``None`` on success), ``FAULTED``
    carries the unexpected exception.
    """

    status: TaskStatus
    error: BaseException | None = None

    @classmethod
    def completed(cls, error: BaseException | None = None) -> "TaskOutcome":
        return cls(TaskStatus.COMPLETED, error)

    @classmethod
    def cancelled(cls) -> "TaskOutcome":
        return cls(TaskStatus.CANCELLED)

    @classmethod
    def faulted(cls, error: BaseException) -> "TaskOutcome":
        return cls(TaskStatus.FAULTED, error)


class RunStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PANIC = "panic"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunOutcome:
    """Final classification of one invocation."""

    invocation_uuid: uuid.UUID
    status: RunStatus
    error: BaseException | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.status in (RunStatus.SUCCESS, RunStatus.CANCELLED) else 1
