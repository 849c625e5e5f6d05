"""Public API surface for wb_runner."""

from wb_runner.models import (
    Asset,
    AssetFormat,
    Body,
    Command,
    LogStreamConfig,
    SyncMode,
    Workload,
    WorkloadContext,
)
from wb_runner.report import RunReport
from wb_runner.workload import execute_workload, load_workload

__all__ = [
    "Asset",
    "AssetFormat",
    "Body",
    "Command",
    "LogStreamConfig",
    "RunReport",
    "SyncMode",
    "Workload",
    "WorkloadContext",
    "execute_workload",
    "load_workload",
]
