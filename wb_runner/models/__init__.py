"""Workload runner models."""

from wb_runner.models.context import WorkloadContext
from wb_runner.models.workload import (
    Asset,
    AssetFormat,
    Body,
    Command,
    LogStreamConfig,
    SyncMode,
    Workload,
)

__all__ = [
    "Asset",
    "AssetFormat",
    "Body",
    "Command",
    "LogStreamConfig",
    "SyncMode",
    "Workload",
    "WorkloadContext",
]
