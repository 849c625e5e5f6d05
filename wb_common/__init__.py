"""Shared helpers for workload-bench."""

from wb_common.api import LoggingConfig, configure_logging

__all__ = ["configure_logging", "LoggingConfig"]
