"""Public API surface for wb_common."""

from wb_common.build_info import BuildInfo, collect_build_info
from wb_common.client import Client, expect_success
from wb_common.env_info import Environment, collect_environment
from wb_common.logging import LoggingConfig, configure_logging
from wb_common.observability import PANIC_MESSAGE, DashboardClient, report_best_effort

__all__ = [
    "BuildInfo",
    "Client",
    "DashboardClient",
    "Environment",
    "LoggingConfig",
    "PANIC_MESSAGE",
    "collect_build_info",
    "collect_environment",
    "configure_logging",
    "expect_success",
    "report_best_effort",
]
