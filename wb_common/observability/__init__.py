"""Dashboard reporting helpers."""

from wb_common.observability.dashboard import PANIC_MESSAGE, DashboardClient
from wb_common.observability.reporting import report_best_effort

__all__ = ["DashboardClient", "PANIC_MESSAGE", "report_best_effort"]
