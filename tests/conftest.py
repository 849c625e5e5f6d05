from collections import defaultdict

import pytest
from rich.console import Console
from rich.table import Table

from tests.helpers.bench import FakeDashboard
from wb_common.build_info import BuildInfo
from wb_common.env_info import Environment

KNOWN_MARKERS = {"unit_common", "unit_runner", "unit_controller", "unit_ui"}


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """
    Custom hook to print statistics by marker at the end of the test session.
    """
    _ = (exitstatus, config)
    marker_stats = defaultdict(lambda: {"passed": 0, "failed": 0, "skipped": 0, "total": 0})

    for outcome in ["passed", "failed", "skipped"]:
        for report in terminalreporter.stats.get(outcome, []):
            # Only count the actual test call, or setup skips
            if report.when == "call" or (report.when == "setup" and report.outcome == "skipped"):
                for marker in KNOWN_MARKERS:
                    if marker in report.keywords:
                        marker_stats[marker][outcome] += 1
                        marker_stats[marker]["total"] += 1

    if not marker_stats:
        return

    table = Table(title="Test Statistics by Marker", show_header=True, header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    for marker in sorted(marker_stats):
        stats = marker_stats[marker]
        table.add_row(
            marker,
            str(stats["total"]),
            str(stats["passed"]),
            str(stats["failed"]),
            str(stats["skipped"]),
        )

    console = Console()
    console.print("\n")
    console.print(table)


@pytest.fixture
def fake_dashboard() -> FakeDashboard:
    return FakeDashboard()


@pytest.fixture
def environment() -> Environment:
    return Environment(
        hostname="bench-host",
        timestamp="2026-01-01T00:00:00+00:00",
        os={"name": "Linux"},
        kernel={"release": "6.1"},
        python={"version": "3.12"},
        cpu={"logical_cpus": 8},
        memory={"total_bytes": 1024},
    )


@pytest.fixture
def build_info() -> BuildInfo:
    return BuildInfo(
        commit_sha1="abc123",
        commit_msg="Speed up indexing\n\nLonger description",
        commit_date="2026-01-01T00:00:00+00:00",
        branch="main",
    )
