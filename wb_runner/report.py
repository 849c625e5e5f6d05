"""Per-run reports written to disk and sent to the dashboard."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from wb_common.errors import WorkloadExecutionError, wrap_error
from wb_runner.commands import CommandResult

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_name(name: str) -> str:
    return _UNSAFE.sub("_", name).strip("_") or "workload"


@dataclass
class RunReport:
    workload: str
    run: int
    started_at: str
    duration_ms: float
    commands: List[CommandResult] = field(default_factory=list)
    trace_path: Optional[Path] = None
    trace_lines: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "workload": self.workload,
            "run": self.run,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
            "commands": [result.to_dict() for result in self.commands],
            "trace": (
                {"path": str(self.trace_path), "lines": self.trace_lines}
                if self.trace_path
                else None
            ),
        }

    def write(self, report_folder: Path) -> Path:
        path = report_folder / f"{safe_name(self.workload)}-run{self.run}.json"
        try:
            report_folder.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            raise wrap_error(
                WorkloadExecutionError,
                f"could not write report {path}: {exc}",
                context={"path": path},
                cause=exc,
            ) from exc
        return path
