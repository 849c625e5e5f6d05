"""Invocation settings (process-level configuration surface)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from wb_common.config.env import parse_float_env

DEFAULT_DASHBOARD_URL = "http://localhost:9001"
DEFAULT_TARGET_URL = "http://127.0.0.1:7700"
DEFAULT_REPORT_FOLDER = Path("./bench/reports/")
DEFAULT_ASSET_FOLDER = Path("./bench/assets/")


def _timeout_default(env_var: str, fallback: float) -> float:
    value = parse_float_env(os.environ.get(env_var))
    return value if value is not None and value > 0 else fallback


class BenchSettings(BaseModel):
    """Everything an invocation needs besides the collected environment."""

    workload_files: List[Path] = Field(
        min_length=1, description="Workload files, run in the given order"
    )
    dashboard_url: str = Field(default=DEFAULT_DASHBOARD_URL, description="URL of the dashboard")
    target_url: str = Field(default=DEFAULT_TARGET_URL, description="URL of the target service")
    logs_route: str = Field(
        default="logs/stream", description="Route of the log stream on the target service"
    )
    report_folder: Path = Field(default=DEFAULT_REPORT_FOLDER, description="Directory to output reports")
    asset_folder: Path = Field(default=DEFAULT_ASSET_FOLDER, description="Directory to store remote assets")
    log_filter: Optional[str] = Field(
        default=None, description="Log directives; WB_LOG_LEVEL or info when unset"
    )
    api_key: Optional[str] = Field(default=None, description="Dashboard API key")
    target_key: Optional[str] = Field(default=None, description="Bearer for the target service")
    assets_key: Optional[str] = Field(default=None, description="Bearer for fetching assets")
    reason: Optional[str] = Field(default=None, description="Reason for the invocation")
    assets_timeout: float = Field(
        default_factory=lambda: _timeout_default("WB_ASSETS_TIMEOUT", 3600.0), gt=0
    )
    dashboard_timeout: float = Field(
        default_factory=lambda: _timeout_default("WB_DASHBOARD_TIMEOUT", 60.0), gt=0
    )
    target_timeout: float = Field(
        default_factory=lambda: _timeout_default("WB_TARGET_TIMEOUT", 60.0), gt=0
    )

    @field_validator("dashboard_url", "target_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def dashboard_api_url(self) -> str:
        return f"{self.dashboard_url}/api/v1"

    @property
    def logs_url(self) -> str:
        return f"{self.target_url}/{self.logs_route.strip('/')}"
