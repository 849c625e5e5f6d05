"""Everything a workload run needs from the invocation that owns it."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path

from wb_common.client import Client
from wb_common.observability.dashboard import DashboardClient


@dataclass(frozen=True)
class WorkloadContext:
    invocation_uuid: uuid.UUID
    assets_client: Client
    dashboard: DashboardClient
    logs_client: Client
    target_client: Client
    asset_folder: Path
    report_folder: Path
