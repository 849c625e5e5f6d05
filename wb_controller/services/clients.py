"""The four HTTP clients an invocation holds."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from wb_common.client import Client
from wb_controller.models.settings import BenchSettings


@dataclass(frozen=True)
class BenchClients:
    assets: Client
    dashboard: Client
    logs: Client
    target: Client

    async def aclose(self) -> None:
        await asyncio.gather(
            self.assets.aclose(),
            self.dashboard.aclose(),
            self.logs.aclose(),
            self.target.aclose(),
        )


def build_clients(settings: BenchSettings) -> BenchClients:
    """Build independently configured clients.

    The log client gets its own connection pool and no timeout: the stream
    stays open for a whole run and must not block or be cut short.
    """
    return BenchClients(
        assets=Client(None, settings.assets_key, settings.assets_timeout),
        dashboard=Client(
            settings.dashboard_api_url, settings.api_key, settings.dashboard_timeout
        ),
        logs=Client(settings.logs_url, settings.target_key, None),
        target=Client(settings.target_url, settings.target_key, settings.target_timeout),
    )
