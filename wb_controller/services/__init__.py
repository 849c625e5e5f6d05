"""Controller services."""

from wb_controller.services.clients import BenchClients, build_clients

__all__ = ["BenchClients", "build_clients"]
