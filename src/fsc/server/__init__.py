"""HTTP server for the compression service.

Exports:
    DaemonLifecycle: Startup, shutdown and re-probe state
    ShutdownState: Tracks shutdown progress for graceful termination
    HealthStatus: Response payload for the health endpoint
    create_app: Factory function to create the aiohttp Application
"""

from fsc.server.app import HealthStatus, create_app
from fsc.server.lifecycle import DaemonLifecycle, ShutdownState

__all__ = [
    "DaemonLifecycle",
    "ShutdownState",
    "HealthStatus",
    "create_app",
]
