"""Daemon lifecycle management.

Tracks startup time and graceful shutdown, and re-probes encoders on
request (SIGHUP).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fsc.compress.plans import PlanRegistry, TranscodePlans

logger = logging.getLogger(__name__)


@dataclass
class ShutdownState:
    """Tracks shutdown progress for graceful termination."""

    initiated: datetime | None = None
    """UTC timestamp when shutdown was initiated, None if not shutting down."""

    @property
    def is_shutting_down(self) -> bool:
        return self.initiated is not None


@dataclass
class DaemonLifecycle:
    """Startup, shutdown and re-probe state for the serve command."""

    plan_registry: PlanRegistry | None = None
    """Registry re-populated by reprobe_encoders()."""

    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    shutdown_state: ShutdownState = field(default_factory=ShutdownState)

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    @property
    def is_shutting_down(self) -> bool:
        return self.shutdown_state.is_shutting_down

    def initiate_shutdown(self) -> None:
        """Begin graceful shutdown. Idempotent."""
        if self.shutdown_state.initiated is not None:
            return
        self.shutdown_state.initiated = datetime.now(timezone.utc)

    async def reprobe_encoders(self) -> TranscodePlans | None:
        """Probe ffmpeg again and swap in new plans.

        Requests already running keep the plans they started with.

        Returns:
            The new plans, or None if there is no registry to update.
        """
        if self.plan_registry is None:
            logger.warning("Encoder re-probe requested but no plan registry is set")
            return None

        return await asyncio.to_thread(self.plan_registry.reprobe)
