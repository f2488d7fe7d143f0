"""Signal handling for the serve command.

SIGTERM and SIGINT start a graceful shutdown; SIGHUP re-probes the
available encoders without restarting.
"""

import asyncio
import logging
import os
import signal
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fsc.server.lifecycle import DaemonLifecycle

logger = logging.getLogger(__name__)

ReprobeCallback = Callable[[], Awaitable[object]]

_SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def _log_reprobe_outcome(task: "asyncio.Task[object]") -> None:
    """Surface exceptions from the background re-probe task."""
    if task.cancelled():
        logger.debug("Encoder re-probe was cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error("Encoder re-probe failed: %s", error, exc_info=error)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    lifecycle: "DaemonLifecycle",
    shutdown_event: asyncio.Event,
    reprobe_callback: ReprobeCallback | None = None,
) -> None:
    """Register shutdown and re-probe handlers on the loop.

    Args:
        loop: Running event loop.
        lifecycle: Lifecycle notified when shutdown starts.
        shutdown_event: Set when a shutdown signal arrives.
        reprobe_callback: Coroutine function run on SIGHUP.
    """

    def on_shutdown(sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        lifecycle.initiate_shutdown()
        shutdown_event.set()

    def on_hangup() -> None:
        pid = os.getpid()
        if reprobe_callback is None:
            logger.warning("Received SIGHUP but re-probing is disabled (pid=%d)", pid)
            return
        logger.info("Received SIGHUP, re-probing encoders (pid=%d)", pid)
        task = asyncio.ensure_future(reprobe_callback())
        task.add_done_callback(_log_reprobe_outcome)

    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, on_shutdown, sig)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            logger.warning("Could not register handler for %s: %s", sig.name, e)

    if hasattr(signal, "SIGHUP"):
        try:
            loop.add_signal_handler(signal.SIGHUP, on_hangup)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            logger.warning("Could not register handler for SIGHUP: %s", e)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Unregister everything setup_signal_handlers() added."""
    signals = list(_SHUTDOWN_SIGNALS)
    if hasattr(signal, "SIGHUP"):
        signals.append(signal.SIGHUP)

    for sig in signals:
        try:
            loop.remove_signal_handler(sig)
        except (ValueError, RuntimeError, NotImplementedError):
            logger.debug("No handler registered for %s", sig.name)
