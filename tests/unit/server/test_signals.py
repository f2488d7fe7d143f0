"""Unit tests for signal handler setup."""

import asyncio
import logging
import os
import signal

import pytest

from fsc.server.lifecycle import DaemonLifecycle
from fsc.server.signals import remove_signal_handlers, setup_signal_handlers


@pytest.fixture
async def registered():
    """Install handlers on the running loop and remove them afterwards."""
    loop = asyncio.get_running_loop()
    lifecycle = DaemonLifecycle()
    shutdown_event = asyncio.Event()
    reprobes: list[int] = []

    async def reprobe() -> None:
        reprobes.append(1)

    setup_signal_handlers(loop, lifecycle, shutdown_event, reprobe)
    yield lifecycle, shutdown_event, reprobes
    remove_signal_handlers(loop)


async def wait_for(condition, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class TestSignalHandlers:
    """Tests for setup_signal_handlers."""

    async def test_sigterm_starts_shutdown(self, registered) -> None:
        lifecycle, shutdown_event, _ = registered

        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(shutdown_event.wait(), timeout=2.0)

        assert lifecycle.is_shutting_down

    async def test_sighup_runs_reprobe(self, registered) -> None:
        lifecycle, shutdown_event, reprobes = registered

        os.kill(os.getpid(), signal.SIGHUP)
        await wait_for(lambda: reprobes)

        assert reprobes == [1]
        assert not shutdown_event.is_set()
        assert not lifecycle.is_shutting_down

    async def test_failed_reprobe_is_logged(self, caplog) -> None:
        loop = asyncio.get_running_loop()

        async def broken() -> None:
            raise RuntimeError("probe exploded")

        setup_signal_handlers(loop, DaemonLifecycle(), asyncio.Event(), broken)
        try:
            with caplog.at_level(logging.ERROR, logger="fsc.server.signals"):
                os.kill(os.getpid(), signal.SIGHUP)
                await wait_for(lambda: "probe exploded" in caplog.text)
        finally:
            remove_signal_handlers(loop)

        assert "Encoder re-probe failed" in caplog.text

    async def test_remove_is_safe_without_setup(self) -> None:
        remove_signal_handlers(asyncio.get_running_loop())
