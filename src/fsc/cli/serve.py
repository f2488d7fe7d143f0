"""fsc serve: run the compression HTTP service."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

import click

from fsc.cli.exit_codes import ExitCode
from fsc.config import get_config, get_temp_directory
from fsc.config.models import FSCConfig

logger = logging.getLogger(__name__)


async def run_server(config: FSCConfig) -> int:
    """Run the server until a shutdown signal arrives.

    Returns:
        Exit code (0 for clean shutdown).
    """
    from aiohttp import web

    from fsc.compress.plans import PlanRegistry
    from fsc.server.app import create_app
    from fsc.server.lifecycle import DaemonLifecycle
    from fsc.server.signals import remove_signal_handlers, setup_signal_handlers

    server = config.server
    registry = PlanRegistry(
        ffmpeg_path=config.tools.ffmpeg, compression=config.compression
    )
    lifecycle = DaemonLifecycle(plan_registry=registry)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    setup_signal_handlers(loop, lifecycle, shutdown_event, lifecycle.reprobe_encoders)

    app = create_app(config, plan_registry=registry)
    app["lifecycle"] = lifecycle

    # A client disconnect cancels its handler, which stops its encoder
    runner = web.AppRunner(
        app,
        handler_cancellation=True,
        shutdown_timeout=server.shutdown_timeout,
    )
    await runner.setup()

    try:
        site = web.TCPSite(runner, server.bind, server.port)
        await site.start()

        logger.info(
            "Server started on http://%s:%d (PID %d)",
            server.bind,
            server.port,
            os.getpid(),
        )
        logger.info("Send SIGHUP to re-probe encoders")

        await shutdown_event.wait()
        logger.info(
            "Shutdown initiated, waiting up to %.1fs for in-flight requests",
            server.shutdown_timeout,
        )
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use", server.port)
        elif e.errno == errno.EADDRNOTAVAIL:
            logger.error("Cannot bind to address %s", server.bind)
        else:
            logger.error("Server error: %s", e)
        return ExitCode.GENERAL_ERROR
    finally:
        remove_signal_handlers(loop)
        await runner.cleanup()
        logger.info("Server stopped")

    return ExitCode.SUCCESS


@click.command("serve")
@click.option(
    "--bind",
    type=str,
    default=None,
    help="Address to bind to (default: 0.0.0.0).",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port to bind to (default: $PORT or 10000).",
)
@click.option(
    "--ffmpeg",
    "ffmpeg_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to the ffmpeg executable (default: found on PATH).",
)
@click.option(
    "--static-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Serve a built frontend from this directory.",
)
@click.pass_context
def serve_command(
    ctx: click.Context,
    bind: str | None,
    port: int | None,
    ffmpeg_path: Path | None,
    static_dir: Path | None,
) -> None:
    """Run the compression service.

    Accepts uploads on /compress/image, /compress/video and
    /compress/audio and answers with the re-encoded file. Stops gracefully
    on SIGTERM or Ctrl+C; SIGHUP re-probes ffmpeg's encoders.

    \b
    Examples:
        fsc serve                      # 0.0.0.0:10000 (or $PORT)
        fsc serve --port 8080
        fsc --log-json serve           # JSON logs for a log collector
    """
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    config = get_config(
        config_path=config_path, ffmpeg_path=ffmpeg_path, bind=bind, port=port
    )
    if static_dir is not None:
        config.server = replace(config.server, static_dir=static_dir)

    from fsc.server.cleanup import cleanup_orphaned_artifacts

    temp_dir = get_temp_directory(config)
    cleaned = cleanup_orphaned_artifacts(temp_dir, config.jobs.orphan_max_age_hours)
    if cleaned:
        logger.info("Cleaned %d orphaned temp file(s) from previous runs", cleaned)

    if config.server.port < 1024:
        logger.warning(
            "Port %d is privileged and may require root", config.server.port
        )

    logger.info(
        "Starting server (bind=%s, port=%d, temp=%s)",
        config.server.bind,
        config.server.port,
        temp_dir,
    )

    try:
        sys.exit(asyncio.run(run_server(config)))
    except KeyboardInterrupt:
        logger.info("Interrupted before server started")
        sys.exit(ExitCode.INTERRUPTED)
