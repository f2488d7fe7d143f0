"""HTTP application for the compression service.

create_app() wires the compression routes, the health endpoint, CORS and
request logging, and the optional static frontend. Encoder probing runs in
an on_startup hook, so plans exist before the site accepts connections.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from aiohttp import web

from fsc import __version__
from fsc.compress.artifacts import ArtifactManager
from fsc.compress.executor import TranscodeExecutor
from fsc.compress.plans import PlanRegistry
from fsc.config.loader import get_temp_directory
from fsc.config.models import FSCConfig
from fsc.server.api.errors import NOT_FOUND, api_error
from fsc.server.middleware import (
    CorsPolicy,
    create_cors_middleware,
    create_cors_prepare_hook,
    request_logging_middleware,
)
from fsc.server.routes import setup_compress_routes

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    """Overall status: 'healthy', 'degraded' or 'unhealthy'."""

    version: str
    uptime_seconds: float
    shutting_down: bool = False

    probed: bool = False
    """False while starting, or when running on the baseline encoder set."""

    ffmpeg_version: str | None = None
    encoders: dict[str, bool] = field(default_factory=dict)
    plans: dict[str, object] | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def create_app(
    config: FSCConfig | None = None,
    *,
    plan_registry: PlanRegistry | None = None,
    executor: TranscodeExecutor | None = None,
    artifact_manager: ArtifactManager | None = None,
) -> web.Application:
    """Create and configure the aiohttp Application.

    Args:
        config: Service configuration (defaults when None).
        plan_registry: Registry to serve plans from. If it is empty at
            startup, ffmpeg is probed to fill it.
        executor: Encoder runner (built from config when None).
        artifact_manager: Temp file manager (uses the configured temp
            directory when None).

    Returns:
        Configured aiohttp Application instance.
    """
    config = config or FSCConfig()
    policy = CorsPolicy(config.server.allowed_origins)

    app = web.Application(
        client_max_size=config.server.max_upload_bytes,
        middlewares=[request_logging_middleware, create_cors_middleware(policy)],
    )

    app["config"] = config
    app["lifecycle"] = None  # set by the serve command
    app["plan_registry"] = plan_registry or PlanRegistry(
        ffmpeg_path=config.tools.ffmpeg,
        compression=config.compression,
    )
    app["executor"] = executor or TranscodeExecutor(
        config.tools.ffmpeg, config.compression
    )
    app["artifact_manager"] = artifact_manager or ArtifactManager(
        get_temp_directory(config)
    )

    app.router.add_get("/health", health_handler)
    setup_compress_routes(app)
    _setup_static_routes(app, config.server.static_dir)

    app.on_response_prepare.append(create_cors_prepare_hook(policy))
    app.on_startup.append(_probe_encoders)
    app.on_startup.append(_log_routes)

    return app


def _setup_static_routes(app: web.Application, static_dir: Path | None) -> None:
    """Serve a built frontend with single-page-app fallback."""
    if static_dir is None:
        app.router.add_get("/compress/{tail:.*}", not_found_handler)
        return

    root = static_dir.expanduser().resolve()
    if not root.is_dir():
        logger.warning("Static directory %s does not exist, not serving it", root)
        app.router.add_get("/compress/{tail:.*}", not_found_handler)
        return

    app["static_root"] = root
    app.router.add_get("/{tail:.*}", spa_handler)
    logger.info("Serving static frontend from %s", root)


async def _probe_encoders(app: web.Application) -> None:
    registry: PlanRegistry = app["plan_registry"]
    if registry.is_ready:
        return
    await asyncio.to_thread(registry.reprobe)


async def _log_routes(app: web.Application) -> None:
    for route in app.router.routes():
        if route.method == "HEAD":
            continue
        logger.info("Route: %s %s", route.method, route.resource.canonical)


async def not_found_handler(request: web.Request) -> web.Response:
    return api_error("Route not found", code=NOT_FOUND, status=404)


async def spa_handler(request: web.Request) -> web.StreamResponse:
    """Serve a static file, falling back to index.html for client routes.

    GETs under /compress/ are API paths and answer 404 instead.
    """
    tail = request.match_info["tail"]
    if tail.startswith("compress/") or tail == "compress":
        return await not_found_handler(request)

    root: Path = request.app["static_root"]
    if tail:
        candidate = (root / tail).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return web.FileResponse(candidate)

    index = root / INDEX_FILE
    if index.is_file():
        return web.FileResponse(index)
    return api_error("Route not found", code=NOT_FOUND, status=404)


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health.

    200 while serving (status 'degraded' when running on the baseline
    encoder set), 503 before probing completes or during shutdown.
    """
    lifecycle = request.app.get("lifecycle")
    registry: PlanRegistry = request.app["plan_registry"]

    shutting_down = lifecycle.is_shutting_down if lifecycle else False
    uptime = lifecycle.uptime_seconds if lifecycle else 0.0

    health = HealthStatus(
        status="healthy",
        version=__version__,
        uptime_seconds=round(uptime, 1),
        shutting_down=shutting_down,
    )

    if registry.is_ready:
        plans = registry.current
        health.probed = plans.capabilities.probed
        health.ffmpeg_version = plans.capabilities.ffmpeg_version
        health.encoders = plans.capabilities.summary()
        health.plans = plans.describe()
        if not health.probed:
            health.status = "degraded"

    if shutting_down or not registry.is_ready:
        health.status = "unhealthy"

    http_status = 503 if health.status == "unhealthy" else 200
    return web.json_response(health.to_dict(), status=http_status)
