"""Tests for CORS handling and request logging."""

import logging
from pathlib import Path

import pytest
from aiohttp import FormData

from fsc.compress.artifacts import ArtifactManager
from fsc.config.models import FSCConfig, ServerConfig
from fsc.server.app import create_app
from fsc.server.middleware import CorsPolicy

FRONTEND = "http://localhost:3000"


@pytest.fixture
async def client(aiohttp_client, plan_registry, fake_executor, work_dir: Path):
    config = FSCConfig(server=ServerConfig(allowed_origins=(FRONTEND,)))
    app = create_app(
        config,
        plan_registry=plan_registry,
        executor=fake_executor,
        artifact_manager=ArtifactManager(work_dir),
    )
    return await aiohttp_client(app)


class TestCorsPolicy:
    """Tests for CorsPolicy."""

    def test_allowlist(self) -> None:
        policy = CorsPolicy(["https://app.example.com/"])
        assert policy.is_allowed("https://app.example.com")
        assert not policy.is_allowed("https://evil.example.com")
        assert not policy.is_allowed(None)
        assert not policy.is_allowed("")

    def test_wildcard(self) -> None:
        policy = CorsPolicy(["*"])
        assert policy.is_allowed("https://anything.example")


class TestCorsHeaders:
    """CORS headers on real responses."""

    async def test_preflight_allowed(self, client) -> None:
        resp = await client.options(
            "/compress/video",
            headers={
                "Origin": FRONTEND,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == FRONTEND
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]
        assert resp.headers["Access-Control-Allow-Headers"] == "content-type"

    async def test_preflight_refused(self, client) -> None:
        resp = await client.options(
            "/compress/video",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert resp.status == 204
        assert "Access-Control-Allow-Origin" not in resp.headers
        assert "Access-Control-Allow-Methods" not in resp.headers

    async def test_error_response_has_cors(self, client) -> None:
        resp = await client.post("/compress/video", headers={"Origin": FRONTEND})

        assert resp.status == 400
        assert resp.headers["Access-Control-Allow-Origin"] == FRONTEND

    async def test_streamed_download_exposes_disposition(self, client) -> None:
        form = FormData()
        form.add_field("file", b"data", filename="clip.mov")

        resp = await client.post(
            "/compress/video", data=form, headers={"Origin": FRONTEND}
        )

        assert resp.status == 200
        assert resp.headers["Access-Control-Allow-Origin"] == FRONTEND
        exposed = resp.headers["Access-Control-Expose-Headers"]
        assert "Content-Disposition" in exposed

    async def test_unknown_origin_gets_no_headers(self, client) -> None:
        resp = await client.get("/health", headers={"Origin": "https://x.example"})

        assert resp.status == 200
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestRequestLogging:
    """Tests for request_logging_middleware."""

    async def test_logs_status_line(self, client, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="fsc.server.middleware"):
            await client.get("/health")

        assert any("GET /health -> 200" in r.getMessage() for r in caplog.records)

    async def test_logs_http_exceptions(self, client, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="fsc.server.middleware"):
            resp = await client.put("/health")

        assert resp.status == 405
        assert any("PUT /health -> 405" in r.getMessage() for r in caplog.records)

    async def test_logs_unhandled_errors(
        self, aiohttp_client, plan_registry, work_dir: Path, caplog
    ) -> None:
        class CrashingExecutor:
            async def run(self, plan, input_handle, output_handle):
                raise RuntimeError("encoder wrapper bug")

        app = create_app(
            FSCConfig(),
            plan_registry=plan_registry,
            executor=CrashingExecutor(),
            artifact_manager=ArtifactManager(work_dir),
        )
        client = await aiohttp_client(app)
        form = FormData()
        form.add_field("file", b"data", filename="clip.mov")

        with caplog.at_level(logging.INFO, logger="fsc.server.middleware"):
            resp = await client.post("/compress/video", data=form)

        assert resp.status == 500
        assert any(
            "POST /compress/video -> 500" in r.getMessage() for r in caplog.records
        )
