"""Tests for the serve command."""

from __future__ import annotations

import os
import socket
import time
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from fsc.cli import main
from fsc.cli.exit_codes import ExitCode
from fsc.cli.serve import run_server
from fsc.config.models import FSCConfig, JobsConfig, ServerConfig, ToolPathsConfig


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("fsc.cli.configure_logging_from_cli"):
        yield


@pytest.fixture
def fake_run_server(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("FSC_TEMP_DIR", str(tmp_path))
    with patch("fsc.cli.serve.run_server", new=AsyncMock(return_value=0)) as run:
        yield run


class TestServeCommand:
    """Tests for fsc serve option handling."""

    def test_cli_overrides(self, fake_run_server, tmp_path: Path) -> None:
        static = tmp_path / "dist"
        static.mkdir()

        result = CliRunner().invoke(
            main,
            [
                "serve",
                "--bind",
                "127.0.0.1",
                "--port",
                "8123",
                "--static-dir",
                str(static),
            ],
        )

        assert result.exit_code == 0, result.output
        config = fake_run_server.await_args.args[0]
        assert config.server.bind == "127.0.0.1"
        assert config.server.port == 8123
        assert config.server.static_dir == static

    def test_port_from_platform_env(self, fake_run_server, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "7001")

        result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0, result.output
        assert fake_run_server.await_args.args[0].server.port == 7001

    def test_rejects_bad_port(self, fake_run_server) -> None:
        result = CliRunner().invoke(main, ["serve", "--port", "70000"])

        assert result.exit_code == 2
        fake_run_server.assert_not_called()

    def test_cleans_orphans_before_start(self, fake_run_server, tmp_path: Path):
        orphan = tmp_path / "fsc_dead_output.mp4"
        orphan.write_bytes(b"x")
        old = time.time() - 3 * 3600
        os.utime(orphan, (old, old))

        result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0, result.output
        assert not orphan.exists()

    def test_exit_code_propagates(self, fake_run_server) -> None:
        fake_run_server.return_value = ExitCode.GENERAL_ERROR

        result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == ExitCode.GENERAL_ERROR


class TestRunServer:
    """Tests for run_server."""

    async def test_port_in_use(self, make_fake_ffmpeg, work_dir: Path) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            port = blocker.getsockname()[1]

            config = FSCConfig(
                tools=ToolPathsConfig(ffmpeg=make_fake_ffmpeg("ok")),
                jobs=JobsConfig(temp_directory=work_dir),
                server=ServerConfig(bind="127.0.0.1", port=port),
            )

            assert await run_server(config) == ExitCode.GENERAL_ERROR
