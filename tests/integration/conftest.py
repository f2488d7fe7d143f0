"""Fixtures for tests that run the real ffmpeg.

Every test in this directory is marked "integration" and skipped when
ffmpeg is not on PATH.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest


def pytest_collection_modifyitems(config, items):
    here = Path(__file__).parent
    for item in items:
        if here in item.path.parents:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def ffmpeg_path() -> Path:
    found = shutil.which("ffmpeg")
    if found is None:
        pytest.skip("ffmpeg not available")
    return Path(found)


@pytest.fixture(scope="session")
def sample_video(ffmpeg_path: Path, tmp_path_factory) -> bytes:
    """Two seconds of 640x360 test pattern with a sine tone, as MP4."""
    out = tmp_path_factory.mktemp("media") / "sample.mp4"
    subprocess.run(
        [
            str(ffmpeg_path),
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            "testsrc=duration=2:size=640x360:rate=25",
            "-f",
            "lavfi",
            "-i",
            "sine=frequency=440:duration=2",
            "-c:v",
            "mpeg4",
            "-q:v",
            "2",
            "-c:a",
            "aac",
            "-shortest",
            str(out),
        ],
        check=True,
        timeout=60,
    )
    return out.read_bytes()


@pytest.fixture(scope="session")
def sample_audio(ffmpeg_path: Path, tmp_path_factory) -> bytes:
    """Two seconds of uncompressed WAV."""
    out = tmp_path_factory.mktemp("media") / "sample.wav"
    subprocess.run(
        [
            str(ffmpeg_path),
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            "sine=frequency=440:duration=2",
            str(out),
        ],
        check=True,
        timeout=60,
    )
    return out.read_bytes()
