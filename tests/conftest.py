"""Shared test fixtures for File Size Compressor."""

import asyncio
import io
import os
import stat
import sys
from pathlib import Path

import pytest
from PIL import Image

from fsc.compress.artifacts import ArtifactHandle, ArtifactManager
from fsc.compress.errors import ExecutionError
from fsc.compress.executor import TranscodeResult
from fsc.compress.plans import PlanRegistry, TranscodePlans, select_plans
from fsc.config.loader import clear_config_cache
from fsc.tools.models import (
    CODEC_AAC,
    CODEC_H264,
    CODEC_MP3,
    CODEC_MPEG4,
    CODEC_OPUS,
    EncoderCapabilities,
)

ALL_CODECS = frozenset({CODEC_H264, CODEC_MPEG4, CODEC_MP3, CODEC_AAC, CODEC_OPUS})

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 A..... = Audio
 S..... = Subtitle
 .F.... = Frame-level multithreading
 ..S... = Slice-level multithreading
 ...X.. = Codec is experimental
 ....B. = Supports draw_horiz_band
 .....D = Supports direct rendering method 1
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC (codec h264)
 V.S... mpeg4                MPEG-4 part 2
 V....D libx265              libx265 H.265 / HEVC (codec hevc)
 A....D aac                  AAC (Advanced Audio Coding)
 A....D libmp3lame           libmp3lame MP3 (MPEG audio layer 3) (codec mp3)
 S..... srt                  SubRip subtitle
"""

_FAKE_FFMPEG_TEMPLATE = '''#!{python}
import os
import sys
import time

MODE = {mode!r}
PID_FILE = {pid_file!r}
ENCODERS = {encoders!r}

args = sys.argv[1:]
if "-version" in args:
    print("ffmpeg version 6.1.1 Copyright (c) 2000-2023 the FFmpeg developers")
    sys.exit(0)
if "-encoders" in args:
    sys.stdout.write(ENCODERS)
    sys.exit(0)

if PID_FILE:
    with open(PID_FILE, "w") as f:
        f.write(str(os.getpid()))

output = args[-1]
if MODE == "ok":
    with open(output, "wb") as f:
        f.write(b"compressed:" + " ".join(args).encode())
    sys.stderr.write("frame=  10 fps=0.0 q=28.0 size=1kB\\r")
    sys.exit(0)
if MODE == "fail":
    sys.stderr.write("Input #0, mov\\n")
    sys.stderr.write("Unknown encoder 'libx264'\\n")
    sys.exit(1)
if MODE == "empty":
    sys.exit(0)
if MODE == "hang":
    time.sleep(60)
sys.exit(2)
'''


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep tests away from the user's ~/.fsc config and FSC_* env."""
    for key in list(os.environ):
        if key.startswith("FSC_") or key == "PORT":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FSC_CONFIG_PATH", str(tmp_path / "no-config.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def make_fake_ffmpeg(tmp_path: Path):
    """Factory writing an executable stand-in for ffmpeg.

    Modes: "ok" writes a small output file, "fail" exits 1 with stderr,
    "empty" exits 0 without output, "hang" sleeps for a minute.
    """

    def _make(mode: str = "ok", pid_file: Path | None = None) -> Path:
        script = tmp_path / f"fake_ffmpeg_{mode}"
        script.write_text(
            _FAKE_FFMPEG_TEMPLATE.format(
                python=sys.executable,
                mode=mode,
                pid_file=str(pid_file) if pid_file else "",
                encoders=ENCODERS_OUTPUT,
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return script

    return _make


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Directory used as the artifact temp directory."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def artifact_manager(work_dir: Path) -> ArtifactManager:
    return ArtifactManager(work_dir)


@pytest.fixture
def full_capabilities() -> EncoderCapabilities:
    return EncoderCapabilities(encoders=ALL_CODECS)


@pytest.fixture
def full_plans(full_capabilities: EncoderCapabilities) -> TranscodePlans:
    return select_plans(full_capabilities)


@pytest.fixture
def plan_registry(full_plans: TranscodePlans) -> PlanRegistry:
    return PlanRegistry(full_plans)


class FakeExecutor:
    """TranscodeExecutor stand-in that never spawns a process.

    With echo=True each output is "compressed:" plus that job's input.
    """

    def __init__(
        self,
        output: bytes = b"compressed-bytes",
        error: ExecutionError | None = None,
        delay: float = 0.0,
        echo: bool = False,
    ) -> None:
        self.output = output
        self.echo = echo
        self.error = error
        self.delay = delay
        self.calls: list[tuple[object, ArtifactHandle, ArtifactHandle]] = []
        self.inputs_seen: list[bytes] = []

    async def run(self, plan, input_handle, output_handle) -> TranscodeResult:
        self.calls.append((plan, input_handle, output_handle))
        source = input_handle.path.read_bytes()
        self.inputs_seen.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        output = self.output
        if self.echo:
            output = b"compressed:" + source
        output_handle.path.write_bytes(output)
        return TranscodeResult(
            output_path=output_handle.path,
            output_size=len(output),
            duration_seconds=self.delay,
        )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


def make_image_bytes(
    width: int,
    height: int,
    format: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Build a gradient image so the encoder has real content to work on."""
    size = (width, height)
    red = Image.linear_gradient("L").resize(size)
    green = red.transpose(Image.Transpose.FLIP_TOP_BOTTOM).rotate(90, expand=False)
    blue = Image.new("L", size, 128)
    if mode == "RGBA":
        # Left half opaque, right half transparent
        alpha = Image.new("L", size, 0)
        alpha.paste(255, (0, 0, width // 2, height))
        image = Image.merge("RGBA", (red, green, blue, alpha))
    else:
        image = Image.merge("RGB", (red, green, blue))
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    """Factory for encoded test images (see make_image_bytes)."""
    return make_image_bytes


@pytest.fixture
def executor_factory():
    """Factory for FakeExecutor instances with custom behavior."""
    return FakeExecutor
