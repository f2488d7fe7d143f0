"""Supervised ffmpeg execution for video and audio jobs."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from fsc.compress.artifacts import ArtifactHandle
from fsc.compress.command import build_audio_command, build_video_command
from fsc.compress.errors import ExecutionError
from fsc.compress.plans import AudioPlan, VideoPlan
from fsc.config.models import CompressionConfig
from fsc.tools.detection import find_ffmpeg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscodeResult:
    """A completed encode."""

    output_path: Path
    output_size: int
    duration_seconds: float


def _stderr_tail(stderr: bytes | None, max_lines: int) -> str:
    if not stderr:
        return ""
    text = stderr.decode("utf-8", errors="replace")
    # ffmpeg rewrites its stats line with carriage returns
    lines = [line for line in text.replace("\r", "\n").splitlines() if line.strip()]
    return "\n".join(lines[-max_lines:])


class TranscodeExecutor:
    """Runs one ffmpeg process per job and reports a single outcome.

    run() either returns a TranscodeResult or raises ExecutionError. If the
    awaiting task is cancelled (client went away), the process is stopped
    before the cancellation propagates, so no encoder outlives its job.
    """

    TERMINATE_GRACE: float = 5.0  # seconds between SIGTERM and SIGKILL
    STDERR_TAIL_LINES: int = 20

    def __init__(
        self,
        ffmpeg_path: str | Path | None = None,
        compression: CompressionConfig | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            ffmpeg_path: ffmpeg executable. Located on PATH when None.
            compression: Quality settings for video commands.
            timeout: Seconds before an encode is abandoned. None = no limit.
                Defaults to compression.encode_timeout.
        """
        self._ffmpeg_path = ffmpeg_path
        self._compression = compression or CompressionConfig()
        self._timeout = (
            timeout if timeout is not None else self._compression.encode_timeout
        )

    @property
    def tool_path(self) -> str:
        """Executable used for spawning.

        Falls back to the bare name so a missing binary surfaces as a
        spawn failure for the job rather than at construction.
        """
        if self._ffmpeg_path is not None:
            return str(self._ffmpeg_path)
        found = find_ffmpeg()
        return str(found) if found else "ffmpeg"

    def build_command(
        self, plan: VideoPlan | AudioPlan, input_path: Path, output_path: Path
    ) -> list[str]:
        if isinstance(plan, VideoPlan):
            return build_video_command(
                self.tool_path, plan, input_path, output_path, self._compression
            )
        return build_audio_command(self.tool_path, plan, input_path, output_path)

    async def run(
        self,
        plan: VideoPlan | AudioPlan,
        input_handle: ArtifactHandle,
        output_handle: ArtifactHandle,
    ) -> TranscodeResult:
        """Encode input_handle into output_handle according to plan.

        Returns:
            TranscodeResult for a non-empty output file.

        Raises:
            ExecutionError: The process could not be started, exited
                non-zero, timed out or produced no output.
            asyncio.CancelledError: The caller was cancelled; the process
                has been stopped.
        """
        cmd = self.build_command(plan, input_handle.path, output_handle.path)
        logger.debug("Running: %s", " ".join(cmd))

        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(f"Could not start ffmpeg: {e}") from e

        logger.debug("Encoder started (pid %s)", process.pid)

        try:
            if self._timeout is not None:
                _, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=self._timeout
                )
            else:
                _, stderr = await process.communicate()
        except TimeoutError:
            await self._stop(process)
            logger.warning("Encoder timed out after %ss", self._timeout)
            raise ExecutionError(
                f"ffmpeg timed out after {self._timeout} seconds"
            ) from None
        except asyncio.CancelledError:
            logger.info("Job cancelled, stopping encoder (pid %s)", process.pid)
            await self._stop(process)
            raise

        elapsed = time.monotonic() - start
        diagnostics = _stderr_tail(stderr, self.STDERR_TAIL_LINES)

        if process.returncode != 0:
            raise ExecutionError(
                f"ffmpeg exited with status {process.returncode}",
                returncode=process.returncode,
                diagnostics=diagnostics,
            )

        try:
            size = output_handle.path.stat().st_size
        except OSError:
            size = 0
        if size == 0:
            raise ExecutionError(
                "ffmpeg produced no output",
                returncode=process.returncode,
                diagnostics=diagnostics,
            )

        logger.info(
            "Encoder finished in %.2fs (%d -> %d bytes)",
            elapsed,
            _size_or_zero(input_handle.path),
            size,
        )
        return TranscodeResult(
            output_path=output_handle.path,
            output_size=size,
            duration_seconds=elapsed,
        )

    async def _stop(self, process: asyncio.subprocess.Process) -> None:
        """Terminate the process, escalating to kill after the grace period."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.TERMINATE_GRACE)
        except TimeoutError:
            logger.warning("Encoder ignored SIGTERM, killing pid %s", process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()


def _size_or_zero(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0
