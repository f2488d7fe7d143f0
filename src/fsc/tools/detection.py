"""External tool detection and encoder capability probing.

This module locates ffmpeg, reads its version string, and asks it once which
encoders it was built with. The result feeds plan selection.
"""

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
from pathlib import Path

from fsc.compress.errors import ProbeFailure
from fsc.tools.models import (
    CODECS_OF_INTEREST,
    EncoderCapabilities,
    FFmpegInfo,
    ToolStatus,
)

logger = logging.getLogger(__name__)

# Timeout for version/capability detection commands (seconds)
DETECTION_TIMEOUT = 10


def find_ffmpeg(configured_path: Path | None = None) -> Path | None:
    """Find the ffmpeg executable.

    Args:
        configured_path: Optional configured path override.

    Returns:
        Path to ffmpeg, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning("Configured path for ffmpeg is not a file: %s", configured_path)

    which_result = shutil.which("ffmpeg")
    if which_result:
        return Path(which_result)

    return None


def _run_command(
    args: list[str], timeout: int = DETECTION_TIMEOUT
) -> tuple[str, str, int]:
    """Run a command and capture output.

    Args:
        args: Command and arguments.
        timeout: Timeout in seconds.

    Returns:
        Tuple of (stdout, stderr, returncode). returncode is -1 when the
        command could not be run at all.
    """
    try:
        result = subprocess.run(  # nosec B603 - args are tool paths and fixed flags
            args,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
        return result.stdout, result.stderr, result.returncode
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out: %s", " ".join(args))
        return "", "timeout", -1
    except FileNotFoundError:
        return "", "not found", -1
    except OSError as e:
        logger.warning("Command failed: %s - %s", " ".join(args), e)
        return "", str(e), -1


def _parse_codec_list(output: str) -> set[str]:
    """Parse ffmpeg -encoders output."""
    # Format: " VFXSBD codec_name    Description..."
    compiled = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")
    return {
        match.group(1).casefold()
        for line in output.split("\n")
        if (match := compiled.match(line))
    }


def detect_ffmpeg(configured_path: Path | None = None) -> FFmpegInfo:
    """Detect ffmpeg and its version.

    Args:
        configured_path: Optional configured path to ffmpeg.

    Returns:
        FFmpegInfo describing the detected binary.
    """
    info = FFmpegInfo()

    path = find_ffmpeg(configured_path)
    if not path:
        info.status = ToolStatus.MISSING
        info.status_message = "ffmpeg not found in PATH"
        return info

    info.path = path

    stdout, stderr, rc = _run_command([str(path), "-version"])
    if rc != 0:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to get ffmpeg version: {stderr}"
        return info

    version_match = re.search(r"ffmpeg version (\S+)", stdout)
    if version_match:
        info.version = version_match.group(1)

    info.status = ToolStatus.AVAILABLE
    return info


def probe_encoders(ffmpeg_path: Path | None = None) -> EncoderCapabilities:
    """Query ffmpeg once for the encoders it can use.

    Args:
        ffmpeg_path: Optional configured path to ffmpeg.

    Returns:
        EncoderCapabilities listing the codecs of interest that ffmpeg
        reports as encoders.

    Raises:
        ProbeFailure: If ffmpeg is missing or the encoder listing fails.
    """
    info = detect_ffmpeg(ffmpeg_path)
    if not info.is_available() or info.path is None:
        raise ProbeFailure(info.status_message or "ffmpeg not available")

    stdout, stderr, rc = _run_command([str(info.path), "-hide_banner", "-encoders"])
    if rc != 0:
        raise ProbeFailure(f"Failed to enumerate ffmpeg encoders: {stderr.strip()}")

    listed = _parse_codec_list(stdout)
    encoders = frozenset(codec for codec in CODECS_OF_INTEREST if codec in listed)

    logger.debug(
        "ffmpeg %s encoders of interest: %s",
        info.version or "unknown",
        ", ".join(sorted(encoders)) or "none",
    )

    return EncoderCapabilities(
        encoders=encoders,
        probed=True,
        ffmpeg_path=info.path,
        ffmpeg_version=info.version,
    )


def resolve_capabilities(ffmpeg_path: Path | None = None) -> EncoderCapabilities:
    """Probe encoders, degrading to the baseline set on failure.

    The service must start even without a working ffmpeg so that image
    compression keeps working.

    Args:
        ffmpeg_path: Optional configured path to ffmpeg.

    Returns:
        Probed capabilities, or EncoderCapabilities.baseline() if probing
        failed.
    """
    try:
        return probe_encoders(ffmpeg_path)
    except ProbeFailure as e:
        logger.warning("Encoder probe failed, using baseline codecs: %s", e)
        return EncoderCapabilities.baseline(ffmpeg_path)
