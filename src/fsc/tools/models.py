"""Data models for external tool capabilities.

This module defines dataclasses for representing detected ffmpeg information
and the set of encoders the compression pipeline cares about.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Codecs of interest, in the order they are reported.
CODEC_H264 = "libx264"  # modern video codec
CODEC_MPEG4 = "mpeg4"  # legacy, built into every ffmpeg
CODEC_MP3 = "libmp3lame"
CODEC_AAC = "aac"
CODEC_OPUS = "libopus"

CODECS_OF_INTEREST: tuple[str, ...] = (
    CODEC_H264,
    CODEC_MPEG4,
    CODEC_MP3,
    CODEC_AAC,
    CODEC_OPUS,
)

# Assumed encodable when probing fails; the rest of the system falls back
# to these as a last resort anyway.
BASELINE_CODECS: frozenset[str] = frozenset({CODEC_H264, CODEC_AAC})


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and version detected
    MISSING = "missing"  # Tool not found in PATH or configured location
    ERROR = "error"  # Tool found but detection failed


@dataclass
class FFmpegInfo:
    """FFmpeg tool information."""

    name: str = field(init=False, default="ffmpeg")
    path: Path | None = None
    version: str | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE


@dataclass(frozen=True)
class EncoderCapabilities:
    """Which codecs of interest the host's ffmpeg can encode.

    Built once by the prober and never modified afterwards. A re-probe
    produces a fresh instance that replaces this one wholesale.
    """

    encoders: frozenset[str] = frozenset()
    """Codecs of interest reported as encode-capable."""

    probed: bool = True
    """False when this is the degraded baseline used after a probe failure."""

    ffmpeg_path: Path | None = None
    ffmpeg_version: str | None = None

    @classmethod
    def baseline(cls, ffmpeg_path: Path | None = None) -> EncoderCapabilities:
        """Capabilities assumed when the toolchain could not be queried."""
        return cls(encoders=BASELINE_CODECS, probed=False, ffmpeg_path=ffmpeg_path)

    def can_encode(self, name: str) -> bool:
        """Check if a codec is encode-capable."""
        return name.casefold() in self.encoders

    def summary(self) -> dict[str, bool]:
        """Map every codec of interest to its encode flag."""
        return {codec: self.can_encode(codec) for codec in CODECS_OF_INTEREST}
