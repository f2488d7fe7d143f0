"""External tool detection and capability management.

This module provides infrastructure for detecting ffmpeg and querying which
of the encoders used by the compression pipeline it can actually run.
"""

from fsc.tools.detection import (
    detect_ffmpeg,
    find_ffmpeg,
    probe_encoders,
    resolve_capabilities,
)
from fsc.tools.models import (
    BASELINE_CODECS,
    CODEC_AAC,
    CODEC_H264,
    CODEC_MP3,
    CODEC_MPEG4,
    CODEC_OPUS,
    CODECS_OF_INTEREST,
    EncoderCapabilities,
    FFmpegInfo,
    ToolStatus,
)

__all__ = [
    # Models
    "BASELINE_CODECS",
    "CODEC_AAC",
    "CODEC_H264",
    "CODEC_MP3",
    "CODEC_MPEG4",
    "CODEC_OPUS",
    "CODECS_OF_INTEREST",
    "EncoderCapabilities",
    "FFmpegInfo",
    "ToolStatus",
    # Detection
    "detect_ffmpeg",
    "find_ffmpeg",
    "probe_encoders",
    "resolve_capabilities",
]
