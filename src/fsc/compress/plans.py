"""Codec/container plan selection.

Plans are derived once from EncoderCapabilities and then only read. The
selection is a pure function of the capabilities (and the configured
bitrates), so equal inputs always produce equal plans.

Fallback order:

    video codec:        libx264 -> mpeg4 -> libx264 (best effort)
    video audio track:  aac -> libmp3lame -> copy
    audio endpoint:     libmp3lame/.mp3 -> aac/.m4a -> libopus/.ogg -> none
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from fsc.config.models import CompressionConfig
from fsc.tools.detection import resolve_capabilities
from fsc.tools.models import (
    CODEC_AAC,
    CODEC_H264,
    CODEC_MP3,
    CODEC_MPEG4,
    CODEC_OPUS,
    EncoderCapabilities,
)

logger = logging.getLogger(__name__)

# Stream-copy the source audio track instead of re-encoding it.
AUDIO_COPY = "copy"


@dataclass(frozen=True)
class VideoPlan:
    """How /compress/video re-encodes an upload."""

    video_codec: str
    audio_codec: str
    extension: str = ".mp4"
    container: str = "mp4"
    mime_type: str = "video/mp4"

    @property
    def copies_audio(self) -> bool:
        return self.audio_codec == AUDIO_COPY


@dataclass(frozen=True)
class AudioPlan:
    """How /compress/audio re-encodes an upload."""

    audio_codec: str
    extension: str
    container: str
    mime_type: str
    bitrate: str


@dataclass(frozen=True)
class TranscodePlans:
    """Plans for every media kind, derived from one capability snapshot."""

    capabilities: EncoderCapabilities
    video: VideoPlan
    audio: AudioPlan | None
    """None when no audio encoder of interest is available."""

    def describe(self) -> dict[str, object]:
        """Summarize the plans for logs and the health endpoint."""
        return {
            "probed": self.capabilities.probed,
            "video": {
                "video_codec": self.video.video_codec,
                "audio_codec": self.video.audio_codec,
                "container": self.video.container,
            },
            "audio": (
                {
                    "audio_codec": self.audio.audio_codec,
                    "container": self.audio.container,
                    "bitrate": self.audio.bitrate,
                }
                if self.audio
                else None
            ),
        }


def select_video_plan(capabilities: EncoderCapabilities) -> VideoPlan:
    """Pick the video plan.

    The video kind always has a plan: when neither video encoder was
    reported, libx264 is attempted anyway and a missing encoder surfaces
    as an execution failure for that job.
    """
    if capabilities.can_encode(CODEC_H264):
        video_codec = CODEC_H264
    elif capabilities.can_encode(CODEC_MPEG4):
        video_codec = CODEC_MPEG4
    else:
        video_codec = CODEC_H264

    if capabilities.can_encode(CODEC_AAC):
        audio_codec = CODEC_AAC
    elif capabilities.can_encode(CODEC_MP3):
        audio_codec = CODEC_MP3
    else:
        audio_codec = AUDIO_COPY

    return VideoPlan(video_codec=video_codec, audio_codec=audio_codec)


def select_audio_plan(
    capabilities: EncoderCapabilities,
    compression: CompressionConfig | None = None,
) -> AudioPlan | None:
    """Pick the audio plan, or None if nothing usable is available."""
    compression = compression or CompressionConfig()

    if capabilities.can_encode(CODEC_MP3):
        return AudioPlan(
            audio_codec=CODEC_MP3,
            extension=".mp3",
            container="mp3",
            mime_type="audio/mpeg",
            bitrate=compression.mp3_bitrate,
        )
    if capabilities.can_encode(CODEC_AAC):
        return AudioPlan(
            audio_codec=CODEC_AAC,
            extension=".m4a",
            container="mp4",
            mime_type="audio/mp4",
            bitrate=compression.aac_bitrate,
        )
    if capabilities.can_encode(CODEC_OPUS):
        return AudioPlan(
            audio_codec=CODEC_OPUS,
            extension=".ogg",
            container="ogg",
            mime_type="audio/ogg",
            bitrate=compression.opus_bitrate,
        )
    return None


def select_plans(
    capabilities: EncoderCapabilities,
    compression: CompressionConfig | None = None,
) -> TranscodePlans:
    """Derive the plans for every media kind from one capability snapshot."""
    return TranscodePlans(
        capabilities=capabilities,
        video=select_video_plan(capabilities),
        audio=select_audio_plan(capabilities, compression),
    )


class PlanRegistry:
    """Holds the TranscodePlans currently in effect.

    The registry is filled once during application startup, before the
    site accepts connections. A re-probe builds a complete new
    TranscodePlans and swaps the reference; requests already running keep
    the snapshot they read.
    """

    def __init__(
        self,
        plans: TranscodePlans | None = None,
        *,
        ffmpeg_path: Path | None = None,
        compression: CompressionConfig | None = None,
    ) -> None:
        self._plans = plans
        self._ffmpeg_path = ffmpeg_path
        self._compression = compression or CompressionConfig()
        self._reprobe_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._plans is not None

    @property
    def current(self) -> TranscodePlans:
        """The plans in effect.

        Raises:
            RuntimeError: If the registry has not been populated yet.
        """
        if self._plans is None:
            raise RuntimeError("Transcode plans requested before encoder probing")
        return self._plans

    def replace(self, plans: TranscodePlans) -> None:
        self._plans = plans

    def reprobe(self) -> TranscodePlans:
        """Probe ffmpeg again and install freshly selected plans.

        Blocking; call from a worker thread when inside the event loop.
        """
        with self._reprobe_lock:
            capabilities = resolve_capabilities(self._ffmpeg_path)
            plans = select_plans(capabilities, self._compression)
            self._plans = plans
        log_plans(plans)
        return plans


def log_plans(plans: TranscodePlans) -> None:
    """Log the resolved plans at INFO."""
    caps = plans.capabilities
    available = ", ".join(sorted(caps.encoders)) or "none"
    if caps.probed:
        logger.info(
            "Encoders available (ffmpeg %s): %s",
            caps.ffmpeg_version or "unknown",
            available,
        )
    else:
        logger.warning("Assuming baseline encoders after probe failure: %s", available)

    logger.info(
        "Video plan: %s + %s in %s",
        plans.video.video_codec,
        plans.video.audio_codec,
        plans.video.container,
    )
    if plans.audio is None:
        logger.warning("Audio plan: none (audio compression will answer 501)")
    else:
        logger.info(
            "Audio plan: %s %s -> %s",
            plans.audio.audio_codec,
            plans.audio.bitrate,
            plans.audio.extension,
        )
