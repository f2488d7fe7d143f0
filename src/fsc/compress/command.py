"""FFmpeg argument vectors for video and audio compression.

Commands are always argument lists passed to exec, never shell strings.
"""

from __future__ import annotations

from pathlib import Path

from fsc.compress.plans import AudioPlan, VideoPlan
from fsc.config.models import CompressionConfig
from fsc.tools.models import CODEC_H264, CODEC_MPEG4

# Shared leading flags: overwrite the (pre-allocated) output, keep stderr to
# errors and stats, and never read from stdin.
_COMMON_FLAGS = ("-y", "-hide_banner", "-nostdin")


def _video_quality_args(codec: str, compression: CompressionConfig) -> list[str]:
    if codec == CODEC_H264:
        return [
            "-crf",
            str(compression.video_crf),
            "-preset",
            compression.video_preset,
        ]
    if codec == CODEC_MPEG4:
        return ["-q:v", str(compression.video_qscale)]
    return []


def build_video_command(
    ffmpeg: str | Path,
    plan: VideoPlan,
    input_path: Path,
    output_path: Path,
    compression: CompressionConfig | None = None,
) -> list[str]:
    """Build the ffmpeg command for a video job.

    Args:
        ffmpeg: ffmpeg executable.
        plan: Selected video plan.
        input_path: Uploaded source file.
        output_path: File ffmpeg writes to.
        compression: Quality settings (defaults when None).

    Returns:
        Argument vector.
    """
    compression = compression or CompressionConfig()

    cmd = [str(ffmpeg), *_COMMON_FLAGS, "-i", str(input_path)]
    cmd.extend(["-c:v", plan.video_codec])
    cmd.extend(_video_quality_args(plan.video_codec, compression))

    if plan.copies_audio:
        cmd.extend(["-c:a", "copy"])
    else:
        cmd.extend(["-c:a", plan.audio_codec, "-b:a", compression.video_audio_bitrate])

    # Put the moov atom first so players can start before the download ends
    cmd.extend(["-movflags", "+faststart"])
    cmd.append(str(output_path))
    return cmd


def build_audio_command(
    ffmpeg: str | Path,
    plan: AudioPlan,
    input_path: Path,
    output_path: Path,
) -> list[str]:
    """Build the ffmpeg command for an audio job.

    Any video stream (cover art, or a video uploaded to the audio route) is
    dropped.
    """
    cmd = [str(ffmpeg), *_COMMON_FLAGS, "-i", str(input_path), "-vn"]
    cmd.extend(["-c:a", plan.audio_codec, "-b:a", plan.bitrate])
    if plan.extension == ".m4a":
        cmd.extend(["-movflags", "+faststart"])
    cmd.append(str(output_path))
    return cmd
