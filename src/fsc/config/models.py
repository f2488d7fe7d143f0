"""Configuration data models.

This module defines dataclasses for FSC configuration options.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

# Quality policy. These are fixed per deployment, never per request.
DEFAULT_IMAGE_MAX_WIDTH = 800
DEFAULT_IMAGE_QUALITY = 70
DEFAULT_VIDEO_CRF = 28
DEFAULT_VIDEO_PRESET = "superfast"
DEFAULT_VIDEO_QSCALE = 5  # mpeg4 has no CRF mode
DEFAULT_VIDEO_AUDIO_BITRATE = "128k"
DEFAULT_MP3_BITRATE = "96k"
DEFAULT_AAC_BITRATE = "96k"
DEFAULT_OPUS_BITRATE = "64k"

_BITRATE_PATTERN = re.compile(r"^\d+[kKmM]?$")


def _validate_bitrate(name: str, value: str) -> None:
    if not _BITRATE_PATTERN.match(value):
        raise ValueError(f"{name} must look like '96k', got {value!r}")


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    If not specified, ffmpeg is looked up in PATH.
    """

    ffmpeg: Path | None = None


@dataclass
class CompressionConfig:
    """Quality defaults applied to every job of a kind."""

    image_max_width: int = DEFAULT_IMAGE_MAX_WIDTH
    """Images wider than this are downscaled; narrower ones keep their size."""

    image_quality: int = DEFAULT_IMAGE_QUALITY
    """JPEG quality (1-95)."""

    video_crf: int = DEFAULT_VIDEO_CRF
    """Constant rate factor for libx264 (0-51, higher = smaller)."""

    video_preset: str = DEFAULT_VIDEO_PRESET
    """libx264 preset."""

    video_qscale: int = DEFAULT_VIDEO_QSCALE
    """Quantizer scale for the legacy mpeg4 encoder (1-31)."""

    video_audio_bitrate: str = DEFAULT_VIDEO_AUDIO_BITRATE
    """Bitrate for a re-encoded audio track inside compressed video."""

    mp3_bitrate: str = DEFAULT_MP3_BITRATE
    aac_bitrate: str = DEFAULT_AAC_BITRATE
    opus_bitrate: str = DEFAULT_OPUS_BITRATE

    encode_timeout: float | None = None
    """Seconds before a running encoder is killed. None disables the limit."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.image_max_width < 1:
            raise ValueError(
                f"image_max_width must be positive, got {self.image_max_width}"
            )
        if not 1 <= self.image_quality <= 95:
            raise ValueError(
                f"image_quality must be between 1 and 95, got {self.image_quality}"
            )
        if not 0 <= self.video_crf <= 51:
            raise ValueError(
                f"video_crf must be between 0 and 51, got {self.video_crf}"
            )
        if not 1 <= self.video_qscale <= 31:
            raise ValueError(
                f"video_qscale must be between 1 and 31, got {self.video_qscale}"
            )
        for name in (
            "video_audio_bitrate",
            "mp3_bitrate",
            "aac_bitrate",
            "opus_bitrate",
        ):
            _validate_bitrate(name, getattr(self, name))
        if self.encode_timeout is not None and self.encode_timeout <= 0:
            raise ValueError(
                f"encode_timeout must be positive, got {self.encode_timeout}"
            )


@dataclass
class JobsConfig:
    """Configuration for per-request job artifacts."""

    # Temp directory for input/output artifacts (None = system temp dir)
    temp_directory: Path | None = None

    # Leftover artifacts older than this are removed at startup
    orphan_max_age_hours: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.orphan_max_age_hours <= 0:
            raise ValueError(
                "orphan_max_age_hours must be positive, "
                f"got {self.orphan_max_age_hours}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ServerConfig:
    """Configuration for the HTTP server.

    Controls bind address, port, upload limits and browser access for
    `fsc serve`.
    """

    bind: str = "0.0.0.0"  # nosec B104 - public upload service
    """Network address to bind to."""

    port: int = 10000
    """Port number for HTTP server."""

    shutdown_timeout: float = 30.0
    """Seconds to wait for in-flight requests during graceful shutdown."""

    max_upload_mb: int = 200
    """Largest accepted upload, in MiB."""

    allowed_origins: tuple[str, ...] = (
        "https://filesizecompressor.vercel.app",
        "http://localhost:3000",
    )
    """Origins allowed to call the API from a browser."""

    static_dir: Path | None = None
    """Optional directory with a frontend to serve at /."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )
        if self.max_upload_mb < 1:
            raise ValueError(
                f"max_upload_mb must be at least 1, got {self.max_upload_mb}"
            )
        self.allowed_origins = tuple(self.allowed_origins)

    @property
    def max_upload_bytes(self) -> int:
        """Upload limit in bytes."""
        return self.max_upload_mb * 1024 * 1024


@dataclass
class FSCConfig:
    """Main configuration container for FSC.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    compression: CompressionConfig = field(default_factory=CompressionConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
