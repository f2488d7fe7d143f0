"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building FSCConfig by composing
multiple configuration sources with explicit precedence handling.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from fsc.config.env import EnvReader
from fsc.config.models import (
    CompressionConfig,
    FSCConfig,
    JobsConfig,
    LoggingConfig,
    ServerConfig,
    ToolPathsConfig,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Tool paths
    ffmpeg_path: Path | None = None

    # Compression policy
    image_max_width: int | None = None
    image_quality: int | None = None
    video_crf: int | None = None
    video_preset: str | None = None
    video_qscale: int | None = None
    video_audio_bitrate: str | None = None
    mp3_bitrate: str | None = None
    aac_bitrate: str | None = None
    opus_bitrate: str | None = None
    encode_timeout: float | None = None

    # Jobs config
    jobs_temp_directory: Path | None = None
    jobs_orphan_max_age_hours: float | None = None

    # Server config
    server_bind: str | None = None
    server_port: int | None = None
    server_shutdown_timeout: float | None = None
    server_max_upload_mb: int | None = None
    server_allowed_origins: list[str] | None = None
    server_static_dir: Path | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds FSCConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> FSCConfig:
        """Build the final FSCConfig with defaults for unset values.

        Returns:
            Complete FSCConfig. Section __post_init__ validation raises
            ValueError for out-of-range values.
        """
        defaults = CompressionConfig()
        compression = CompressionConfig(
            image_max_width=self._get("image_max_width", defaults.image_max_width),
            image_quality=self._get("image_quality", defaults.image_quality),
            video_crf=self._get("video_crf", defaults.video_crf),
            video_preset=self._get("video_preset", defaults.video_preset),
            video_qscale=self._get("video_qscale", defaults.video_qscale),
            video_audio_bitrate=self._get(
                "video_audio_bitrate", defaults.video_audio_bitrate
            ),
            mp3_bitrate=self._get("mp3_bitrate", defaults.mp3_bitrate),
            aac_bitrate=self._get("aac_bitrate", defaults.aac_bitrate),
            opus_bitrate=self._get("opus_bitrate", defaults.opus_bitrate),
            encode_timeout=self._get("encode_timeout", None),
        )

        jobs = JobsConfig(
            temp_directory=self._get("jobs_temp_directory", None),
            orphan_max_age_hours=self._get("jobs_orphan_max_age_hours", 1.0),
        )

        server_defaults = ServerConfig()
        server = ServerConfig(
            bind=self._get("server_bind", server_defaults.bind),
            port=self._get("server_port", server_defaults.port),
            shutdown_timeout=self._get(
                "server_shutdown_timeout", server_defaults.shutdown_timeout
            ),
            max_upload_mb=self._get(
                "server_max_upload_mb", server_defaults.max_upload_mb
            ),
            allowed_origins=tuple(
                self._get("server_allowed_origins", server_defaults.allowed_origins)
            ),
            static_dir=self._get("server_static_dir", None),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return FSCConfig(
            tools=ToolPathsConfig(ffmpeg=self._get("ffmpeg_path", None)),
            compression=compression,
            jobs=jobs,
            logging=logging_config,
            server=server,
        )


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Args:
        file_config: Parsed configuration dictionary from TOML file.

    Returns:
        ConfigSource with values from the config file.
    """
    tools = file_config.get("tools", {})
    compression = file_config.get("compression", {})
    jobs = file_config.get("jobs", {})
    server = file_config.get("server", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        ffmpeg_path=_optional_path(tools.get("ffmpeg")),
        # Compression
        image_max_width=compression.get("image_max_width"),
        image_quality=compression.get("image_quality"),
        video_crf=compression.get("video_crf"),
        video_preset=compression.get("video_preset"),
        video_qscale=compression.get("video_qscale"),
        video_audio_bitrate=compression.get("video_audio_bitrate"),
        mp3_bitrate=compression.get("mp3_bitrate"),
        aac_bitrate=compression.get("aac_bitrate"),
        opus_bitrate=compression.get("opus_bitrate"),
        encode_timeout=compression.get("encode_timeout"),
        # Jobs
        jobs_temp_directory=_optional_path(jobs.get("temp_directory")),
        jobs_orphan_max_age_hours=jobs.get("orphan_max_age_hours"),
        # Server
        server_bind=server.get("bind"),
        server_port=server.get("port"),
        server_shutdown_timeout=server.get("shutdown_timeout"),
        server_max_upload_mb=server.get("max_upload_mb"),
        server_allowed_origins=server.get("allowed_origins"),
        server_static_dir=_optional_path(server.get("static_dir")),
        # Logging
        logging_level=logging_conf.get("level"),
        logging_file=_optional_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    FSC_SERVER_PORT wins over the conventional PORT variable set by most
    container platforms.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from environment variables.
    """
    return ConfigSource(
        ffmpeg_path=reader.get_path("FSC_FFMPEG_PATH"),
        encode_timeout=reader.get_float("FSC_ENCODE_TIMEOUT"),
        jobs_temp_directory=reader.get_path("FSC_TEMP_DIR"),
        server_bind=reader.get_str("FSC_SERVER_BIND"),
        server_port=reader.get_int("FSC_SERVER_PORT", reader.get_int("PORT")),
        server_shutdown_timeout=reader.get_float("FSC_SERVER_SHUTDOWN_TIMEOUT"),
        server_max_upload_mb=reader.get_int("FSC_MAX_UPLOAD_MB"),
        server_allowed_origins=reader.get_list("FSC_ALLOWED_ORIGINS"),
        server_static_dir=reader.get_path("FSC_STATIC_DIR"),
        logging_level=reader.get_str("FSC_LOG_LEVEL"),
        logging_format=reader.get_str("FSC_LOG_FORMAT"),
    )
