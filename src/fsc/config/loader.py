"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (FSC_*)
3. Config file (~/.fsc/config.toml)
4. Default values

Environment variables:
- FSC_CONFIG_PATH: Path to config file (overrides default location)
- FSC_FFMPEG_PATH: Path to ffmpeg executable
- FSC_TEMP_DIR: Directory for per-request temp artifacts
- FSC_SERVER_BIND / FSC_SERVER_PORT (or PORT): Listen address
- FSC_SERVER_SHUTDOWN_TIMEOUT: Graceful shutdown timeout in seconds
- FSC_MAX_UPLOAD_MB: Largest accepted upload
- FSC_ALLOWED_ORIGINS: Comma-separated CORS origin allowlist
- FSC_STATIC_DIR: Frontend directory served at /
- FSC_ENCODE_TIMEOUT: Seconds before a running encoder is killed
- FSC_LOG_LEVEL / FSC_LOG_FORMAT: Logging overrides
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from fsc.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from fsc.config.env import EnvReader
from fsc.config.models import FSCConfig
from fsc.config.toml_parser import load_toml_file

logger = logging.getLogger(__name__)

# Default config location
DEFAULT_CONFIG_DIR = Path.home() / ".fsc"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Get the default config file path.

    Can be overridden by FSC_CONFIG_PATH environment variable.
    """
    env_path = os.environ.get("FSC_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Results are cached with mtime-based invalidation, so an edited file is
    picked up on the next call.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise TomlParseError on parse failures.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result = load_toml_file(path, strict=strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    ffmpeg_path: Path | None = None,
    bind: str | None = None,
    port: int | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> FSCConfig:
    """Get FSC configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides FSC_CONFIG_PATH).
        ffmpeg_path: CLI override for ffmpeg path.
        bind: CLI override for the server bind address.
        port: CLI override for the server port.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise TomlParseError on config file parse failures.

    Returns:
        FSCConfig with merged configuration.
    """
    reader = env_reader or EnvReader()

    file_config = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config))
    builder.apply(source_from_env(reader))
    builder.apply(
        ConfigSource(ffmpeg_path=ffmpeg_path, server_bind=bind, server_port=port)
    )
    return builder.build()


def get_temp_directory(config: FSCConfig | None = None) -> Path:
    """Get the directory for per-request temp artifacts.

    Precedence: configured [jobs] temp_directory (or FSC_TEMP_DIR), then the
    system temp directory.

    Args:
        config: Configuration to read. Loaded with get_config() if None.

    Returns:
        Absolute path to an existing directory.
    """
    if config is None:
        config = get_config()

    configured = config.jobs.temp_directory
    if configured is not None:
        path = configured.expanduser().resolve()
        if path.is_dir():
            return path
        logger.warning(
            "Configured temp directory '%s' is not a valid directory, "
            "falling back to system temp",
            configured,
        )

    return Path(tempfile.gettempdir()).resolve()
