"""Configuration management for File Size Compressor.

This module provides configuration loading with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (FSC_*)
3. Config file (~/.fsc/config.toml)
4. Default values (lowest priority)
"""

from fsc.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from fsc.config.env import EnvReader
from fsc.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    get_temp_directory,
    load_config_file,
)
from fsc.config.logging_factory import (
    build_logging_config,
    configure_logging_from_cli,
)
from fsc.config.models import (
    CompressionConfig,
    FSCConfig,
    JobsConfig,
    LoggingConfig,
    ServerConfig,
    ToolPathsConfig,
)
from fsc.config.toml_parser import TomlParseError, load_toml_file, parse_toml

__all__ = [
    # Models
    "CompressionConfig",
    "FSCConfig",
    "JobsConfig",
    "LoggingConfig",
    "ServerConfig",
    "ToolPathsConfig",
    # Loader
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "get_temp_directory",
    "load_config_file",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    # Logging
    "build_logging_config",
    "configure_logging_from_cli",
    # TOML
    "TomlParseError",
    "load_toml_file",
    "parse_toml",
]
