"""TOML config file parsing."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class TomlParseError(Exception):
    """Raised when a config file exists but is not valid TOML."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(f"Failed to parse {path}: {cause}")
        self.path = path
        self.cause = cause


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML content into a dictionary."""
    return tomllib.loads(content)


def load_toml_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file.
        strict: If True, raise TomlParseError instead of returning an
            empty dict when the file cannot be read or parsed.

    Returns:
        Parsed dictionary. Empty dict if the file doesn't exist.

    Raises:
        TomlParseError: When strict=True and the file is unreadable or invalid.
    """
    if not path.exists():
        logger.debug("TOML file not found: %s", path)
        return {}

    try:
        config = parse_toml(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise TomlParseError(path, e) from e
        logger.warning("Failed to load TOML file %s: %s", path, e)
        return {}

    logger.debug("Loaded TOML config from %s", path)
    return config
