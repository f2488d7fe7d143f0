"""Environment variable reader with dependency injection support.

EnvReader parses FSC_* variables with type conversion. Tests inject a plain
mapping instead of touching os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class EnvReader:
    """Environment variable reader with type conversion and validation.

    Every getter returns the default when the variable is unset. Values that
    are set but cannot be parsed are logged and also fall back to the default.

    Example:
        reader = EnvReader(env={"FSC_SERVER_PORT": "9000"})
        reader.get_int("FSC_SERVER_PORT", 10000)  # 9000
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the environment reader.

        Args:
            env: Optional mapping to use instead of os.environ.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string, treating an empty value as unset."""
        value = self._env.get(var)
        if not value:
            return default
        return value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Get an integer from environment variable."""
        value = self._env.get(var)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_float(self, var: str, default: float | None = None) -> float | None:
        """Get a float from environment variable."""
        value = self._env.get(var)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float value for %s: %s", var, value)
            return default

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Get a path from environment variable.

        Args:
            var: Environment variable name.
            must_exist: If True, a path that does not exist is logged and
                replaced by the default.
            default: Default value.

        Returns:
            Expanded Path, or default.
        """
        value = self._env.get(var)
        if value is None:
            return default

        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning(
                "Environment variable %s points to non-existent path: %s",
                var,
                value,
            )
            return default
        return path

    def get_list(
        self, var: str, separator: str = ",", default: list[str] | None = None
    ) -> list[str] | None:
        """Get a separator-delimited list of non-empty, stripped strings."""
        value = self._env.get(var)
        if value is None:
            return default
        return [part.strip() for part in value.split(separator) if part.strip()]
