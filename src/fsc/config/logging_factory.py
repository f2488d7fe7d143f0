"""Apply command-line logging overrides on top of the loaded config."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from fsc.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a copy of ``base`` with every non-None override applied.

    The copy is re-validated by LoggingConfig.__post_init__, so an unknown
    level or format raises ValueError.
    """
    overrides = {
        "level": level,
        "file": file,
        "format": format,
        "include_stderr": include_stderr,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def configure_logging_from_cli(
    config: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
) -> LoggingConfig:
    """Merge CLI flags into ``config`` and install the resulting handlers.

    Returns:
        The LoggingConfig that was applied.
    """
    from fsc.logging import configure_logging

    final_config = build_logging_config(config, level=level, file=file, format=format)
    configure_logging(final_config)
    return final_config
