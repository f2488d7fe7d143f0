"""Logging setup for the fsc daemon.

configure_logging() installs the root handlers once at startup. Every
handler carries JobContextFilter, so each line written while a job runs
carries that job's id.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from fsc.logging.context import JobContextFilter
from fsc.logging.handlers import JSONFormatter, JobTextFormatter

if TYPE_CHECKING:
    from fsc.config.models import LoggingConfig

_LEVEL_MAP: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Third-party loggers held above our level. aiohttp.access repeats what the
# request logging middleware says; PIL logs every image chunk at DEBUG.
QUIET_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "PIL": logging.INFO,
}


def build_formatter(log_format: str) -> logging.Formatter:
    """Formatter for "text" or "json"."""
    if log_format.casefold() == "json":
        return JSONFormatter()
    return JobTextFormatter()


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {config.file}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to config.

    A log file that cannot be opened falls back to stderr.
    """
    level = _LEVEL_MAP.get(config.level.casefold(), logging.INFO)

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = build_formatter(config.format)
    job_filter = JobContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(job_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))
