"""Structured logging module for FSC.

Provides configurable logging with JSON format support, file rotation,
per-job context tagging and a structured job outcome record.
"""

from fsc.logging.config import configure_logging
from fsc.logging.context import (
    JobContextFilter,
    JobOutcome,
    get_job_context,
    job_context,
    log_job_outcome,
)
from fsc.logging.handlers import JSONFormatter, JobTextFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "JobOutcome",
    "JobTextFormatter",
    "configure_logging",
    "get_job_context",
    "job_context",
    "log_job_outcome",
]
