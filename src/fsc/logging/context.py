"""Job context for structured logging.

Each request handler runs in its own asyncio task, so a contextvar set at
the start of a job tags every log line emitted on behalf of that job. The
job ends with exactly one outcome record (see log_job_outcome) whose
fields the formatters render as structured data.
"""

from __future__ import annotations

import contextvars
import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_job_kind: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_kind", default=None
)

# Attributes log_job_outcome puts on a record, in render order
JOB_OUTCOME_FIELDS: tuple[str, ...] = (
    "outcome",
    "bytes_in",
    "bytes_out",
    "duration_ms",
)


class JobOutcome(Enum):
    """How a compression job ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # client went away mid-job


@contextmanager
def job_context(job_id: str, kind: str | None = None) -> Generator[None, None, None]:
    """Tag log records with a job id for the duration of the block.

    Args:
        job_id: Correlation id of the job.
        kind: Media kind ("image", "video", "audio").

    Example:
        with job_context(job.job_id, "video"):
            logger.info("Encoder started")  # [job:3f2a9c1e] ...
    """
    id_token = _job_id.set(job_id)
    kind_token = _job_kind.set(kind)
    try:
        yield
    finally:
        _job_id.reset(id_token)
        _job_kind.reset(kind_token)


def get_job_context() -> tuple[str | None, str | None]:
    """Return (job_id, job_kind) for the current context."""
    return _job_id.get(), _job_kind.get()


def log_job_outcome(
    logger: logging.Logger,
    outcome: JobOutcome,
    *,
    bytes_in: int,
    started: float,
    bytes_out: int | None = None,
) -> None:
    """Emit the record that closes a job.

    Failed jobs log at WARNING; the cause has already been logged as an
    error by the caller.

    Args:
        logger: Logger of the calling module.
        outcome: How the job ended.
        bytes_in: Size of the upload.
        started: time.monotonic() reading taken when the job began.
        bytes_out: Size of the result sent back, if any.
    """
    duration_ms = round((time.monotonic() - started) * 1000, 1)
    level = logging.WARNING if outcome is JobOutcome.FAILED else logging.INFO
    logger.log(
        level,
        "Job %s",
        outcome.value,
        extra={
            "outcome": outcome.value,
            "bytes_in": bytes_in,
            "bytes_out": bytes_out,
            "duration_ms": duration_ms,
        },
    )


class JobContextFilter(logging.Filter):
    """Logging filter that injects job context into log records.

    Adds job_id and job_kind attributes, plus a compact job_tag like
    "[job:3f2a9c1e] " for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        job_id, job_kind = get_job_context()
        record.job_id = job_id
        record.job_kind = job_kind
        record.job_tag = f"[job:{job_id[:8]}] " if job_id else ""
        return True
