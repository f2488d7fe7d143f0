"""Log formatters for FSC.

JobTextFormatter is the human-readable default; JSONFormatter writes one
object per line for log shippers. Both surface the job tag set by
JobContextFilter and the outcome fields set by log_job_outcome.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from fsc.logging.context import JOB_OUTCOME_FIELDS

TEXT_FORMAT = "%(asctime)s - %(job_tag)s%(name)s - %(levelname)s - %(message)s"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Everything a bare LogRecord carries, plus what our filter and formatters
# add. Any other attribute came in through ``extra``.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "job_id", "job_kind", "job_tag", *JOB_OUTCOME_FIELDS}


def outcome_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Job outcome fields present on record, in JOB_OUTCOME_FIELDS order."""
    return {
        name: value
        for name in JOB_OUTCOME_FIELDS
        if (value := getattr(record, name, None)) is not None
    }


class JobTextFormatter(logging.Formatter):
    """Text formatter that appends job outcome fields as key=value pairs.

    Example line:
        2026-10-19T10:00:00+0000 - [job:3f2a9c1e] fsc.server.routes - INFO -
        Job completed outcome=completed bytes_in=5242880 bytes_out=913408
        duration_ms=812.4
    """

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TIME_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "job_tag"):
            # Handler without JobContextFilter
            record.job_tag = ""
        line = super().format(record)

        fields = outcome_fields(record)
        if not fields:
            return line
        suffix = " ".join(f"{name}={value}" for name, value in fields.items())
        # Tracebacks stay below the record line
        head, sep, rest = line.partition("\n")
        return f"{head} {suffix}{sep}{rest}"


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line.

    Keys: timestamp (ISO-8601 UTC), level, logger and message on every
    line; job_id and job_kind inside a job; the outcome fields at top
    level on the record that closes a job. Remaining ``extra`` values go
    under "context", and tracebacks under "exception".
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None)
        if job_id:
            entry["job_id"] = job_id
            entry["job_kind"] = getattr(record, "job_kind", None)

        entry.update(outcome_fields(record))

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
