"""Error taxonomy for the compression pipeline.

Each error maps to one way a job can end:

- ValidationError: the request itself is unusable (4xx, nothing to clean up)
- ProbeFailure: encoder discovery failed at startup (logged, degraded plans)
- ExecutionError: the encoder subprocess failed (500, diagnostics logged only)
- ImageProcessingError: Pillow could not decode or encode the upload (500)
- CleanupError: a temp artifact could not be deleted (logged only)
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class CompressError(Exception):
    """Base class for all compression pipeline errors."""


class ValidationReason(Enum):
    """Why a request was rejected before any work started."""

    NO_FILE_UPLOADED = "no_file_uploaded"
    NO_ENCODER_AVAILABLE = "no_encoder_available"
    UPLOAD_TOO_LARGE = "upload_too_large"


_VALIDATION_MESSAGES: dict[ValidationReason, str] = {
    ValidationReason.NO_FILE_UPLOADED: "No file uploaded",
    ValidationReason.NO_ENCODER_AVAILABLE: "No suitable encoder available",
    ValidationReason.UPLOAD_TOO_LARGE: "Uploaded file is too large",
}


class ValidationError(CompressError):
    """Request rejected during job construction."""

    def __init__(self, reason: ValidationReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or _VALIDATION_MESSAGES[reason])


class ProbeFailure(CompressError):
    """Encoder capability query failed."""


class ExecutionError(CompressError):
    """Encoder subprocess ended without producing a usable output.

    Attributes:
        returncode: Process exit status, or None if it never started or
            was killed on timeout.
        diagnostics: Tail of the encoder's stderr. For logs only, never
            sent to the client.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        diagnostics: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.diagnostics = diagnostics


class ImageProcessingError(CompressError):
    """Pillow could not decode or re-encode an uploaded image."""


class CleanupError(CompressError):
    """A temporary artifact could not be removed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Could not remove temp artifact {path}: {cause}")
        self.path = path
        self.cause = cause
