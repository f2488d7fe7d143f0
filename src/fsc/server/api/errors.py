"""Standardized API error responses.

Every error body has the same shape:

    {"error": "<human-readable message>", "code": "<MACHINE_CODE>"}

Usage:
    from fsc.server.api.errors import api_error, NOT_FOUND

    return api_error("Not found", code=NOT_FOUND, status=404)
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

from fsc.compress.errors import ValidationError, ValidationReason

# --- Error code constants ---

NO_FILE_UPLOADED = "NO_FILE_UPLOADED"
NO_ENCODER_AVAILABLE = "NO_ENCODER_AVAILABLE"
UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"
COMPRESSION_FAILED = "COMPRESSION_FAILED"
NOT_FOUND = "NOT_FOUND"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

# ValidationReason -> (code, HTTP status)
_VALIDATION_STATUS: dict[ValidationReason, tuple[str, int]] = {
    ValidationReason.NO_FILE_UPLOADED: (NO_FILE_UPLOADED, 400),
    ValidationReason.NO_ENCODER_AVAILABLE: (NO_ENCODER_AVAILABLE, 501),
    ValidationReason.UPLOAD_TOO_LARGE: (UPLOAD_TOO_LARGE, 413),
}


def api_error(
    message: str,
    *,
    code: str,
    status: int = 400,
    details: Any = None,
) -> web.Response:
    """Create a JSON error response.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (use constants from this module).
        status: HTTP status code (default 400).
        details: Optional additional context.
    """
    body: dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=status)


def validation_error_response(error: ValidationError) -> web.Response:
    """Map a ValidationError to its status code and error body."""
    code, status = _VALIDATION_STATUS[error.reason]
    return api_error(str(error), code=code, status=status)
