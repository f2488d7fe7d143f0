"""HTTP API helpers."""

from fsc.server.api.errors import api_error, validation_error_response

__all__ = ["api_error", "validation_error_response"]
