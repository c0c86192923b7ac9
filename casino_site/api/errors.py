"""Structured error taxonomy for the casino site API.

Provides a canonical set of error codes that clients can switch on, ensuring
consistent error handling across endpoints and middleware layers.

The revalidation webhook is the exception: Sanity expects the flat
``{"error": "<message>"}`` bodies documented in :mod:`casino_site.cms.webhook`.

Usage::

    from casino_site.api.errors import ErrorCode, error_response

    return JSONResponse(
        status_code=413,
        content=error_response(ErrorCode.PAYLOAD_TOO_LARGE, "Request body too large."),
    )
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Canonical error codes for API responses."""

    PAYLOAD_TOO_LARGE = "payload_too_large"
    INTERNAL_ERROR = "internal_error"
    CMS_UNAVAILABLE = "cms_unavailable"


def error_response(code: ErrorCode, message: str) -> dict:
    """Build a structured error response body.

    Returns:
        Dict with ``error`` object containing ``code`` and ``message``.
    """
    return {"error": {"code": code.value, "message": message}}
