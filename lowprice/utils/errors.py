"""
Error taxonomy for lowprice.

Validation errors surface verbatim to callers. Upstream failures surface as
generic "try again later" text; their diagnostic detail is only logged.
"""
from typing import Any, Dict, Optional


class LowPriceError(Exception):
    """Base class for errors raised by the search pipeline."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LowPriceError):
    """Malformed or missing request input."""

    status_code = 400


class UpstreamError(LowPriceError):
    """Catalog API call failed (non-success status, unreachable, unparseable body)."""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class UpstreamTimeout(UpstreamError):
    """A single catalog page call exceeded its deadline."""

    status_code = 504


TIMEOUT_MESSAGE = "The catalog service timed out. Please try again later."
UPSTREAM_MESSAGE = "Could not reach the catalog service. Please try again later."
INTERNAL_MESSAGE = "Internal server error."


def to_safe_message(error: BaseException) -> str:
    """Convert an exception into a message that is safe to return to callers."""
    if isinstance(error, ValidationError):
        return error.message
    # UpstreamTimeout first: it is also an UpstreamError
    if isinstance(error, UpstreamTimeout):
        return TIMEOUT_MESSAGE
    if isinstance(error, UpstreamError):
        return UPSTREAM_MESSAGE
    if isinstance(error, LowPriceError):
        return error.message
    return INTERNAL_MESSAGE


def error_status_code(error: BaseException) -> int:
    if isinstance(error, LowPriceError):
        return error.status_code
    return 500


def error_details(error: BaseException) -> Dict[str, Any]:
    """Internal diagnostic view of an error, for logging only."""
    details: Dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
    }
    if isinstance(error, UpstreamError):
        details["status"] = error.status
        if error.body:
            details["body"] = error.body[:500]
    if error.__cause__ is not None:
        details["cause"] = repr(error.__cause__)
    return details
