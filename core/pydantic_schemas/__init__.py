"""Public pydantic schema exports for FastAPI interfaces."""

from .api_envelope import (
    ApiResponse,
    ErrorData,
    ErrorDetail,
    api_response,
    created,
    error,
    error_details,
    ok,
)

__all__ = [
    "ApiResponse",
    "ErrorData",
    "ErrorDetail",
    "api_response",
    "created",
    "error",
    "error_details",
    "ok",
]
