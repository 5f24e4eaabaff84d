"""
Shared error handling for the Keyword Gateway.

Every failure a gateway request can hit is one of the tagged variants below,
raised where the failure happens and dispatched on type by the routes.
"""

from typing import Any, Optional
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Nested error body used by the keyword ideas route."""

    code: int
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error response format: ``{"error": {code, message, details?}}``."""

    error: ErrorDetail


class SimpleErrorResponse(BaseModel):
    """Flat error response format: ``{"error": message, "details"?: str}``."""

    error: str
    details: Optional[str] = None


class GatewayError(Exception):
    """Base exception for gateway services."""

    status_code: int = 500
    default_code = "GATEWAY_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None,
                 status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.details = details
        self.code = self.default_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert to the nested error response."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.status_code,
                message=self.message,
                details=self.details,
            )
        )

    def to_simple_response(self) -> SimpleErrorResponse:
        """Convert to the flat error response."""
        details = self.details
        if details is not None and not isinstance(details, str):
            details = str(details)
        return SimpleErrorResponse(error=self.message, details=details)


class ValidationError(GatewayError):
    """Missing or empty required input."""

    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class ConfigError(GatewayError):
    """Required server secrets are missing."""

    status_code = 500
    default_code = "CONFIG_ERROR"
    default_message = "Gateway not configured"


class AuthConfigError(ConfigError):
    """OAuth client credentials are missing."""

    default_code = "AUTH_CONFIG_ERROR"
    default_message = "Missing required Google Ads OAuth credentials"


class RateLimitError(GatewayError):
    """Rate limiting errors."""

    status_code = 429
    default_code = "RATE_LIMIT_ERROR"
    default_message = "Rate limit exceeded. Please try again in a few seconds."

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None,
                 retry_after: Optional[float] = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class UpstreamError(GatewayError):
    """Non-2xx response from a third-party API; the status is mirrored."""

    default_code = "UPSTREAM_ERROR"
    default_message = "Upstream API error"

    def __init__(self, service: str, status_code: int, body: str = "",
                 message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message or f"{service} error: {status_code}",
                         details=body if details is None else details,
                         status_code=status_code)
        self.service = service
        self.body = body


class UpstreamTimeoutError(GatewayError):
    """The upstream call did not complete before its deadline."""

    status_code = 408
    default_code = "TIMEOUT_ERROR"
    default_message = "Request timeout"


class UpstreamConnectionError(GatewayError):
    """The upstream could not be reached."""

    status_code = 500
    default_code = "UPSTREAM_CONNECTION_ERROR"
    default_message = "Failed to communicate with upstream API"


class UpstreamAuthError(GatewayError):
    """The OAuth token exchange failed or returned no token."""

    status_code = 500
    default_code = "UPSTREAM_AUTH_ERROR"
    default_message = "Failed to refresh Google Ads access token"


class ShapeError(GatewayError):
    """The top-level upstream payload does not have the expected shape."""

    status_code = 500
    default_code = "SHAPE_ERROR"
    default_message = "Invalid response from upstream API"


class RecordError(GatewayError):
    """A single malformed upstream record. Always recovered in place."""

    default_code = "RECORD_ERROR"
    default_message = "Malformed upstream record"
