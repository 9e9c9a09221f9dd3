"""
Shared error handling for the Cloudflare exporter.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ExporterError(Exception):
    """Base exception for exporter components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ExporterError):
    """Invalid or incomplete start-up configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class RegistrationError(ExporterError):
    """Metric registration is inconsistent with the families that write to it."""

    def __init__(self, message: str = "Metric registration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("REGISTRATION_ERROR", message, details)


class ExternalServiceError(ExporterError):
    """Upstream API errors."""

    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
        code: str = "EXTERNAL_SERVICE_ERROR"
    ):
        self.service = service
        super().__init__(code, f"{service}: {message}", details)


class QueryError(ExternalServiceError):
    """GraphQL analytics query failed."""

    def __init__(self, message: str = "Query failed", details: Optional[Dict[str, Any]] = None, code: str = "QUERY_ERROR"):
        super().__init__("graphql", message, details, code=code)


class DecodeError(ExporterError):
    """Upstream payload did not match the expected shape."""

    def __init__(self, message: str = "Response decoding failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)
