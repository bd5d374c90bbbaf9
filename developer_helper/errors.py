"""
Shared error types for the developer helper modules.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Serializable error payload."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: Optional[str] = None


class DeveloperHelperError(Exception):
    """Base exception for all helper modules."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an error response, tagged with the active correlation id."""
        # Imported here to keep errors importable from the logging module.
        from .logging import correlation_id_var

        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details,
            correlation_id=correlation_id_var.get(),
        )


class InvalidArgumentError(DeveloperHelperError, ValueError):
    """A required argument was missing or malformed."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ARGUMENT", message, details)


class EntityValidationError(DeveloperHelperError, ValueError):
    """An entity failed its model's field constraints."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class StorageFailureError(DeveloperHelperError):
    """Unexpected failure inside a cache store."""

    def __init__(self, message: str = "Storage failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_FAILURE", message, details)


class SecurityError(DeveloperHelperError):
    """Encryption, decryption or hashing failed."""

    def __init__(self, message: str = "Security operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SECURITY_ERROR", message, details)


class HttpRequestError(DeveloperHelperError):
    """An outgoing HTTP request failed."""

    def __init__(
        self,
        message: str = "HTTP request failed",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__("HTTP_REQUEST_ERROR", message, details)


class ServiceUnavailableError(DeveloperHelperError):
    """A remote service is temporarily unavailable."""

    def __init__(self, message: str = "Service is temporarily unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_UNAVAILABLE", message, details)


class SecretNotFoundError(DeveloperHelperError):
    """A required secret is not configured."""

    def __init__(self, key: str, details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("SECRET_NOT_FOUND", f"Secret '{key}' was not found", details)
