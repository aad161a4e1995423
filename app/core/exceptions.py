"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error envelopes across the API
- Machine-readable error codes that map onto HTTP statuses

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures (400)
    ├── NotFoundError - Resource not found (404)
    ├── ConflictError - Duplicates and ownership conflicts (409)
    └── ConfigurationError - Channel credentials missing (500)

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError("Template not found")

    # Converted to the envelope by core.responses.envelope_exception_handler:
    # {"success": false, "message": "Template not found", "error_code": "NOT_FOUND"}

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, parsing, throttling).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Field errors or other context, rendered under ``errors``
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the API envelope.

        Example:
            {
                "success": False,
                "message": "Template not found",
                "error_code": "NOT_FOUND",
            }
        """
        result: dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["errors"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    Note:
        For request body validation, use DRF serializers.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource is not found."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Duplicate template names
    - A device token that is already registered to another user
    """

    default_error_code: str = "CONFLICT"


class ConfigurationError(BaseApplicationError):
    """
    Raised when a delivery channel is missing its configuration.

    Example:
        raise ConfigurationError(
            "Push notifications are not configured",
            details={"missing": ["FIREBASE_PROJECT_ID"]},
        )
    """

    default_error_code: str = "CONFIGURATION_ERROR"
