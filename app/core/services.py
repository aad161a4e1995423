"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (missing rows, duplicates,
      delivery errors reported by a provider)
    - Exceptions: Use for unexpected failures (database outages, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class NotificationTemplateService(BaseService):
        @classmethod
        def create(cls, name: str, ...) -> ServiceResult[NotificationTemplate]:
            if NotificationTemplate.objects.filter(name=name).exists():
                return ServiceResult.failure(
                    "Template with this name already exists",
                    error_code="CONFLICT",
                )

            with cls.atomic():
                template = NotificationTemplate.objects.create(name=name, ...)

            cls.get_logger().info(f"Created template {template.id}")
            return ServiceResult.success(template)

    # In view
    result = NotificationTemplateService.create(**serializer.validated_data)
    if not result.success:
        raise service_error(result)
    return api_response("Template created successfully", data, status=201)

Related:
    - core.exceptions: For unexpected/exceptional errors
    - core.responses: Maps error codes to HTTP statuses
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    A failed result may still carry ``data``: a notification send that reached
    the provider but failed keeps the persisted notification so the caller can
    report its final delivery status.

    Attributes:
        success: Whether the operation succeeded
        data: Result data (usually None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        token = DeviceToken.objects.create(auth_user_id=user_id, ...)
        return ServiceResult.success(token)

        # Failure case
        return ServiceResult.failure("Device token not found", "NOT_FOUND")

        # Check result
        result = DeviceTokenService.register(user_id, "ios", token)
        if result.success:
            device_token = result.data
        else:
            logger.warning(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        data: T | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            data: Optional partial data to hand back with the failure

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure("Template not found", "NOT_FOUND")
        """
        return cls(
            success=False,
            data=data,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Args:
            exc: The caught exception
            error_code: Optional error code (defaults to the exception's own
                error_code, then to the exception class name)

        Returns:
            ServiceResult with error details from exception
        """
        return cls(
            success=False,
            error=getattr(exc, "message", None) or str(exc),
            error_code=error_code
            or getattr(exc, "error_code", None)
            or exc.__class__.__name__.upper(),
        )


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Exception handling patterns

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Note:
            This is a thin wrapper around Django's transaction.atomic().
            Use it to make transaction boundaries explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
        error_code: str | None = None,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Args:
            exc: The caught exception
            context: Additional context for logging
            log_level: Logging level (default ERROR)
            error_code: Error code to attach to the failure

        Returns:
            ServiceResult with error details

        Example:
            try:
                token.save()
            except IntegrityError as e:
                return cls.handle_exception(e, "device token save", error_code="CONFLICT")
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=True)
        return ServiceResult.from_exception(exc, error_code)

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Returns a failure result if any required field is None or empty.
        Returns None if all fields are valid.

        Example:
            validation = cls.validate_required(auth_user_id=auth_user_id)
            if validation is not None:
                return validation
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = [f"{field_name} is required"]

        if errors:
            first_message = next(iter(errors.values()))[0]
            return ServiceResult.failure(
                first_message,
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
