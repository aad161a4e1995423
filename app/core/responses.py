"""
API response envelope helpers.

Every endpoint answers with the same JSON envelope:

    {"success": true, "message": "Template created successfully", "data": {...}}
    {"success": false, "message": "Template not found", "error_code": "NOT_FOUND"}

Helpers:
    api_response: Build a success envelope
    error_response: Build a failure envelope from a ServiceResult
    service_error: Turn a failed ServiceResult into an application error
    status_for_error_code: Map a service error code to an HTTP status
    envelope_exception_handler: DRF EXCEPTION_HANDLER producing the envelope

Usage:
    from core.responses import api_response, service_error

    result = DeviceTokenService.delete(auth_user_id, token)
    if not result.success:
        raise service_error(result)
    return api_response("Device token deleted successfully")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any

    from core.services import ServiceResult

logger = logging.getLogger(__name__)

ERROR_CODE_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "DELIVERY_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "CONFIGURATION_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ERROR_CODE_EXCEPTIONS = {
    "VALIDATION_ERROR": ValidationError,
    "NOT_FOUND": NotFoundError,
    "CONFLICT": ConflictError,
    "CONFIGURATION_ERROR": ConfigurationError,
}

GENERIC_ERROR_MESSAGE = "Internal server error"


def status_for_error_code(error_code: str | None) -> int:
    """Return the HTTP status for a service error code (500 when unknown)."""
    return ERROR_CODE_STATUS.get(error_code or "", status.HTTP_500_INTERNAL_SERVER_ERROR)


def envelope(message: str, data: Any = None, success: bool = True) -> dict[str, Any]:
    body: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return body


def api_response(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    """Return a success envelope with the given HTTP status."""
    return Response(envelope(message, data), status=status_code)


def error_response(result: ServiceResult, data: Any = None) -> Response:
    """
    Return a failure envelope for a failed ServiceResult.

    Args:
        result: The failed service result
        data: Optional serialized payload to include (e.g. the notification
            whose delivery failed)
    """
    body = envelope(result.error or GENERIC_ERROR_MESSAGE, data, success=False)
    if result.error_code:
        body["error_code"] = result.error_code
    if result.errors:
        body["errors"] = result.errors
    return Response(body, status=status_for_error_code(result.error_code))


def service_error(result: ServiceResult) -> BaseApplicationError:
    """
    Build the application error matching a failed ServiceResult.

    Views raise the returned exception and envelope_exception_handler
    renders it, so field errors travel under ``errors``.

    Example:
        result = NotificationTemplateService.delete(template_id)
        if not result.success:
            raise service_error(result)
    """
    exc_class = ERROR_CODE_EXCEPTIONS.get(result.error_code or "", BaseApplicationError)
    return exc_class(
        result.error or GENERIC_ERROR_MESSAGE,
        error_code=result.error_code,
        details=result.errors,
    )


def _first_message(detail: Any) -> str:
    """Dig the first human-readable message out of DRF error detail."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return GENERIC_ERROR_MESSAGE
    if isinstance(detail, (list, tuple)):
        if not detail:
            return GENERIC_ERROR_MESSAGE
        return _first_message(detail[0])
    return str(detail)


def envelope_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """
    DRF exception handler that wraps every error in the API envelope.

    - BaseApplicationError: envelope from ``to_dict()``, status from error code
    - DRF exceptions: first error message becomes ``message``, field errors
      are kept under ``errors``
    - Anything else: logged with traceback, generic 500 envelope
    """
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=status_for_error_code(exc.error_code))

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            f"Unhandled exception in {view.__class__.__name__ if view else 'view'}: {exc}"
        )
        return Response(
            envelope(GENERIC_ERROR_MESSAGE, success=False),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = response.data
    body = envelope(_first_message(detail), success=False)
    if isinstance(detail, dict) and "detail" not in detail:
        body["errors"] = detail
    response.data = body
    return response
