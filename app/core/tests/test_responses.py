"""
Tests for the API response envelope.

Test Classes:
    TestStatusForErrorCode: Tests for status_for_error_code()
    TestEnvelopeHelpers: Tests for api_response() and error_response()
    TestEnvelopeExceptionHandler: Tests for envelope_exception_handler()
    TestServiceError: Tests for service_error()
"""

import pytest
from rest_framework import exceptions as drf_exceptions
from rest_framework import status

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.services import ServiceResult


class TestStatusForErrorCode:
    """Tests for status_for_error_code()."""

    @pytest.mark.parametrize(
        "error_code,expected",
        [
            ("VALIDATION_ERROR", 400),
            ("NOT_FOUND", 404),
            ("CONFLICT", 409),
            ("DELIVERY_FAILED", 500),
            ("CONFIGURATION_ERROR", 500),
            ("SOMETHING_ELSE", 500),
            (None, 500),
        ],
    )
    def test_mapping(self, error_code, expected):
        from core.responses import status_for_error_code

        assert status_for_error_code(error_code) == expected


class TestEnvelopeHelpers:
    """Tests for api_response() and error_response()."""

    def test_api_response_with_data(self):
        from core.responses import api_response

        response = api_response("Created", {"id": 1}, status.HTTP_201_CREATED)

        assert response.status_code == 201
        assert response.data == {"success": True, "message": "Created", "data": {"id": 1}}

    def test_api_response_without_data_omits_key(self):
        from core.responses import api_response

        response = api_response("Deleted")

        assert response.data == {"success": True, "message": "Deleted"}

    def test_error_response_from_result(self):
        """Status comes from the error code; field errors are kept."""
        from core.responses import error_response

        result = ServiceResult.failure(
            "auth_user_id is required",
            "VALIDATION_ERROR",
            errors={"auth_user_id": ["auth_user_id is required"]},
        )

        response = error_response(result)

        assert response.status_code == 400
        assert response.data == {
            "success": False,
            "message": "auth_user_id is required",
            "error_code": "VALIDATION_ERROR",
            "errors": {"auth_user_id": ["auth_user_id is required"]},
        }

    def test_error_response_with_payload(self):
        from core.responses import error_response

        result = ServiceResult.failure("Failed to deliver notification: boom", "DELIVERY_FAILED")

        response = error_response(result, {"delivery_status": "failed"})

        assert response.status_code == 500
        assert response.data["data"] == {"delivery_status": "failed"}


class TestEnvelopeExceptionHandler:
    """
    Tests for envelope_exception_handler().

    Verifies:
    - Application errors use their error code
    - DRF validation errors promote the first message
    - Unhandled exceptions become a generic 500
    """

    def test_application_error(self):
        from core.responses import envelope_exception_handler

        response = envelope_exception_handler(NotFoundError("Template not found"), {})

        assert response.status_code == 404
        assert response.data == {
            "success": False,
            "message": "Template not found",
            "error_code": "NOT_FOUND",
        }

    def test_application_error_details_become_errors(self):
        from core.responses import envelope_exception_handler

        exc = ConflictError(
            "Template with this name already exists",
            details={"name": ["Template with this name already exists"]},
        )

        response = envelope_exception_handler(exc, {})

        assert response.status_code == 409
        assert response.data["errors"] == {"name": ["Template with this name already exists"]}
        assert "details" not in response.data

    def test_validation_error_first_message(self):
        from core.responses import envelope_exception_handler

        exc = drf_exceptions.ValidationError(
            {"email": ["Email is required for email notifications"], "type": ["Bad type"]}
        )

        response = envelope_exception_handler(exc, {})

        assert response.status_code == 400
        assert response.data["success"] is False
        assert response.data["message"] == "Email is required for email notifications"
        assert set(response.data["errors"]) == {"email", "type"}

    def test_non_field_detail_has_no_errors_key(self):
        from core.responses import envelope_exception_handler

        response = envelope_exception_handler(drf_exceptions.MethodNotAllowed("PATCH"), {})

        assert response.status_code == 405
        assert response.data == {"success": False, "message": 'Method "PATCH" not allowed.'}

    def test_unhandled_exception_is_generic_500(self):
        from core.responses import envelope_exception_handler

        response = envelope_exception_handler(RuntimeError("secret internals"), {})

        assert response.status_code == 500
        assert response.data == {"success": False, "message": "Internal server error"}


class TestServiceError:
    """Tests for service_error()."""

    @pytest.mark.parametrize(
        "error_code,exc_class,expected_status",
        [
            ("VALIDATION_ERROR", ValidationError, 400),
            ("NOT_FOUND", NotFoundError, 404),
            ("CONFLICT", ConflictError, 409),
            ("CONFIGURATION_ERROR", ConfigurationError, 500),
        ],
    )
    def test_error_code_selects_exception(self, error_code, exc_class, expected_status):
        from core.responses import envelope_exception_handler, service_error

        exc = service_error(ServiceResult.failure("Something went wrong", error_code))

        assert type(exc) is exc_class
        assert exc.error_code == error_code
        assert envelope_exception_handler(exc, {}).status_code == expected_status

    def test_field_errors_survive_the_handler(self):
        """The raised error renders the same envelope as error_response()."""
        from core.responses import envelope_exception_handler, error_response, service_error

        result = ServiceResult.failure(
            "auth_user_id is required",
            "VALIDATION_ERROR",
            errors={"auth_user_id": ["auth_user_id is required"]},
        )

        response = envelope_exception_handler(service_error(result), {})

        assert response.status_code == 400
        assert response.data == error_response(result).data

    def test_unknown_code_is_base_error(self):
        from core.responses import envelope_exception_handler, service_error

        result = ServiceResult.failure("Failed to deliver notification: boom", "DELIVERY_FAILED")

        exc = service_error(result)

        assert type(exc) is BaseApplicationError
        assert exc.error_code == "DELIVERY_FAILED"
        assert envelope_exception_handler(exc, {}).status_code == 500
