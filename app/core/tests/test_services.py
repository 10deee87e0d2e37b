"""
Tests for the base service layer.

Covers:
- ServiceResult construction and API response format
- BaseService logger naming and transaction helper
"""

import pytest
from django.contrib.auth import get_user_model

from core.services import BaseService, ServiceResult


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"id": 1})

        assert result.success
        assert result
        assert result.data == {"id": 1}
        assert result.error is None
        assert result.retryable is False

    def test_failure(self):
        result = ServiceResult.failure("Conversation not found", error_code="NOT_FOUND")

        assert not result.success
        assert not result
        assert result.data is None
        assert result.error_code == "NOT_FOUND"

    def test_success_response(self):
        assert ServiceResult.success(3).to_response() == {"success": True, "data": 3}

    def test_failure_response(self):
        result = ServiceResult.failure(
            "Message could not be stored, please retry",
            error_code="TRANSIENT",
            retryable=True,
        )

        assert result.to_response() == {
            "success": False,
            "error": "Message could not be stored, please retry",
            "error_code": "TRANSIENT",
            "retryable": True,
        }

    def test_failure_response_omits_empty_fields(self):
        response = ServiceResult.failure("Nope").to_response()

        assert response == {"success": False, "error": "Nope"}

    def test_field_errors_included(self):
        result = ServiceResult.failure(
            "Invalid payload",
            error_code="INVALID_PAYLOAD",
            errors={"body": ["This field is required."]},
        )

        assert result.to_response()["errors"] == {"body": ["This field is required."]}


class ExampleService(BaseService):
    pass


class TestBaseService:
    def test_logger_named_after_service(self):
        assert ExampleService.get_logger().name == (
            "core.tests.test_services.ExampleService"
        )

    @pytest.mark.django_db
    def test_atomic_rolls_back_on_error(self):
        User = get_user_model()

        with pytest.raises(RuntimeError):
            with ExampleService.atomic():
                User.objects.create_user(email="temp@example.com", password="x")
                raise RuntimeError("boom")

        assert not User.objects.filter(email="temp@example.com").exists()
