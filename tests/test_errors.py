"""
Unit tests for error types.
"""

from developer_helper.circuit_breaker import CircuitBreakerOpenError
from developer_helper.errors import (
    DeveloperHelperError,
    EntityValidationError,
    HttpRequestError,
    InvalidArgumentError,
    SecretNotFoundError,
    ServiceUnavailableError,
    StorageFailureError,
)
from developer_helper.logging import clear_context, set_correlation_id


class TestErrors:
    """Test cases for error codes and responses."""

    def test_codes(self):
        assert InvalidArgumentError().code == "INVALID_ARGUMENT"
        assert StorageFailureError().code == "STORAGE_FAILURE"
        assert ServiceUnavailableError().code == "SERVICE_UNAVAILABLE"
        assert SecretNotFoundError("db").message == "Secret 'db' was not found"

    def test_invalid_argument_is_value_error(self):
        assert isinstance(InvalidArgumentError("bad"), ValueError)
        assert isinstance(EntityValidationError("bad"), ValueError)
        assert EntityValidationError().code == "VALIDATION_ERROR"

    def test_http_error_carries_status(self):
        error = HttpRequestError("failed", status_code=503, details={"url": "http://x"})
        assert error.status_code == 503
        assert error.details == {"url": "http://x", "status_code": 503}

    def test_circuit_open_is_service_unavailable(self):
        error = CircuitBreakerOpenError("payments")
        assert isinstance(error, ServiceUnavailableError)
        assert error.details == {"circuit_breaker": "payments"}

    def test_to_response_includes_correlation_id(self):
        set_correlation_id("corr-1")
        try:
            response = StorageFailureError("down", details={"key": "a"}).to_response()
        finally:
            clear_context()

        assert response.model_dump() == {
            "code": "STORAGE_FAILURE",
            "message": "down",
            "details": {"key": "a"},
            "correlation_id": "corr-1",
        }

    def test_base_error_str(self):
        assert str(DeveloperHelperError("X", "message")) == "message"
