"""Tests for error classification."""

import httpx
import pytest

from reviewquest.services.errors import (
    ClassifiedError,
    ErrorCode,
    RequestCancelledError,
    ServiceError,
    extract_error_message,
    is_retryable_status,
)


class TestClassifiedError:
    """Tests for ClassifiedError properties."""

    def test_properties(self) -> None:
        error = ClassifiedError("Test error", "HTTP_ERROR", 500, True)

        assert error.message == "Test error"
        assert str(error) == "Test error"
        assert error.code == ErrorCode.HTTP_ERROR
        assert error.code == "HTTP_ERROR"
        assert error.status == 500
        assert error.retryable is True
        assert isinstance(error, ServiceError)

    def test_unknown_code_is_kept_verbatim(self) -> None:
        error = ClassifiedError("Custom", "TEST_CODE")
        assert error.code == "TEST_CODE"

    def test_should_retry_mirrors_retryable(self) -> None:
        assert ClassifiedError("Server error", "HTTP_ERROR", 500, True).should_retry
        assert not ClassifiedError("Bad request", "HTTP_ERROR", 400, False).should_retry

    def test_network_error_detection(self) -> None:
        assert ClassifiedError("Network error", "FETCH_ERROR").is_network_error
        assert ClassifiedError("Server error", "HTTP_ERROR", 500).is_network_error
        assert not ClassifiedError("Bad request", "HTTP_ERROR", 400).is_network_error
        assert not ClassifiedError("Oops", "UNKNOWN_ERROR").is_network_error

    def test_auth_error_detection(self) -> None:
        assert ClassifiedError("Unauthorized", "HTTP_ERROR", 401).is_auth_error
        assert ClassifiedError("Forbidden", "HTTP_ERROR", 403).is_auth_error
        assert not ClassifiedError("Server error", "HTTP_ERROR", 500).is_auth_error
        assert not ClassifiedError("Network", "FETCH_ERROR").is_auth_error

    def test_fields_are_read_only(self) -> None:
        error = ClassifiedError("Bad request", "HTTP_ERROR", 400, False)
        with pytest.raises(AttributeError):
            error.retryable = True  # type: ignore[misc]
        assert error.retryable is False

    def test_cancelled_error(self) -> None:
        error = RequestCancelledError()
        assert error.code == ErrorCode.CANCELLED_ERROR
        assert error.retryable is False


class TestFromResponse:
    """Tests for classifying HTTP responses."""

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 429])
    def test_transient_statuses_are_retryable(self, status: int) -> None:
        error = ClassifiedError.from_response(httpx.Response(status))
        assert error.retryable is True
        assert error.code == ErrorCode.HTTP_ERROR
        assert error.status == status

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 408, 422])
    def test_client_statuses_are_final(self, status: int) -> None:
        assert ClassifiedError.from_response(httpx.Response(status)).retryable is False

    def test_explicit_message_wins(self) -> None:
        response = httpx.Response(500, json={"error": "Database down"})
        error = ClassifiedError.from_response(response, "Custom message")
        assert error.message == "Custom message"

    def test_message_read_from_error_body(self) -> None:
        response = httpx.Response(400, json={"error": "Title is required"})
        assert ClassifiedError.from_response(response).message == "Title is required"

    def test_message_falls_back_to_status(self) -> None:
        error = ClassifiedError.from_response(httpx.Response(503, text="<html>"))
        assert error.message == "Request failed with status 503"

    def test_operation_code_can_be_layered(self) -> None:
        error = ClassifiedError.from_response(
            httpx.Response(404), code=ErrorCode.DELETE_ERROR
        )
        assert error.code == ErrorCode.DELETE_ERROR
        assert error.status == 404


class TestFromError:
    """Tests for classifying raised values."""

    @pytest.mark.parametrize(
        "message",
        ["fetch failed", "Network error", "Request TIMEOUT", "NetworkError when attempting"],
    )
    def test_network_messages_become_fetch_errors(self, message: str) -> None:
        error = ClassifiedError.from_error(RuntimeError(message))
        assert error.code == ErrorCode.FETCH_ERROR
        assert error.retryable is True
        assert error.message == message

    def test_transport_exceptions_become_fetch_errors(self) -> None:
        for raw in (
            httpx.ConnectError("[Errno 111] Connection refused"),
            httpx.ReadTimeout("read"),
            ConnectionResetError(),
            TimeoutError(),
        ):
            error = ClassifiedError.from_error(raw)
            assert error.code == ErrorCode.FETCH_ERROR
            assert error.retryable is True
            assert error.message

    def test_other_exceptions_are_unknown(self) -> None:
        error = ClassifiedError.from_error(ValueError("JavaScript error"))
        assert error.message == "JavaScript error"
        assert error.code == ErrorCode.UNKNOWN_ERROR
        assert error.retryable is False

    def test_classified_error_is_returned_unchanged(self) -> None:
        original = ClassifiedError("Bad request", "HTTP_ERROR", 400)
        assert ClassifiedError.from_error(original) is original

    @pytest.mark.parametrize("raw", [None, "boom", 42, object(), {}])
    def test_non_exceptions_use_fallback(self, raw: object) -> None:
        error = ClassifiedError.from_error(raw)
        assert error.code == ErrorCode.UNKNOWN_ERROR
        assert error.retryable is False
        assert error.message == "An unexpected error occurred"

    def test_message_extracted_from_plain_objects(self) -> None:
        assert ClassifiedError.from_error({"message": "Unknown error"}).message == (
            "Unknown error"
        )

        class Thing:
            message = "network unreachable"

        error = ClassifiedError.from_error(Thing())
        assert error.code == ErrorCode.FETCH_ERROR


class TestHelpers:
    def test_is_retryable_status(self) -> None:
        assert is_retryable_status(429)
        assert is_retryable_status(599)
        assert not is_retryable_status(404)

    def test_extract_error_message(self) -> None:
        assert extract_error_message(httpx.Response(400, json={"error": "Nope"})) == "Nope"
        assert extract_error_message(httpx.Response(400, json={"detail": "x"})) is None
        assert extract_error_message(httpx.Response(400, json=["error"])) is None
        assert extract_error_message(httpx.Response(500)) is None
