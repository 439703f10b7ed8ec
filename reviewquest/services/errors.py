"""
Service layer exceptions.

Every failure that crosses the service boundary is normalized into a
ClassifiedError carrying a symbolic code, an optional HTTP status and a
retryable flag fixed at construction time.
"""

from enum import Enum
from typing import Any

import httpx


class ErrorCode(str, Enum):
    """Symbolic failure categories."""

    FETCH_ERROR = "FETCH_ERROR"  # No response was obtained
    HTTP_ERROR = "HTTP_ERROR"  # Non-2xx response
    CREATE_ERROR = "CREATE_ERROR"
    UPDATE_ERROR = "UPDATE_ERROR"
    DELETE_ERROR = "DELETE_ERROR"
    CANCELLED_ERROR = "CANCELLED_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"

# Lowercased substrings that identify a transport-level failure
NETWORK_ERROR_SIGNATURES = (
    "network",
    "fetch",
    "timeout",
    "timed out",
    "connection refused",
    "connecterror",
    "aborted",
)


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class ClassifiedError(ServiceError):
    """
    A failure normalized into a code/status/retryable triple.

    Instances are immutable: all fields are exposed as read-only properties.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.UNKNOWN_ERROR,
        status: int | None = None,
        retryable: bool = False,
        service_id: str | None = None,
    ):
        self._message = message
        self._code = _coerce_code(code)
        self._status = status
        self._retryable = retryable
        super().__init__(message, service_id=service_id)

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> ErrorCode | str:
        return self._code

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def should_retry(self) -> bool:
        """Whether the caller should retry the failed operation."""
        return self._retryable

    @property
    def is_network_error(self) -> bool:
        """True for transport failures and 5xx responses."""
        return self._code == ErrorCode.FETCH_ERROR or (
            self._status is not None and self._status >= 500
        )

    @property
    def is_auth_error(self) -> bool:
        return self._status in (401, 403)

    def __repr__(self) -> str:
        code = getattr(self._code, "value", self._code)
        return (
            f"{type(self).__name__}(message={self._message!r}, code={code!r}, "
            f"status={self._status!r}, retryable={self._retryable!r})"
        )

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        message: str | None = None,
        code: ErrorCode | str = ErrorCode.HTTP_ERROR,
        service_id: str | None = None,
    ) -> "ClassifiedError":
        """
        Classify a non-2xx HTTP response.

        Args:
            response: The received response
            message: Explicit message; takes precedence over the response body
            code: Failure code, HTTP_ERROR unless an operation code is layered on
            service_id: Identifier of the calling service

        Returns:
            ClassifiedError retryable for 5xx and 429 statuses only
        """
        status = response.status_code
        text = (
            message
            or extract_error_message(response)
            or f"Request failed with status {status}"
        )
        return cls(
            text,
            code=code,
            status=status,
            retryable=is_retryable_status(status),
            service_id=service_id,
        )

    @classmethod
    def from_error(
        cls,
        error: Any,
        fallback_message: str = DEFAULT_ERROR_MESSAGE,
        service_id: str | None = None,
    ) -> "ClassifiedError":
        """
        Classify an arbitrary raised value. Never raises.

        Already classified errors are returned unchanged. Transport failures
        become retryable FETCH_ERRORs; anything else is an UNKNOWN_ERROR.
        """
        if isinstance(error, ClassifiedError):
            return error

        message = _extract_message(error)

        if _is_transport_failure(error, message):
            return cls(
                message or "Network request failed",
                code=ErrorCode.FETCH_ERROR,
                retryable=True,
                service_id=service_id,
            )

        return cls(
            message or fallback_message,
            code=ErrorCode.UNKNOWN_ERROR,
            retryable=False,
            service_id=service_id,
        )


class RequestCancelledError(ClassifiedError):
    """The caller cancelled the operation; never retried."""

    def __init__(
        self,
        message: str = "Request was cancelled",
        service_id: str | None = None,
    ):
        super().__init__(
            message,
            code=ErrorCode.CANCELLED_ERROR,
            retryable=False,
            service_id=service_id,
        )


def is_retryable_status(status: int) -> bool:
    """5xx and 429 are transient; every other status is final."""
    return status >= 500 or status == 429


def extract_error_message(response: httpx.Response) -> str | None:
    """Read the ``{"error": "..."}`` field from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return None


def _coerce_code(code: ErrorCode | str) -> ErrorCode | str:
    try:
        return ErrorCode(code)
    except ValueError:
        return code


def _extract_message(error: Any) -> str | None:
    if isinstance(error, BaseException):
        return str(error) or None

    if isinstance(error, dict):
        message = error.get("message")
    else:
        message = getattr(error, "message", None)

    return message if isinstance(message, str) and message else None


def _is_transport_failure(error: Any, message: str | None) -> bool:
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return True
    if not message:
        return False
    lowered = message.lower()
    return any(signature in lowered for signature in NETWORK_ERROR_SIGNATURES)
