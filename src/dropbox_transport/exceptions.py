"""Structured exception classes for the Dropbox transport core."""

import json
from typing import Any, Dict, Optional


class DbxError(Exception):
    """Base exception for all failures raised by the transport core.

    Every failure carries a human-readable message and, when the server
    supplied one, the request id from the ``X-Dropbox-Request-Id``
    header so the failure can be correlated with server-side logs.

    :param request_id: Request id reported by the server, if any
    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        request_id: Optional[str],
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with request id, message, code and details."""
        super().__init__(message)
        self.request_id = request_id
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self) -> str:
        if self.request_id:
            return f"{self.message} (request id: {self.request_id})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, request id and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict())


class BadRequestError(DbxError):
    """Raised when the server rejects the request as malformed (HTTP 400)."""

    def __init__(self, request_id: Optional[str], message: str):
        super().__init__(request_id, message, code="BAD_REQUEST")


class InvalidAccessTokenError(DbxError):
    """Raised when the access token is invalid, expired or revoked (HTTP 401)."""

    def __init__(self, request_id: Optional[str], message: str):
        super().__init__(request_id, message, code="INVALID_ACCESS_TOKEN")


class RetryError(DbxError):
    """Raised when the server asks the client to try again (HTTP 503).

    The retry loop waits ``backoff`` seconds before the next attempt.
    A plain 503 carries no wait hint, so the backoff is zero and the
    request is retried immediately.

    :param request_id: Request id reported by the server, if any
    :param message: Description of the failure
    :param backoff: Seconds to wait before retrying
    """

    def __init__(
        self,
        request_id: Optional[str],
        message: str,
        backoff: float = 0,
        code: str = "RETRY",
    ):
        """Initialize retry error with message and backoff."""
        if backoff < 0:
            raise ValueError(f"'backoff' must be non-negative, got {backoff}")
        super().__init__(request_id, message, code=code, details={"backoff": backoff})
        self.backoff = backoff


class RateLimitError(RetryError):
    """Raised when the caller is being rate limited (HTTP 429).

    The backoff comes from the ``Retry-After`` response header and is
    used verbatim by the retry loop.

    :param request_id: Request id reported by the server, if any
    :param message: Description of the rate limit error
    :param backoff: Seconds to wait before retrying, from ``Retry-After``
    """

    def __init__(self, request_id: Optional[str], message: str, backoff: float):
        """Initialize rate limit error with message and server-directed backoff."""
        super().__init__(request_id, message, backoff=backoff, code="RATE_LIMIT")


class ServerError(DbxError):
    """Raised when the server reports an internal error (HTTP 500)."""

    def __init__(self, request_id: Optional[str], message: str):
        super().__init__(request_id, message, code="SERVER_ERROR")


class BadResponseError(DbxError):
    """Raised when the server's response cannot be understood.

    Covers malformed bodies, missing or invalid headers, and decode
    failures of otherwise successful responses.
    """

    def __init__(self, request_id: Optional[str], message: str):
        super().__init__(request_id, message, code="BAD_RESPONSE")


class BadResponseCodeError(DbxError):
    """Raised for an HTTP status code the client has no specific handling for.

    :param request_id: Request id reported by the server, if any
    :param message: Description including the status code and error body
    :param status_code: The raw HTTP status code
    """

    def __init__(self, request_id: Optional[str], message: str, status_code: int):
        """Initialize with message and the unexpected status code."""
        super().__init__(
            request_id,
            message,
            code="BAD_RESPONSE_CODE",
            details={"status_code": status_code},
        )
        self.status_code = status_code


class NetworkIOError(DbxError):
    """Raised when the transport fails while sending or receiving.

    The underlying ``OSError`` is chained as ``__cause__`` and kept on
    ``original_error``.

    :param original_error: The I/O error raised by the transport
    """

    def __init__(self, original_error: BaseException):
        """Initialize network error from the transport's I/O error."""
        super().__init__(
            None,
            f"network I/O failure: {original_error}",
            code="NETWORK_IO",
            details={"error_type": type(original_error).__name__},
        )
        self.original_error = original_error
