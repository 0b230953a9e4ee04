"""Adapter-specific exceptions — the shared search error taxonomy.

Every backend maps its native failures onto one of the classes below, so
callers can branch on the exception type (or on ``kind``) without knowing
which engine is configured. Backend diagnostic text is kept in the message
and in ``error_type`` / ``reason`` for logging only.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Taxonomy kinds shared by all backends."""

    NOT_FOUND = "not_found"
    INDEX_NOT_FOUND = "index_not_found"
    INVALID_QUERY = "invalid_query"
    CONNECTION = "connection_error"
    TIMEOUT = "timeout"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BACKEND = "backend_error"


class SearchError(Exception):
    """Base exception for search adapter errors.

    Attributes:
        status: HTTP status code reported by the backend, when known.
        error_type: Native error type/code string, when the backend sent one.
        reason: Native error reason/message, when the backend sent one.
    """

    kind: ErrorKind = ErrorKind.BACKEND
    retryable: bool = False

    def __init__(
        self,
        message: str = "",
        *,
        status: int | None = None,
        error_type: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message or self.default_message())
        self.status = status
        self.error_type = error_type
        self.reason = reason

    @classmethod
    def default_message(cls) -> str:
        return f"search: {cls.kind.value.replace('_', ' ')}"


class NotFoundError(SearchError):
    """Raised when a requested document does not exist."""

    kind = ErrorKind.NOT_FOUND

    @classmethod
    def default_message(cls) -> str:
        return "search: document not found"


class IndexNotFoundError(SearchError):
    """Raised when the target index does not exist."""

    kind = ErrorKind.INDEX_NOT_FOUND


class InvalidQueryError(SearchError):
    """Raised when the backend rejects a query, or a query cannot be translated."""

    kind = ErrorKind.INVALID_QUERY


class ConnectionError(SearchError):
    """Raised when the adapter cannot reach the search backend."""

    kind = ErrorKind.CONNECTION
    retryable = True


class RequestTimeoutError(SearchError):
    """Raised when an operation times out."""

    kind = ErrorKind.TIMEOUT
    retryable = True

    @classmethod
    def default_message(cls) -> str:
        return "search: operation timed out"


class ConflictError(SearchError):
    """Raised on a version conflict."""

    kind = ErrorKind.CONFLICT

    @classmethod
    def default_message(cls) -> str:
        return "search: version conflict"


class BadRequestError(SearchError):
    """Raised when the backend answers 400 without a more specific error."""

    kind = ErrorKind.BAD_REQUEST


class UnauthorizedError(SearchError):
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(SearchError):
    kind = ErrorKind.FORBIDDEN


class BackendError(SearchError):
    """Raised for backend errors with no specific taxonomy mapping."""

    kind = ErrorKind.BACKEND


class TaskFailedError(BackendError):
    """Raised when an asynchronous backend task ends in ``failed``."""


class TaskCanceledError(BackendError):
    """Raised when an asynchronous backend task ends in ``canceled``."""

    @classmethod
    def default_message(cls) -> str:
        return "search: task was canceled"


class ConfigurationError(SearchError):
    """Raised when adapter configuration is invalid."""
