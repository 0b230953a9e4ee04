"""Tests for the shared error taxonomy."""

from __future__ import annotations

import pytest

from searchbridge.adapters.base.exceptions import (
    BackendError,
    BadRequestError,
    ConflictError,
    ConnectionError,
    ErrorKind,
    ForbiddenError,
    IndexNotFoundError,
    InvalidQueryError,
    NotFoundError,
    RequestTimeoutError,
    SearchError,
    TaskCanceledError,
    TaskFailedError,
    UnauthorizedError,
)


@pytest.mark.parametrize(
    ("exc_class", "kind"),
    [
        (NotFoundError, ErrorKind.NOT_FOUND),
        (IndexNotFoundError, ErrorKind.INDEX_NOT_FOUND),
        (InvalidQueryError, ErrorKind.INVALID_QUERY),
        (ConnectionError, ErrorKind.CONNECTION),
        (RequestTimeoutError, ErrorKind.TIMEOUT),
        (ConflictError, ErrorKind.CONFLICT),
        (BadRequestError, ErrorKind.BAD_REQUEST),
        (UnauthorizedError, ErrorKind.UNAUTHORIZED),
        (ForbiddenError, ErrorKind.FORBIDDEN),
        (BackendError, ErrorKind.BACKEND),
    ],
)
def test_kinds(exc_class: type[SearchError], kind: ErrorKind) -> None:
    err = exc_class()
    assert err.kind is kind
    assert isinstance(err, SearchError)
    assert str(err).startswith("search: ")


def test_only_transport_failures_are_retryable() -> None:
    assert ConnectionError.retryable
    assert RequestTimeoutError.retryable
    assert not InvalidQueryError.retryable
    assert not NotFoundError.retryable


def test_diagnostics_are_kept() -> None:
    err = BackendError("search: circuit_breaking_exception: too much", status=429, error_type="cbe", reason="too much")
    assert (err.status, err.error_type, err.reason) == (429, "cbe", "too much")
    assert str(err) == "search: circuit_breaking_exception: too much"


def test_default_messages() -> None:
    assert str(NotFoundError()) == "search: document not found"
    assert str(IndexNotFoundError()) == "search: index not found"
    assert str(ConflictError()) == "search: version conflict"
    assert str(TaskCanceledError()) == "search: task was canceled"


def test_task_errors_are_backend_errors() -> None:
    assert issubclass(TaskFailedError, BackendError)
    assert TaskFailedError().kind is ErrorKind.BACKEND
