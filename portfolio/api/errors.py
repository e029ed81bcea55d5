"""
Mapping of core failures and store errors to HTTP responses.
"""

from typing import TypeVar

from fastapi import status

from portfolio.core.results import AuthFailureReason, ErrorKind, Failure, Result
from portfolio.kernel.store.errors import PermissionDeniedError, StoreError, StoreUnavailableError

T = TypeVar("T")


class FailureResponse(Exception):
    """Raised by routes to turn a Failure into an error response."""

    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure


def failure_status(failure: Failure) -> int:
    if failure.kind == ErrorKind.VALIDATION:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if failure.kind == ErrorKind.NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if failure.kind == ErrorKind.AUTH:
        if failure.reason == AuthFailureReason.ALREADY_REGISTERED.value:
            return status.HTTP_409_CONFLICT
        return status.HTTP_401_UNAUTHORIZED
    if failure.reason == PermissionDeniedError.code:
        return status.HTTP_403_FORBIDDEN
    if failure.reason in (StoreUnavailableError.code, AuthFailureReason.NETWORK_FAILURE.value):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def store_error_status(exc: StoreError) -> int:
    if isinstance(exc, StoreUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def unwrap(result: Result[T]) -> T:
    """Value of an Ok result; a Failure is raised as FailureResponse."""
    if not result.ok:
        raise FailureResponse(result)
    return result.value
