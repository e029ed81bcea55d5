"""
Typed operation results.

Core operations return ``Ok`` or ``Failure`` instead of raising. Store and auth
exceptions are translated here so callers only ever branch on ``ErrorKind``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Sequence, Tuple, TypeVar, Union

from portfolio.kernel.store.errors import (
    AuthApiError,
    InvalidCredentialsError,
    NotFoundError,
    SessionExpiredError,
    StoreError,
    StoreUnavailableError,
    UserAlreadyRegisteredError,
)

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation-error"
    FETCH = "fetch-error"
    STORE = "store-error"
    NOT_FOUND = "not-found"
    AUTH = "auth-error"


class AuthFailureReason(str, Enum):
    INVALID_CREDENTIALS = "invalid-credentials"
    ALREADY_REGISTERED = "already-registered"
    NETWORK_FAILURE = "network-failure"
    VALIDATION_FAILURE = "validation-failure"
    SESSION_EXPIRED = "session-expired"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    """
    A failed operation.

    ``errors`` is only populated for validation failures, in field order.
    ``reason`` narrows the kind: an AuthFailureReason for auth operations, the
    store error code for store failures.
    """
    kind: ErrorKind
    message: str
    errors: Tuple[FieldError, ...] = ()
    reason: Optional[str] = None
    ok: bool = field(default=False, init=False)

    def field_errors(self) -> dict:
        """First message per field, keyed by field name."""
        keyed: dict = {}
        for error in self.errors:
            keyed.setdefault(error.field, error.message)
        return keyed


Result = Union[Ok[T], Failure]


def validation_failure(errors: Sequence[FieldError]) -> Failure:
    return Failure(
        kind=ErrorKind.VALIDATION,
        message="Invalid input",
        errors=tuple(errors),
    )


def from_store_error(exc: StoreError, kind: ErrorKind = ErrorKind.STORE) -> Failure:
    """Translate a store exception; NotFoundError always maps to not-found."""
    if isinstance(exc, NotFoundError):
        kind = ErrorKind.NOT_FOUND
    return Failure(kind=kind, message=exc.message, reason=exc.code)


def from_auth_error(exc: Union[AuthApiError, StoreError]) -> Failure:
    """Translate an auth-subsystem exception into an auth failure."""
    if isinstance(exc, InvalidCredentialsError):
        reason = AuthFailureReason.INVALID_CREDENTIALS
    elif isinstance(exc, UserAlreadyRegisteredError):
        reason = AuthFailureReason.ALREADY_REGISTERED
    elif isinstance(exc, SessionExpiredError):
        reason = AuthFailureReason.SESSION_EXPIRED
    elif isinstance(exc, StoreUnavailableError):
        return Failure(
            kind=ErrorKind.STORE,
            message=exc.message,
            reason=AuthFailureReason.NETWORK_FAILURE.value,
        )
    elif isinstance(exc, StoreError):
        return from_store_error(exc)
    else:
        reason = None
    return Failure(
        kind=ErrorKind.AUTH,
        message=exc.message,
        reason=reason.value if reason else exc.code,
    )
