"""
Errors raised by the store and its auth subsystem.
"""

from typing import Optional


class StoreError(Exception):
    """A request to the store failed."""

    code = "store_error"

    def __init__(self, message: str, *, table: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.table = table


class StoreUnavailableError(StoreError):
    """The store could not be reached."""

    code = "unavailable"


class PermissionDeniedError(StoreError):
    """A row policy rejected the request for the acting identity."""

    code = "permission_denied"


class NotFoundError(StoreError):
    """The row does not exist or is not visible to the acting identity."""

    code = "not_found"


class ConstraintError(StoreError):
    """The row violates a table constraint."""

    code = "constraint_violation"


class AuthApiError(Exception):
    """An auth request was rejected."""

    code = "auth_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(AuthApiError):
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid login credentials"):
        super().__init__(message)


class UserAlreadyRegisteredError(AuthApiError):
    code = "already_registered"

    def __init__(self, message: str = "User already registered"):
        super().__init__(message)


class SessionExpiredError(AuthApiError):
    code = "session_expired"

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)
