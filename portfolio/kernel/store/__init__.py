"""
Persistent store: tables under row policies, change feed and auth.
"""

from portfolio.kernel.store.auth import AuthClient, AuthEvent, AuthSession, AuthUser
from portfolio.kernel.store.changes import ChangeEvent, ChangeFeed, ChangeType, Subscription
from portfolio.kernel.store.client import StoreClient, TableClient, row_to_dict
from portfolio.kernel.store.errors import (
    AuthApiError,
    ConstraintError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    SessionExpiredError,
    StoreError,
    StoreUnavailableError,
    UserAlreadyRegisteredError,
)
from portfolio.kernel.store.policy import ANONYMOUS, TABLES, Actor, Operation, RowPolicy

__all__ = [
    "ANONYMOUS",
    "Actor",
    "Operation",
    "RowPolicy",
    "TABLES",
    "AuthApiError",
    "AuthClient",
    "AuthEvent",
    "AuthSession",
    "AuthUser",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeType",
    "ConstraintError",
    "InvalidCredentialsError",
    "NotFoundError",
    "PermissionDeniedError",
    "SessionExpiredError",
    "StoreClient",
    "StoreError",
    "StoreUnavailableError",
    "Subscription",
    "TableClient",
    "UserAlreadyRegisteredError",
    "row_to_dict",
]
