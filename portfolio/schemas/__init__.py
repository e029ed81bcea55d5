"""
Pydantic schemas for API requests and responses.
"""

from portfolio.schemas.auth import Credentials, IdentityResponse, RefreshRequest, SessionResponse
from portfolio.schemas.common import ErrorResponse, FieldErrorResponse, HealthResponse
from portfolio.schemas.content import (
    ArticleRecord,
    CommentCreate,
    CommentRecord,
    ProjectRecord,
)

__all__ = [
    "ArticleRecord",
    "CommentCreate",
    "CommentRecord",
    "Credentials",
    "ErrorResponse",
    "FieldErrorResponse",
    "HealthResponse",
    "IdentityResponse",
    "ProjectRecord",
    "RefreshRequest",
    "SessionResponse",
]
