"""
Store data models.
"""

from portfolio.kernel.models.base import Base, CreatedAtMixin, TimestampMixin, generate_uuid, utcnow
from portfolio.kernel.models.user import User, RefreshToken, Profile
from portfolio.kernel.models.content import (
    Project,
    Article,
    ArticleCategory,
    DEFAULT_PROJECT_ICON,
    DEFAULT_READ_TIME,
)
from portfolio.kernel.models.comment import Comment

__all__ = [
    # Base
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Auth
    "User",
    "RefreshToken",
    "Profile",
    # Content
    "Project",
    "Article",
    "ArticleCategory",
    "DEFAULT_PROJECT_ICON",
    "DEFAULT_READ_TIME",
    "Comment",
]
