"""
Portfolio content models - projects and articles.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from portfolio.kernel.models.comment import Comment


DEFAULT_PROJECT_ICON = "📁"
DEFAULT_READ_TIME = "5 min"


class ArticleCategory(str, Enum):
    """Fixed set of article categories."""
    DEVELOPMENT = "Desenvolvimento"
    DEVOPS = "DevOps"
    FRONTEND = "Frontend"
    BACKEND = "Backend"
    MOBILE = "Mobile"
    AI = "IA"
    CAREER = "Carreira"
    GENERAL = "Geral"


class Project(Base, TimestampMixin):
    """A showcased project."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # text[] on PostgreSQL; JSON keeps SQLite working too
    technologies: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    icon: Mapped[str] = mapped_column(
        Text,
        default=DEFAULT_PROJECT_ICON,
        nullable=False,
    )
    demo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    repo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
    )
    is_published: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Project {self.title[:50]}>"


class Article(Base, TimestampMixin):
    """An article, optionally linking to an external post."""

    __tablename__ = "articles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(
        Text,
        default=ArticleCategory.GENERAL.value,
        nullable=False,
    )
    read_time: Mapped[str] = mapped_column(
        Text,
        default=DEFAULT_READ_TIME,
        nullable=False,
    )
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
    )

    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Article {self.title[:50]}>"
