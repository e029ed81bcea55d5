"""
Content record schemas.

Records are the projections the core caches and the API returns. Timestamps
are always timezone-aware UTC, whatever the database driver hands back.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class ProjectRecord(BaseModel):
    """Project as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    technologies: List[str]
    icon: str
    demo_url: Optional[str] = None
    repo_url: Optional[str] = None
    sort_order: int
    is_published: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ArticleRecord(BaseModel):
    """Article as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    excerpt: str
    content: Optional[str] = None
    category: str
    read_time: str
    url: Optional[str] = None
    is_published: bool
    sort_order: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


class CommentRecord(BaseModel):
    """Comment as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    article_id: uuid.UUID
    author_name: str
    content: str
    created_at: UtcDatetime


class CommentCreate(BaseModel):
    """Comment submission request. Checked by the comment validator, not here."""

    author_name: Optional[str] = None
    content: Optional[str] = None
