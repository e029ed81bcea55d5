"""
Declarative base, timestamp mixins and default factories shared by every table.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, MetaData, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Stable constraint names, so migrations can refer to them
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    type_annotation_map = {uuid.UUID: Uuid()}


def _stamp(**kwargs) -> Mapped[datetime]:
    # Python-side default keeps sub-second ordering on SQLite
    return mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, **kwargs
    )


class CreatedAtMixin:
    """Rows that are written once (comments, refresh tokens)."""

    created_at: Mapped[datetime] = _stamp()


class TimestampMixin(CreatedAtMixin):
    """Editable rows; ``updated_at`` moves on every ORM update."""

    updated_at: Mapped[datetime] = _stamp(onupdate=utcnow)
