"""
Public article comments. Rows are immutable: created or deleted, never edited.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio.kernel.models.base import Base, CreatedAtMixin, generate_uuid

if TYPE_CHECKING:
    from portfolio.kernel.models.content import Article


class Comment(Base, CreatedAtMixin):
    """A visitor comment on an article."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_name: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    article: Mapped["Article"] = relationship("Article", back_populates="comments")

    def __repr__(self) -> str:
        return f"<Comment {self.id} article={self.article_id}>"
