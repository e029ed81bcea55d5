"""
Read-only views for visitors: published projects and articles.
"""

from typing import Any, List

from portfolio.core.repository import LIST_ORDER
from portfolio.core.results import ErrorKind, Failure, Ok, Result, from_store_error
from portfolio.kernel.store import StoreClient, StoreError
from portfolio.logging_config import get_logger
from portfolio.schemas.content import ArticleRecord, ProjectRecord

logger = get_logger(__name__)

_PUBLISHED = {"is_published": True}


class PublicContent:
    def __init__(self, store: StoreClient):
        self._projects = store.table("projects")
        self._articles = store.table("articles")

    async def projects(self) -> Result[List[ProjectRecord]]:
        try:
            rows = await self._projects.select(filters=_PUBLISHED, order=LIST_ORDER)
        except StoreError as exc:
            logger.warning("Listing published projects failed: %s", exc.code)
            return from_store_error(exc, ErrorKind.FETCH)
        return Ok([ProjectRecord.model_validate(row) for row in rows])

    async def articles(self) -> Result[List[ArticleRecord]]:
        try:
            rows = await self._articles.select(filters=_PUBLISHED, order=LIST_ORDER)
        except StoreError as exc:
            logger.warning("Listing published articles failed: %s", exc.code)
            return from_store_error(exc, ErrorKind.FETCH)
        return Ok([ArticleRecord.model_validate(row) for row in rows])

    async def article(self, article_id: Any) -> Result[ArticleRecord]:
        """A published article; unpublished and missing ones are both not-found."""
        try:
            row = await self._articles.get(article_id)
        except StoreError as exc:
            logger.warning("Fetching article %s failed: %s", article_id, exc.code)
            return from_store_error(exc, ErrorKind.FETCH)
        if row is None or not row["is_published"]:
            return Failure(kind=ErrorKind.NOT_FOUND, message="Article not found")
        return Ok(ArticleRecord.model_validate(row))
