"""
Public article endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter

from portfolio.api.deps import Store
from portfolio.api.errors import unwrap
from portfolio.core.public import PublicContent
from portfolio.schemas.content import ArticleRecord

router = APIRouter()


@router.get("", response_model=List[ArticleRecord])
async def list_articles(store: Store):
    """Published articles by sort order."""
    return unwrap(await PublicContent(store).articles())


@router.get("/{article_id}", response_model=ArticleRecord)
async def get_article(article_id: uuid.UUID, store: Store):
    return unwrap(await PublicContent(store).article(article_id))
