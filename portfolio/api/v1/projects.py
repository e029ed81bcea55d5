"""
Public project endpoints.
"""

from typing import List

from fastapi import APIRouter

from portfolio.api.deps import Store
from portfolio.api.errors import unwrap
from portfolio.core.public import PublicContent
from portfolio.schemas.content import ProjectRecord

router = APIRouter()


@router.get("", response_model=List[ProjectRecord])
async def list_projects(store: Store):
    """Published projects by sort order."""
    return unwrap(await PublicContent(store).projects())
