"""
API v1 routes.
"""

from fastapi import APIRouter

from portfolio.api.v1 import admin, articles, auth, comments, projects

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
# Comments before articles so /articles/{id}/comments is not shadowed
router.include_router(comments.router, tags=["Comments"])
router.include_router(articles.router, prefix="/articles", tags=["Articles"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
