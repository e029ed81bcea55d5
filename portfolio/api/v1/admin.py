"""
Management endpoints for projects, articles and comments.

Every route sits behind the authorization gate; writes are additionally
checked by the store's row policies.
"""

import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Response, status

from portfolio.api.deps import Articles, GatedIdentity, Projects, Store
from portfolio.api.errors import unwrap
from portfolio.core.comments import delete_comment
from portfolio.schemas.content import ArticleRecord, ProjectRecord

router = APIRouter()

FormData = Dict[str, Any]


# Projects

@router.get("/projects", response_model=List[ProjectRecord])
async def list_projects(projects: Projects):
    return unwrap(await projects.list())


@router.post("/projects", response_model=ProjectRecord, status_code=status.HTTP_201_CREATED)
async def create_project(projects: Projects, data: FormData = Body(...)):
    """Technologies may be sent as comma-separated text or as a list."""
    return unwrap(await projects.create(data))


@router.get("/projects/{project_id}", response_model=ProjectRecord)
async def get_project(project_id: uuid.UUID, projects: Projects):
    return unwrap(await projects.get(project_id))


@router.patch("/projects/{project_id}", response_model=ProjectRecord)
async def update_project(project_id: uuid.UUID, projects: Projects, data: FormData = Body(...)):
    return unwrap(await projects.update(project_id, data))


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: uuid.UUID, projects: Projects):
    unwrap(await projects.delete(project_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Articles

@router.get("/articles", response_model=List[ArticleRecord])
async def list_articles(articles: Articles):
    return unwrap(await articles.list())


@router.post("/articles", response_model=ArticleRecord, status_code=status.HTTP_201_CREATED)
async def create_article(articles: Articles, data: FormData = Body(...)):
    return unwrap(await articles.create(data))


@router.get("/articles/{article_id}", response_model=ArticleRecord)
async def get_article(article_id: uuid.UUID, articles: Articles):
    return unwrap(await articles.get(article_id))


@router.patch("/articles/{article_id}", response_model=ArticleRecord)
async def update_article(article_id: uuid.UUID, articles: Articles, data: FormData = Body(...)):
    return unwrap(await articles.update(article_id, data))


@router.delete("/articles/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(article_id: uuid.UUID, articles: Articles):
    """Deletes the article's comments as well."""
    unwrap(await articles.delete(article_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Comments

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_comment(comment_id: uuid.UUID, store: Store, _: GatedIdentity):
    unwrap(await delete_comment(store, comment_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
