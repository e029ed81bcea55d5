"""Unit tests for the content repositories against the store."""

import uuid

import pytest

from portfolio.core.repository import ArticleRepository, ProjectRepository
from portfolio.core.results import ErrorKind
from portfolio.kernel.store import StoreUnavailableError
from tests.helpers import article_form, project_form


async def assert_cache_matches_store(repository):
    cached = [item.model_dump() for item in repository.items]
    fresh = await repository.list()
    assert cached == [item.model_dump() for item in fresh.value]


@pytest.fixture
def projects(admin_store):
    repository = ProjectRepository(admin_store)
    yield repository
    repository.close()


@pytest.mark.asyncio
async def test_list_orders_by_sort_order_and_is_repeatable(projects):
    for order in (3, 1, 2):
        assert (await projects.create(project_form(title=f"P{order}", sort_order=order))).ok

    first = await projects.list()
    second = await projects.list()

    assert [p.sort_order for p in first.value] == [1, 2, 3]
    assert first.value == second.value


@pytest.mark.asyncio
async def test_created_record_lands_at_its_sort_position(projects):
    await projects.create(project_form(title="A", sort_order=0))
    await projects.create(project_form(title="C", sort_order=10))

    created = await projects.create(project_form(title="B", sort_order=5))

    assert created.ok
    assert [p.title for p in projects.items] == ["A", "B", "C"]
    await assert_cache_matches_store(projects)


@pytest.mark.asyncio
async def test_create_parses_technologies(projects):
    created = await projects.create(project_form(technologies="React, TypeScript, "))
    assert created.value.technologies == ["React", "TypeScript"]


@pytest.mark.asyncio
async def test_create_defaults_sort_order_and_published(projects):
    created = await projects.create({"title": "T", "description": "D", "technologies": "Go"})
    assert created.value.sort_order == 0
    assert created.value.is_published is True


@pytest.mark.asyncio
async def test_invalid_create_makes_no_store_call(projects, change_feed):
    calls = []
    change_feed.subscribe("projects", "INSERT", calls.append)

    result = await projects.create(project_form(title="", technologies=""))

    assert result.kind == ErrorKind.VALIDATION
    assert set(result.field_errors()) == {"title", "technologies"}
    assert calls == []
    assert projects.items == ()


@pytest.mark.asyncio
async def test_update_validates_merged_record_and_relists(projects):
    created = (await projects.create(project_form(title="Old", sort_order=1))).value
    await projects.create(project_form(title="Other", sort_order=2))

    updated = await projects.update(created.id, {"title": "New", "sort_order": 3})

    assert updated.ok
    assert updated.value.title == "New"
    assert updated.value.description == created.description
    assert [p.title for p in projects.items] == ["Other", "New"]
    await assert_cache_matches_store(projects)


@pytest.mark.asyncio
async def test_invalid_update_leaves_cache_untouched(projects):
    created = (await projects.create(project_form(title="Keep"))).value
    before = projects.items

    result = await projects.update(created.id, {"title": ""})

    assert result.kind == ErrorKind.VALIDATION
    assert projects.items == before


@pytest.mark.asyncio
async def test_update_missing_record_is_not_found(projects):
    result = await projects.update(uuid.uuid4(), {"title": "X"})
    assert result.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_removes_from_cache_without_refetch(projects, monkeypatch):
    keep = (await projects.create(project_form(title="Keep", sort_order=0))).value
    gone = (await projects.create(project_form(title="Gone", sort_order=1))).value

    async def no_select(*args, **kwargs):
        raise AssertionError("delete must not re-list")

    monkeypatch.setattr(projects._table, "select", no_select)
    result = await projects.delete(gone.id)

    assert result.ok
    assert [p.id for p in projects.items] == [keep.id]


@pytest.mark.asyncio
async def test_failed_delete_keeps_record(projects, anon_store):
    created = (await projects.create(project_form())).value
    anonymous = ProjectRepository(anon_store)
    await anonymous.list()

    result = await anonymous.delete(created.id)

    assert result.kind == ErrorKind.STORE
    assert result.reason == "permission_denied"
    assert [p.id for p in anonymous.items] == [created.id]


@pytest.mark.asyncio
async def test_failed_list_keeps_prior_cache(projects, monkeypatch):
    await projects.create(project_form())
    before = projects.items

    async def unavailable(*args, **kwargs):
        raise StoreUnavailableError("connection refused")

    monkeypatch.setattr(projects._table, "select", unavailable)
    result = await projects.list()

    assert result.kind == ErrorKind.FETCH
    assert projects.items == before


@pytest.mark.asyncio
async def test_create_rejected_for_anonymous_store(anon_store):
    repository = ProjectRepository(anon_store)
    result = await repository.create(project_form())
    assert result.kind == ErrorKind.STORE
    assert result.reason == "permission_denied"
    assert repository.items == ()


@pytest.mark.asyncio
async def test_closed_repository_ignores_late_results(projects):
    await projects.create(project_form(title="A"))
    projects.close()
    await projects.create(project_form(title="B"))

    listed = await projects.list()

    assert len(listed.value) == 2
    assert [p.title for p in projects.items] == ["A"]


@pytest.mark.asyncio
async def test_get(projects, anon_store):
    draft = (await projects.create(project_form(is_published=False))).value
    assert (await projects.get(draft.id)).value.id == draft.id
    assert (await ProjectRepository(anon_store).get(draft.id)).kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_article_repository(admin_store):
    articles = ArticleRepository(admin_store)
    created = await articles.create(article_form(title="Second", sort_order=2))
    await articles.create(article_form(title="First", sort_order=1))

    assert created.value.category == "Backend"
    assert [a.title for a in articles.items] == ["First", "Second"]

    updated = await articles.update(created.value.id, {"category": "DevOps", "url": "https://example.com/post"})
    assert updated.value.category == "DevOps"
    assert updated.value.url == "https://example.com/post"

    rejected = await articles.update(created.value.id, {"category": "Cooking"})
    assert rejected.kind == ErrorKind.VALIDATION
    await assert_cache_matches_store(articles)
