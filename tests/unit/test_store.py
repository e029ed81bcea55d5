"""Unit tests for the store client, its row policies and change feed."""

import uuid

import pytest
from sqlalchemy import Text

from portfolio.kernel.models import Article, Comment, Project
from portfolio.kernel.store import (
    ChangeEvent,
    ChangeFeed,
    ChangeType,
    ConstraintError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
)
from portfolio.kernel.store.policy import ANONYMOUS, Actor, Operation, RowPolicy


class TestRowPolicy:

    @pytest.mark.parametrize("table", ["projects", "articles"])
    def test_content_writes_need_admin(self, table):
        visitor = Actor(user_id=uuid.uuid4())
        for operation in (Operation.INSERT, Operation.UPDATE, Operation.DELETE):
            with pytest.raises(PermissionDeniedError):
                RowPolicy.check(visitor, table, operation)
            RowPolicy.check(Actor(user_id=uuid.uuid4(), is_admin=True), table, operation)

    def test_comments_public_insert_admin_delete(self):
        RowPolicy.check(ANONYMOUS, "comments", Operation.INSERT)
        RowPolicy.check(ANONYMOUS, "comments", Operation.SELECT)
        with pytest.raises(PermissionDeniedError):
            RowPolicy.check(ANONYMOUS, "comments", Operation.DELETE)

    def test_comments_are_never_updated(self):
        admin = Actor(user_id=uuid.uuid4(), is_admin=True)
        with pytest.raises(PermissionDeniedError):
            RowPolicy.check(admin, "comments", Operation.UPDATE)

    def test_admin_sees_every_row(self):
        assert RowPolicy.visibility("projects", Actor(uuid.uuid4(), True)) is None


@pytest.mark.asyncio
async def test_anonymous_reads_only_published_rows(admin_store, anon_store):
    projects = admin_store.table("projects")
    await projects.insert({"title": "Live", "description": "d", "technologies": ["Go"]})
    await projects.insert({"title": "Draft", "description": "d", "technologies": ["Go"], "is_published": False})

    public = await anon_store.table("projects").select()
    assert [row["title"] for row in public] == ["Live"]
    assert len(await projects.select()) == 2


@pytest.mark.asyncio
async def test_insert_applies_column_defaults(admin_store):
    row = await admin_store.table("projects").insert({"title": "T", "description": "D"})
    assert row["icon"] == "📁"
    assert row["sort_order"] == 0
    assert row["is_published"] is True
    assert row["technologies"] == []

    article = await admin_store.table("articles").insert({"title": "T", "excerpt": "E"})
    assert article["category"] == "Geral"
    assert article["read_time"] == "5 min"


@pytest.mark.parametrize(
    "model, column",
    [
        (Project, "icon"),
        (Article, "category"),
        (Article, "read_time"),
        (Comment, "author_name"),
    ],
)
def test_free_text_columns_are_unbounded(model, column):
    column_type = model.__table__.c[column].type
    assert isinstance(column_type, Text)
    assert column_type.length is None


@pytest.mark.asyncio
async def test_long_icon_and_read_time_are_stored(admin_store):
    icon = "🚀" * 40
    read_time = "about a quarter of an hour, give or take"
    row = await admin_store.table("projects").insert({"title": "T", "description": "D", "icon": icon})
    article = await admin_store.table("articles").insert({"title": "T", "excerpt": "E", "read_time": read_time})

    assert row["icon"] == icon
    assert article["read_time"] == read_time


@pytest.mark.asyncio
async def test_writes_rejected_for_non_admins(anon_store, visitor_store, admin_store):
    row = await admin_store.table("projects").insert({"title": "T", "description": "D"})
    for store in (anon_store, visitor_store):
        with pytest.raises(PermissionDeniedError):
            await store.table("projects").insert({"title": "X", "description": "Y"})
        with pytest.raises(PermissionDeniedError):
            await store.table("projects").update(row["id"], {"title": "X"})
        with pytest.raises(PermissionDeniedError):
            await store.table("projects").delete(row["id"])


@pytest.mark.asyncio
async def test_unpublished_rows_behave_as_missing_for_non_admins(admin_store, anon_store):
    row = await admin_store.table("articles").insert({"title": "T", "excerpt": "E", "is_published": False})
    assert await anon_store.table("articles").get(row["id"]) is None
    assert (await admin_store.table("articles").get(row["id"]))["title"] == "T"


@pytest.mark.asyncio
async def test_update_is_partial(admin_store):
    table = admin_store.table("projects")
    row = await table.insert({"title": "T", "description": "D", "sort_order": 3})
    updated = await table.update(row["id"], {"title": "New"})
    assert updated["title"] == "New"
    assert updated["description"] == "D"
    assert updated["sort_order"] == 3


@pytest.mark.asyncio
async def test_update_and_delete_missing_rows(admin_store):
    table = admin_store.table("projects")
    with pytest.raises(NotFoundError):
        await table.update(uuid.uuid4(), {"title": "X"})
    with pytest.raises(NotFoundError):
        await table.delete(uuid.uuid4())


@pytest.mark.asyncio
async def test_unknown_table_and_column(admin_store):
    with pytest.raises(StoreError):
        admin_store.table("users")
    with pytest.raises(StoreError):
        await admin_store.table("projects").select(filters={"owner": "x"})


@pytest.mark.asyncio
async def test_select_ordering(admin_store):
    table = admin_store.table("projects")
    for order in (2, 0, 1):
        await table.insert({"title": f"P{order}", "description": "D", "sort_order": order})
    ascending = await table.select(order=("sort_order",))
    descending = await table.select(order=("-sort_order",))
    assert [r["sort_order"] for r in ascending] == [0, 1, 2]
    assert [r["sort_order"] for r in descending] == [2, 1, 0]


@pytest.mark.asyncio
async def test_comments_public_insert_admin_only_delete(anon_store, visitor_store, admin_store, article):
    comments = anon_store.table("comments")
    row = await comments.insert({"article_id": str(article["id"]), "author_name": "Jo", "content": "Hello!"})

    with pytest.raises(PermissionDeniedError):
        await comments.delete(row["id"])
    with pytest.raises(PermissionDeniedError):
        await visitor_store.table("comments").delete(row["id"])
    await admin_store.table("comments").delete(row["id"])
    assert await comments.select() == []


@pytest.mark.asyncio
async def test_comment_on_missing_article_violates_constraint(anon_store):
    with pytest.raises(ConstraintError):
        await anon_store.table("comments").insert(
            {"article_id": uuid.uuid4(), "author_name": "Jo", "content": "Hello!"}
        )


@pytest.mark.asyncio
async def test_deleting_article_deletes_its_comments(admin_store, anon_store, article):
    await anon_store.table("comments").insert(
        {"article_id": article["id"], "author_name": "Jo", "content": "Hello!"}
    )
    await admin_store.table("articles").delete(article["id"])
    assert await anon_store.table("comments").select() == []


@pytest.mark.asyncio
async def test_profiles_visible_to_owner_only(anon_store, visitor_store, admin_store):
    assert await anon_store.table("profiles").select() == []
    own = await visitor_store.table("profiles").select()
    assert [p["email"] for p in own] == ["visitor@example.com"]
    assert own[0]["is_admin"] is False
    assert len(await admin_store.table("profiles").select()) == 2


class TestChangeFeed:

    @pytest.mark.asyncio
    async def test_insert_published_to_matching_subscription(self, admin_store, anon_store, article):
        other = await admin_store.table("articles").insert({"title": "Other", "excerpt": "E"})
        received = []
        sub = anon_store.table("comments").subscribe(
            ChangeType.INSERT, received.append, {"article_id": str(article["id"])}
        )

        await anon_store.table("comments").insert(
            {"article_id": article["id"], "author_name": "Jo", "content": "Hello!"}
        )
        await anon_store.table("comments").insert(
            {"article_id": other["id"], "author_name": "Al", "content": "Elsewhere"}
        )

        assert [event.new["author_name"] for event in received] == ["Jo"]
        sub.close()

    @pytest.mark.asyncio
    async def test_closed_subscription_receives_nothing(self, anon_store, article):
        received = []
        sub = anon_store.table("comments").subscribe(ChangeType.INSERT, received.append)
        sub.close()
        sub.close()
        await anon_store.table("comments").insert(
            {"article_id": article["id"], "author_name": "Jo", "content": "Hello!"}
        )
        assert received == []
        assert sub.closed

    @pytest.mark.asyncio
    async def test_delete_event_carries_old_row(self, admin_store):
        received = []
        admin_store.table("projects").subscribe(ChangeType.DELETE, received.append)
        row = await admin_store.table("projects").insert({"title": "T", "description": "D"})
        await admin_store.table("projects").delete(row["id"])
        assert received[0].old["id"] == row["id"]
        assert received[0].new is None

    def test_failing_handler_does_not_block_others(self):
        feed = ChangeFeed()
        received = []

        def broken(change):
            raise RuntimeError("boom")

        feed.subscribe("comments", ChangeType.INSERT, broken)
        feed.subscribe("comments", ChangeType.INSERT, received.append)
        delivered = feed.publish(ChangeEvent("comments", ChangeType.INSERT, new={"id": 1}))

        assert delivered == 1
        assert len(received) == 1
        assert feed.subscriber_count == 2
