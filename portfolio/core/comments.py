"""
Live comment stream for one article.

The stream subscribes to comment inserts for its article before fetching the
initial snapshot, then keeps one list in descending creation order. Store
subscriptions deliver at least once, so every merge is keyed by comment id.

Submitting does not add the comment locally; it shows up through the live
subscription like any other insert. A fetch replaces the list with its
snapshot plus whatever arrived live while the fetch was in flight, so rows
deleted from the store drop out on the next fetch.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from portfolio.core.results import ErrorKind, Ok, Result, from_store_error
from portfolio.core.validators import validate_comment
from portfolio.kernel.store import ChangeEvent, ChangeType, StoreClient, StoreError, Subscription
from portfolio.logging_config import get_logger
from portfolio.schemas.content import CommentRecord

logger = get_logger(__name__)


def _newest_first(comment: CommentRecord):
    return (comment.created_at, str(comment.id))


def merge_comment(comments: Sequence[CommentRecord], incoming: CommentRecord) -> List[CommentRecord]:
    """Prepend ``incoming`` unless a comment with its id is already present."""
    if any(comment.id == incoming.id for comment in comments):
        return list(comments)
    return [incoming, *comments]


def merge_snapshot(
    comments: Sequence[CommentRecord],
    snapshot: Iterable[CommentRecord],
) -> List[CommentRecord]:
    """Union of both lists by id, newest first."""
    merged = {comment.id: comment for comment in comments}
    for comment in snapshot:
        merged[comment.id] = comment
    return sorted(merged.values(), key=_newest_first, reverse=True)


@dataclass
class PendingComment:
    """Form input awaiting submission."""
    author_name: str = ""
    content: str = ""

    def clear(self) -> None:
        self.author_name = ""
        self.content = ""


CommentListener = Callable[[CommentRecord], None]


class CommentStream:
    """
    Comments of one article, kept current from the change feed.

    Usage:
        async with CommentStream(store, article_id) as stream:
            stream.pending.author_name = "Jo"
            stream.pending.content = "Hello!"
            result = await stream.submit()
    """

    def __init__(
        self,
        store: StoreClient,
        article_id: Any,
        on_comment: Optional[CommentListener] = None,
    ):
        self.article_id = uuid.UUID(str(article_id))
        self._table = store.table("comments")
        self._on_comment = on_comment
        self._comments: List[CommentRecord] = []
        self._subscription: Optional[Subscription] = None
        # One entry per fetch in flight: comments that arrived live meanwhile
        self._arrivals: List[Dict[uuid.UUID, CommentRecord]] = []
        self._closed = False
        self.pending = PendingComment()

    @property
    def comments(self) -> List[CommentRecord]:
        return list(self._comments)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    async def start(self) -> Result[List[CommentRecord]]:
        """Open the live subscription, then merge in the initial snapshot."""
        if self._closed:
            raise RuntimeError("Comment stream is closed")
        if self._subscription is None:
            self._subscription = self._table.subscribe(
                ChangeType.INSERT,
                self._on_insert,
                {"article_id": str(self.article_id)},
            )
        try:
            return await self.fetch_comments()
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Release the subscription. Safe to call more than once."""
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    async def __aenter__(self) -> "CommentStream":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def _on_insert(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        try:
            incoming = CommentRecord.model_validate(change.new)
        except ValidationError:
            logger.warning("Ignoring malformed comment event", exc_info=True)
            return
        for arrived in self._arrivals:
            arrived[incoming.id] = incoming
        merged = merge_comment(self._comments, incoming)
        if len(merged) == len(self._comments):
            return
        self._comments = merged
        if self._on_comment is not None:
            self._on_comment(incoming)

    async def fetch_comments(self) -> Result[List[CommentRecord]]:
        """Replace the list with a fresh snapshot of the article's comments."""
        arrived: Dict[uuid.UUID, CommentRecord] = {}
        self._arrivals.append(arrived)
        try:
            rows = await self._table.select(
                filters={"article_id": self.article_id},
                order=("-created_at",),
            )
        except StoreError as exc:
            logger.warning("Fetching comments for %s failed: %s", self.article_id, exc.code)
            return from_store_error(exc, ErrorKind.FETCH)
        finally:
            self._arrivals.remove(arrived)

        snapshot = [CommentRecord.model_validate(row) for row in rows]
        if self._closed:
            return Ok(snapshot)
        self._comments = merge_snapshot(arrived.values(), snapshot)
        return Ok(list(self._comments))

    async def submit(
        self,
        author_name: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Result[CommentRecord]:
        """
        Validate and insert the pending comment.

        Arguments replace the pending input first. The input is cleared only
        when the insert succeeds.
        """
        if author_name is not None:
            self.pending.author_name = author_name
        if content is not None:
            self.pending.content = content

        checked = validate_comment(
            {"author_name": self.pending.author_name, "content": self.pending.content}
        )
        if not checked.ok:
            return checked

        draft = checked.value
        try:
            row = await self._table.insert({
                "article_id": self.article_id,
                "author_name": draft.author_name,
                "content": draft.content,
            })
        except StoreError as exc:
            logger.warning("Posting comment on %s failed: %s", self.article_id, exc.code)
            return from_store_error(exc)

        self.pending.clear()
        return Ok(CommentRecord.model_validate(row))


async def delete_comment(store: StoreClient, comment_id: Any) -> Result[None]:
    """Remove a comment. The store only allows this for administrators."""
    try:
        await store.table("comments").delete(comment_id)
    except StoreError as exc:
        logger.warning("Deleting comment %s failed: %s", comment_id, exc.code)
        return from_store_error(exc)
    return Ok(None)
