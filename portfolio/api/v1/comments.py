"""
Article comment endpoints, including the live WebSocket feed.
"""

import asyncio
import uuid
from typing import List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from portfolio.api.deps import Store
from portfolio.api.errors import unwrap
from portfolio.core.comments import CommentStream
from portfolio.core.public import PublicContent
from portfolio.logging_config import get_logger
from portfolio.schemas.content import CommentCreate, CommentRecord

router = APIRouter()
logger = get_logger(__name__)


@router.get("/articles/{article_id}/comments", response_model=List[CommentRecord])
async def list_comments(article_id: uuid.UUID, store: Store):
    """Comments of a published article, newest first."""
    unwrap(await PublicContent(store).article(article_id))
    stream = CommentStream(store, article_id)
    try:
        return unwrap(await stream.fetch_comments())
    finally:
        stream.close()


@router.post(
    "/articles/{article_id}/comments",
    response_model=CommentRecord,
    status_code=status.HTTP_201_CREATED,
)
async def post_comment(article_id: uuid.UUID, data: CommentCreate, store: Store):
    """Post a comment without an account."""
    unwrap(await PublicContent(store).article(article_id))
    stream = CommentStream(store, article_id)
    try:
        return unwrap(await stream.submit(data.author_name or "", data.content or ""))
    finally:
        stream.close()


async def stop_push_task(task: "asyncio.Task[None]") -> Optional[BaseException]:
    """Cancel a push task and collect its outcome; returns the error it died with, if any."""
    task.cancel()
    (outcome,) = await asyncio.gather(task, return_exceptions=True)
    if isinstance(outcome, asyncio.CancelledError):
        return None
    return outcome


@router.websocket("/articles/{article_id}/comments/live")
async def live_comments(websocket: WebSocket, article_id: uuid.UUID, store: Store):
    """
    Send the current comments, then every new comment as it is posted.

    Messages: ``{"type": "snapshot", "comments": [...]}`` once, then
    ``{"type": "comment", "comment": {...}}`` per insert. Missing or unpublished
    articles are refused with a policy-violation close.
    """
    await websocket.accept()
    found = await PublicContent(store).article(article_id)
    if not found.ok:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=found.message)
        return

    queue: "asyncio.Queue[CommentRecord]" = asyncio.Queue()
    stream = CommentStream(store, article_id, on_comment=queue.put_nowait)

    async def push() -> None:
        while True:
            comment = await queue.get()
            await websocket.send_json({"type": "comment", "comment": comment.model_dump(mode="json")})

    pusher = None
    try:
        result = await stream.start()
        if not result.ok:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=result.message)
            return
        # Comments merged while the snapshot was fetched are already in it
        while not queue.empty():
            queue.get_nowait()
        await websocket.send_json({
            "type": "snapshot",
            "comments": [comment.model_dump(mode="json") for comment in result.value],
        })
        pusher = asyncio.create_task(push())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Live comments client left article %s", article_id)
    finally:
        stream.close()
        if pusher is not None:
            error = await stop_push_task(pusher)
            if error is not None:
                logger.warning("Live comment push for %s failed: %r", article_id, error)
