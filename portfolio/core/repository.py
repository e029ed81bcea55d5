"""
Content repositories.

Each repository owns one ordered cache of one entity type and reconciles it
with the store after every mutation: create and update re-list, delete removes
the row locally. Failures come back as ``Failure`` results and leave the cache
as it was. Once a repository is closed, results that arrive afterwards are
returned to the caller but no longer applied to the cache.
"""

from typing import Any, Callable, ClassVar, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from portfolio.core.results import ErrorKind, Failure, Ok, Result, from_store_error
from portfolio.core.validators import (
    ArticleDraft,
    ProjectDraft,
    validate_article,
    validate_project,
)
from portfolio.kernel.store import StoreClient, StoreError
from portfolio.logging_config import get_logger
from portfolio.schemas.content import ArticleRecord, ProjectRecord

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
DraftT = TypeVar("DraftT", bound=BaseModel)

LIST_ORDER = ("sort_order", "created_at")


class ContentRepository(Generic[RecordT, DraftT]):
    """
    Generic CRUD over one content table.

    Subclasses set the table name, the record model and the form validator.
    Delete performs no confirmation of its own; callers confirm first.
    """

    table_name: ClassVar[str]
    record_model: ClassVar[Type[BaseModel]]
    validator: ClassVar[Callable[[Mapping[str, Any]], Result[Any]]]

    def __init__(self, store: StoreClient):
        self._table = store.table(self.table_name)
        self._items: List[RecordT] = []
        self._closed = False

    @property
    def items(self) -> Tuple[RecordT, ...]:
        return tuple(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _validate(self, data: Mapping[str, Any]) -> Result[DraftT]:
        return self.validator(data)

    def _record(self, row: Mapping[str, Any]) -> RecordT:
        return self.record_model.model_validate(row)  # type: ignore[return-value]

    async def list(self) -> Result[List[RecordT]]:
        """Fetch every visible record ordered by sort order, replacing the cache."""
        try:
            rows = await self._table.select(order=LIST_ORDER)
        except StoreError as exc:
            logger.warning("Listing %s failed: %s", self.table_name, exc.code)
            return from_store_error(exc, ErrorKind.FETCH)

        records = [self._record(row) for row in rows]
        if not self._closed:
            self._items = records
        return Ok(list(records))

    async def get(self, record_id: Any) -> Result[RecordT]:
        try:
            row = await self._table.get(record_id)
        except StoreError as exc:
            logger.warning("Fetching %s %s failed: %s", self.table_name, record_id, exc.code)
            return from_store_error(exc, ErrorKind.FETCH)
        if row is None:
            return Failure(kind=ErrorKind.NOT_FOUND, message=f"{self.table_name} {record_id} not found")
        return Ok(self._record(row))

    async def create(self, data: Mapping[str, Any]) -> Result[RecordT]:
        """Validate and insert; defaults fill any field the draft leaves out."""
        checked = self._validate(data)
        if not checked.ok:
            return checked

        try:
            row = await self._table.insert(checked.value.model_dump())
        except StoreError as exc:
            logger.warning("Creating %s failed: %s", self.table_name, exc.code)
            return from_store_error(exc)

        record = self._record(row)
        await self._refresh()
        return Ok(record)

    async def update(self, record_id: Any, patch: Mapping[str, Any]) -> Result[RecordT]:
        """
        Validate the record with ``patch`` applied, then send only the patched fields.

        The cache is re-listed afterwards, never patched in place.
        """
        current = self._cached(record_id)
        if current is None:
            found = await self.get(record_id)
            if not found.ok:
                return found
            current = found.value

        checked = self._validate({**current.model_dump(), **patch})
        if not checked.ok:
            return checked
        draft = checked.value
        changes = draft.model_dump(include=set(patch) & set(type(draft).model_fields))

        try:
            row = await self._table.update(record_id, changes)
        except StoreError as exc:
            logger.warning("Updating %s %s failed: %s", self.table_name, record_id, exc.code)
            return from_store_error(exc)

        record = self._record(row)
        await self._refresh()
        return Ok(record)

    async def delete(self, record_id: Any) -> Result[None]:
        """Delete and drop the record from the cache without re-listing."""
        try:
            await self._table.delete(record_id)
        except StoreError as exc:
            logger.warning("Deleting %s %s failed: %s", self.table_name, record_id, exc.code)
            return from_store_error(exc)

        if not self._closed:
            key = str(record_id)
            self._items = [item for item in self._items if str(item.id) != key]  # type: ignore[attr-defined]
        return Ok(None)

    def _cached(self, record_id: Any) -> Optional[RecordT]:
        key = str(record_id)
        for item in self._items:
            if str(item.id) == key:  # type: ignore[attr-defined]
                return item
        return None

    async def _refresh(self) -> None:
        refreshed = await self.list()
        if not refreshed.ok:
            logger.warning("%s cache is stale until the next list", self.table_name)


class ProjectRepository(ContentRepository[ProjectRecord, ProjectDraft]):
    table_name = "projects"
    record_model = ProjectRecord
    validator = staticmethod(validate_project)


class ArticleRepository(ContentRepository[ArticleRecord, ArticleDraft]):
    table_name = "articles"
    record_model = ArticleRecord
    validator = staticmethod(validate_article)

