"""
Store client: table access under row policies, change subscriptions and auth.

Every request runs as the identity bound to the client's auth session.
Committed mutations are published to the change feed.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import Uuid, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.kernel.identity.jwt import JWTManager
from portfolio.kernel.models import Base
from portfolio.kernel.store.policy import TABLES, Actor, Operation, RowPolicy
from portfolio.kernel.store.auth import AuthClient
from portfolio.kernel.store.changes import (
    ChangeEvent,
    ChangeFeed,
    ChangeHandler,
    ChangeType,
    Subscription,
)
from portfolio.kernel.store.errors import ConstraintError, NotFoundError, StoreError
from portfolio.kernel.store.sessions import store_session
from portfolio.logging_config import get_logger

logger = get_logger(__name__)

# Columns managed by the store; never written through the table API
_READ_ONLY_COLUMNS = frozenset({"id", "created_at", "updated_at"})


def row_to_dict(row: Base) -> Dict[str, Any]:
    """Plain dict of a row's column values."""
    return {attr.key: getattr(row, attr.key) for attr in sa_inspect(row).mapper.column_attrs}


def _coerce_id(record_id: Any) -> uuid.UUID:
    if isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError as exc:
        raise NotFoundError(f"Invalid id: {record_id}") from exc


class TableClient:
    """
    Requests against one table.

    Usage:
        rows = await store.table("projects").select(order=("sort_order", "created_at"))
        row = await store.table("comments").insert({"article_id": aid, ...})
        sub = store.table("comments").subscribe(ChangeType.INSERT, handler, {"article_id": aid})
    """

    def __init__(self, store: "StoreClient", name: str):
        if name not in TABLES:
            raise StoreError(f"Unknown table: {name}", table=name)
        self.store = store
        self.name = name
        self.model: Type[Base] = TABLES[name]
        self._columns = {attr.key for attr in sa_inspect(self.model).column_attrs}

    def _column(self, key: str):
        if key not in self._columns:
            raise StoreError(f"Unknown column {key!r}", table=self.name)
        return getattr(self.model, key)

    def _value(self, key: str, value: Any) -> Any:
        column = self._column(key)
        if value is not None and isinstance(column.type, Uuid) and not isinstance(value, uuid.UUID):
            try:
                return uuid.UUID(str(value))
            except ValueError as exc:
                raise ConstraintError(f"Invalid uuid for {key}: {value}", table=self.name) from exc
        return value

    def _writable(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            k: self._value(k, v) for k, v in values.items() if k not in _READ_ONLY_COLUMNS
        }

    async def _actor(self, session: AsyncSession) -> Actor:
        return await RowPolicy(session).resolve_actor(self.store.auth.acting_user_id())

    async def _visible_row(self, session: AsyncSession, actor: Actor, record_id: uuid.UUID):
        query = select(self.model).where(self.model.id == record_id)
        visibility = RowPolicy.visibility(self.name, actor)
        if visibility is not None:
            query = query.where(visibility)
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def select(
        self,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order: Sequence[str] = (),
    ) -> List[Dict[str, Any]]:
        """
        Rows visible to the acting identity.

        Args:
            filters: Column equality filters
            order: Column names; a leading "-" sorts that column descending
        """
        query = select(self.model)
        for key, value in (filters or {}).items():
            query = query.where(self._column(key) == self._value(key, value))
        for key in order:
            column = self._column(key.lstrip("-"))
            query = query.order_by(column.desc() if key.startswith("-") else column.asc())

        async with store_session(self.store.session_maker, self.name) as session:
            actor = await self._actor(session)
            RowPolicy.check(actor, self.name, Operation.SELECT)
            visibility = RowPolicy.visibility(self.name, actor)
            if visibility is not None:
                query = query.where(visibility)
            result = await session.execute(query)
            return [row_to_dict(row) for row in result.scalars().all()]

    async def get(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """One visible row by id, or None."""
        rid = _coerce_id(record_id)
        async with store_session(self.store.session_maker, self.name) as session:
            actor = await self._actor(session)
            RowPolicy.check(actor, self.name, Operation.SELECT)
            row = await self._visible_row(session, actor, rid)
            return row_to_dict(row) if row is not None else None

    async def insert(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a row; unspecified columns take their defaults."""
        async with store_session(self.store.session_maker, self.name) as session:
            actor = await self._actor(session)
            RowPolicy.check(actor, self.name, Operation.INSERT)
            row = self.model(**self._writable(values))
            session.add(row)
            await session.commit()
            await session.refresh(row)
            record = row_to_dict(row)

        logger.info("Row inserted", extra={"table": self.name, "row_id": str(record["id"])})
        self.store.changes.publish(ChangeEvent(self.name, ChangeType.INSERT, new=record))
        return record

    async def update(self, record_id: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Partial update of one row.

        Raises:
            NotFoundError: If the row is absent or not visible
        """
        rid = _coerce_id(record_id)
        changes = self._writable(values)
        async with store_session(self.store.session_maker, self.name) as session:
            actor = await self._actor(session)
            RowPolicy.check(actor, self.name, Operation.UPDATE)
            row = await self._visible_row(session, actor, rid)
            if row is None:
                raise NotFoundError(f"No {self.name} row {rid}", table=self.name)
            old = row_to_dict(row)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            await session.refresh(row)
            record = row_to_dict(row)

        logger.info("Row updated", extra={"table": self.name, "row_id": str(rid)})
        self.store.changes.publish(ChangeEvent(self.name, ChangeType.UPDATE, new=record, old=old))
        return record

    async def delete(self, record_id: Any) -> Dict[str, Any]:
        """
        Delete one row and return it.

        Raises:
            NotFoundError: If the row is absent or not visible
        """
        rid = _coerce_id(record_id)
        async with store_session(self.store.session_maker, self.name) as session:
            actor = await self._actor(session)
            RowPolicy.check(actor, self.name, Operation.DELETE)
            row = await self._visible_row(session, actor, rid)
            if row is None:
                raise NotFoundError(f"No {self.name} row {rid}", table=self.name)
            old = row_to_dict(row)
            await session.delete(row)
            await session.commit()

        logger.info("Row deleted", extra={"table": self.name, "row_id": str(rid)})
        self.store.changes.publish(ChangeEvent(self.name, ChangeType.DELETE, old=old))
        return old

    def subscribe(
        self,
        event: ChangeType,
        handler: ChangeHandler,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Subscription:
        """Receive committed changes of one type, optionally filtered by column values."""
        for key in filters or {}:
            self._column(key)
        return self.store.changes.subscribe(self.name, event, handler, dict(filters or {}))


class StoreClient:
    """
    One client of the store, holding its own auth session.

    Clients share the database and the change feed; each has independent auth
    state, so a request-scoped client acts as the caller's identity.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        changes: ChangeFeed,
        jwt_manager: Optional[JWTManager] = None,
    ):
        self.session_maker = session_maker
        self.changes = changes
        self.auth = AuthClient(session_maker, jwt_manager)

    def table(self, name: str) -> TableClient:
        return TableClient(self, name)
