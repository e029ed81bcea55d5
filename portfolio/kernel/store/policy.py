"""
Row-level access policy enforced by the store.

Rules per table:
- projects, articles: published rows readable by anyone; unpublished rows and
  every write require an administrator
- comments: readable and insertable by anyone, deletable by an administrator,
  never updated
- profiles: an identity reads its own row, an administrator reads all rows
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Type

from sqlalchemy import false, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from portfolio.kernel.models import Article, Base, Comment, Profile, Project
from portfolio.kernel.store.errors import PermissionDeniedError


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """The identity a store request runs as."""
    user_id: Optional[uuid.UUID] = None
    is_admin: bool = False

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None


ANONYMOUS = Actor()

TABLES: Dict[str, Type[Base]] = {
    "projects": Project,
    "articles": Article,
    "comments": Comment,
    "profiles": Profile,
}

# Operations open to every actor, per table. Anything else needs an admin.
_PUBLIC_OPERATIONS: Dict[str, Set[Operation]] = {
    "projects": {Operation.SELECT},
    "articles": {Operation.SELECT},
    "comments": {Operation.SELECT, Operation.INSERT},
    "profiles": {Operation.SELECT},
}

# Operations nobody may perform through the table API
_FORBIDDEN_OPERATIONS: Dict[str, Set[Operation]] = {
    "comments": {Operation.UPDATE},
    "profiles": {Operation.INSERT, Operation.DELETE},
}


class RowPolicy:
    """
    Evaluates the rules above for one actor.

    Usage:
        policy = RowPolicy(session)
        actor = await policy.resolve_actor(user_id)
        policy.check(actor, "projects", Operation.UPDATE)
        query = query.where(policy.visibility("projects", actor))
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_actor(self, user_id: Optional[uuid.UUID]) -> Actor:
        """Look up the administrator flag for an identity."""
        if user_id is None:
            return ANONYMOUS
        result = await self.session.execute(
            select(Profile.is_admin).where(Profile.id == user_id)
        )
        is_admin = result.scalar_one_or_none()
        return Actor(user_id=user_id, is_admin=bool(is_admin))

    @staticmethod
    def check(actor: Actor, table: str, operation: Operation) -> None:
        """Raise PermissionDeniedError unless the actor may run the operation."""
        if operation in _FORBIDDEN_OPERATIONS.get(table, set()):
            raise PermissionDeniedError(
                f"{operation.value} is not permitted on {table}", table=table
            )
        if operation in _PUBLIC_OPERATIONS.get(table, set()):
            return
        if not actor.is_admin:
            raise PermissionDeniedError(
                f"Administrator required to {operation.value} {table}", table=table
            )

    @staticmethod
    def visibility(table: str, actor: Actor) -> Optional[ColumnElement[bool]]:
        """
        Row filter for reads, or None when every row is visible.

        Also applied to update and delete so that rows an actor cannot see
        behave as missing.
        """
        if actor.is_admin:
            return None
        if table == "projects":
            return Project.is_published.is_(True)
        if table == "articles":
            return Article.is_published.is_(True)
        if table == "profiles":
            if actor.is_anonymous:
                return false()
            return Profile.id == actor.user_id
        return None
