"""
Database session scope for store requests, translating driver failures into
store errors.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.kernel.store.errors import (
    ConstraintError,
    StoreError,
    StoreUnavailableError,
)


@asynccontextmanager
async def store_session(
    session_maker: async_sessionmaker[AsyncSession],
    table: Optional[str] = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session; uncommitted work is rolled back when the scope exits."""
    try:
        async with session_maker() as session:
            yield session
    except IntegrityError as exc:
        raise ConstraintError(str(exc.orig), table=table) from exc
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError(str(exc.orig), table=table) from exc
    except SQLAlchemyError as exc:
        raise StoreError(str(exc), table=table) from exc
