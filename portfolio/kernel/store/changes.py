"""
In-process change feed.

The store publishes one ChangeEvent per committed row mutation. Subscribers
register for a table, an event type and optional equality filters. Delivery is
at-least-once: a subscriber may see the same event more than once and must
deduplicate by row id.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from portfolio.logging_config import get_logger

logger = get_logger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed mutation on one row."""
    table: str
    event: ChangeType
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})


ChangeHandler = Callable[[ChangeEvent], None]


def _matches(value: Any, expected: Any) -> bool:
    # Filters arrive as strings from callers that only hold ids as text
    return value == expected or str(value) == str(expected)


@dataclass(eq=False)
class Subscription:
    """Handle for one registered listener. Closing is idempotent."""
    table: str
    event: ChangeType
    filters: Dict[str, Any]
    handler: ChangeHandler
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    _feed: Optional["ChangeFeed"] = field(default=None, repr=False)

    @property
    def closed(self) -> bool:
        return self._feed is None

    def accepts(self, change: ChangeEvent) -> bool:
        if change.table != self.table or change.event != self.event:
            return False
        record = change.record
        return all(_matches(record.get(k), v) for k, v in self.filters.items())

    def close(self) -> None:
        if self._feed is not None:
            self._feed._remove(self)
            self._feed = None


class ChangeFeed:
    """Fan-out of change events to matching subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: str,
        event: ChangeType,
        handler: ChangeHandler,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Subscription:
        sub = Subscription(
            table=table,
            event=ChangeType(event),
            filters=dict(filters or {}),
            handler=handler,
            _feed=self,
        )
        self._subscriptions.append(sub)
        logger.debug("Subscribed %s to %s %s %s", sub.id, table, sub.event.value, sub.filters)
        return sub

    def _remove(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            pass

    def publish(self, change: ChangeEvent) -> int:
        """Deliver to every matching subscription; returns the delivery count."""
        delivered = 0
        for sub in list(self._subscriptions):
            if sub.closed or not sub.accepts(change):
                continue
            try:
                sub.handler(change)
                delivered += 1
            except Exception:
                # Listeners are isolated from each other
                logger.exception("Change handler %s failed", sub.id)
        return delivered
