"""
Realtime change feed
In-process publish/subscribe of row changes, filtered per (table, checklist_id)
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ChangeEvent:
    """One row-level change; `new` is the row image after the change"""
    table: str
    new: Dict[str, Any]
    event_type: str = "UPDATE"

    def to_dict(self) -> Dict[str, Any]:
        return {"table": self.table, "eventType": self.event_type, "new": self.new}


@dataclass(eq=False)
class Subscription:
    """
    Single-consumer inbox for the events matching one predicate.
    Close it explicitly; a closed subscription receives nothing further.
    """
    feed: "ChangeFeed"
    table: str
    checklist_id: Any
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    closed: bool = False

    def matches(self, table: str, row: Dict[str, Any]) -> bool:
        return table == self.table and row.get("checklist_id") == self.checklist_id

    async def get(self) -> Optional[ChangeEvent]:
        """Wait for the next event. Returns None once the subscription is closed."""
        if self.closed and self.queue.empty():
            return None
        event = await self.queue.get()
        return event

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.feed._remove(self)
        # Wake a consumer blocked in get()
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            pass  # a full queue means no consumer is blocked

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ChangeFeed:
    """Fan-out of row changes to the subscriptions whose predicate matches"""

    def __init__(self, queue_size: int = None):
        self.queue_size = settings.CHANGE_FEED_QUEUE_SIZE if queue_size is None else queue_size
        self._subscriptions: Set[Subscription] = set()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, table: str, checklist_id: Any) -> Subscription:
        subscription = Subscription(
            feed=self,
            table=table,
            checklist_id=checklist_id,
            queue=asyncio.Queue(maxsize=self.queue_size),
        )
        self._subscriptions.add(subscription)
        logger.debug(f"Subscribed to {table} for checklist {checklist_id}. Total subscriptions: {len(self._subscriptions)}")
        return subscription

    def publish(self, table: str, row: Dict[str, Any], event_type: str = "UPDATE") -> int:
        """Deliver a row change to every matching subscription. Returns the delivery count."""
        event = ChangeEvent(table=table, new=dict(row), event_type=event_type)
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.matches(table, row):
                continue
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropping {table} change for checklist {subscription.checklist_id}: subscriber queue full"
                )
        return delivered

    def _remove(self, subscription: Subscription):
        self._subscriptions.discard(subscription)
        logger.debug(f"Subscription to {subscription.table} for checklist {subscription.checklist_id} closed")


# Create singleton instance
change_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    """Get change feed instance"""
    return change_feed
