import asyncio
import uuid
from typing import Any, Dict, List

import structlog

from utilities import DROP_NEWEST, DROP_OLDEST, SUBSCRIBER_QUEUE_SIZE, SubscriptionClosed

logger = structlog.get_logger()

# end-of-stream marker; consumers never see it
_CLOSED = object()


# ------------ In-memory structures ------------
class Subscription:
    ''' One client's view of the hub: a bounded FIFO of published values.'''

    def __init__(self, hub: "BroadcastHub", maxsize: int):

        # initialize fields
        self.id = uuid.uuid4().hex
        self.hub = hub

        # per subscriber message buffer
        # publisher never waits for a slow subscriber
        # when the queue is full the hub applies its overflow policy
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

        # stats
        self.dropped = 0
        self.closed = False

    @property
    def maxsize(self) -> int:
        return self.queue.maxsize

    async def get(self) -> Any:
        """Wait for the next value. Raises SubscriptionClosed once the subscription has ended."""
        item = await self.queue.get()
        if item is _CLOSED:
            # keep the marker so later reads also see the end
            self.queue.put_nowait(_CLOSED)
            raise SubscriptionClosed(self.id)
        return item

    def drain(self) -> List[Any]:
        """Take every value queued right now, oldest first, without waiting."""
        items = []
        while True:
            try:
                item = self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _CLOSED:
                self.queue.put_nowait(_CLOSED)
                break
            items.append(item)
        return items

    def close(self):
        self.hub.unsubscribe(self.id)

    def _mark_closed(self):
        if self.closed:
            return
        self.closed = True
        # discard whatever is pending and wake any waiting reader
        while not self.queue.empty():
            self.queue.get_nowait()
        self.queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info):
        self.close()


class BroadcastHub:
    ''' Fans each published value out to every registered subscription.

    All methods are synchronous and meant to be called from one event loop,
    so publish iterates a snapshot that cannot see a half-registered entry.
    The hub keeps no history: a subscription only sees values published
    after it was created.
    '''

    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE, overflow_policy: str = DROP_OLDEST):
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        if overflow_policy not in (DROP_OLDEST, DROP_NEWEST):
            raise ValueError(f"unknown overflow policy: {overflow_policy}")
        self.queue_size = queue_size
        self.overflow_policy = overflow_policy
        self.subscribers: Dict[str, Subscription] = {}
        self.closed = False
        # stats
        self.published_count = 0
        self.dropped_count = 0

    @property
    def subscriber_count(self) -> int:
        return len(self.subscribers)

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self.queue_size)
        if self.closed:
            # late arrival during shutdown: hand back an already-finished stream
            sub._mark_closed()
            return sub
        self.subscribers[sub.id] = sub
        logger.info("hub.subscribed", subscriber_id=sub.id, subscribers=len(self.subscribers))
        return sub

    def unsubscribe(self, subscriber_id: str) -> bool:
        """Remove a subscriber. Returns False if it was already gone."""
        sub = self.subscribers.pop(subscriber_id, None)
        if sub is None:
            return False
        sub._mark_closed()
        logger.info(
            "hub.unsubscribed",
            subscriber_id=subscriber_id,
            dropped=sub.dropped,
            subscribers=len(self.subscribers),
        )
        return True

    def publish(self, value: Any) -> int:
        """Offer value to every subscriber without waiting.

        Returns how many subscribers had the value enqueued. A full queue
        loses its oldest value (drop_oldest) or this value (drop_newest).
        """
        if self.closed:
            return 0
        self.published_count += 1
        subscribers = list(self.subscribers.values())

        delivered = 0
        for sub in subscribers:
            if sub.queue.full():
                sub.dropped += 1
                self.dropped_count += 1
                if self.overflow_policy == DROP_NEWEST:
                    continue
                # drop oldest
                try:
                    _ = sub.queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            sub.queue.put_nowait(value)
            delivered += 1
        return delivered

    def close(self):
        """Shut the hub down and end every open subscription."""
        if self.closed:
            return
        self.closed = True
        subscribers = list(self.subscribers.values())
        self.subscribers.clear()
        for sub in subscribers:
            sub._mark_closed()
        logger.info("hub.closed", subscribers=len(subscribers), published=self.published_count)
