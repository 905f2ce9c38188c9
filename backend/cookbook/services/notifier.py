"""
In-process change notifications keyed by collection name.

The document store publishes after every write; live queries subscribe and
re-read their collection whenever they are woken.
"""

import asyncio
import logging
import threading
from typing import Dict, Set

logger = logging.getLogger(__name__)


class Subscription:
    """A single listener on one collection."""

    def __init__(self, notifier: "ChangeNotifier", collection: str):
        self._notifier = notifier
        self.collection = collection
        self._loop = asyncio.get_running_loop()
        self._event = asyncio.Event()
        self.closed = False

    def _signal(self) -> None:
        # Writes may come from worker threads (asyncio.to_thread)
        try:
            self._loop.call_soon_threadsafe(self._event.set)
        except RuntimeError:
            # Loop already closed; the subscriber is gone
            self.close()

    async def wait(self) -> None:
        """Wait for the next change on the collection."""
        await self._event.wait()
        self._event.clear()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._notifier._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class ChangeNotifier:
    """Fan-out of 'collection changed' signals to live subscribers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Set[Subscription]] = {}

    def subscribe(self, collection: str) -> Subscription:
        """Must be called from inside a running event loop."""
        subscription = Subscription(self, collection)
        with self._lock:
            self._subscribers.setdefault(collection, set()).add(subscription)
        logger.debug(f"Subscribed to '{collection}' ({self.subscriber_count(collection)} active)")
        return subscription

    def publish(self, collection: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(collection, ()))
        for subscription in subscribers:
            subscription._signal()

    def subscriber_count(self, collection: str) -> int:
        with self._lock:
            return len(self._subscribers.get(collection, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.collection)
            if subscribers is not None:
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscribers[subscription.collection]


# Process-wide notifier shared by every document store instance
notifier = ChangeNotifier()
