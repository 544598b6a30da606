"""
Job Event Hub

Fans job events out to WebSocket subscribers. Events are published from
worker threads and delivered on each subscriber's event loop.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 100


class JobEventHub:
    """In-process publish/subscribe for job events"""

    def __init__(self):
        self._subscribers: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue:
        """Register a subscriber on the running event loop and return its queue"""
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        loop = asyncio.get_running_loop()
        with self._lock:
            self._subscribers.append((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        with self._lock:
            self._subscribers = [(l, q) for l, q in self._subscribers if q is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event_type: str, **data: Any):
        """
        Publish an event to all subscribers

        Args:
            event_type: Event name (e.g. 'job.queued')
            **data: Event payload
        """
        message = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }
        with self._lock:
            subscribers = list(self._subscribers)

        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(self._deliver, queue, message)
            except RuntimeError:
                # Subscriber's loop is closed
                logger.debug("Dropping subscriber with closed event loop")
                self.unsubscribe(queue)

    @staticmethod
    def _deliver(queue: asyncio.Queue, message: Dict[str, Any]):
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(message)
