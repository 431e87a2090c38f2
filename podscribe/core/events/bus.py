# File: podscribe/core/events/bus.py
import logging
import queue
from threading import Lock
from typing import Callable, List

from .models import AsrEvent

logger = logging.getLogger(__name__)

Listener = Callable[[AsrEvent], None]


class EventBus:
    """
    Fan-out point between transcription workers and the UI layer.

    Consumers either register a callback (subscribe) or drain a queue
    (open_queue). Events are delivered in publish order per publisher thread.
    """

    def __init__(self):
        self._lock = Lock()
        self._listeners: List[Listener] = []
        self._queues: List[queue.Queue] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers a callback. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def open_queue(self, maxsize: int = 0) -> "queue.Queue[AsrEvent]":
        """Returns a queue that receives every event published from now on."""
        q: queue.Queue = queue.Queue(maxsize=maxsize)
        with self._lock:
            self._queues.append(q)
        return q

    def close_queue(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._queues:
                self._queues.remove(q)

    def publish(self, event: AsrEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
            queues = list(self._queues)

        for q in queues:
            try:
                q.put_nowait(event)
            except queue.Full:
                logger.warning(f"Dropping {event.channel.value} event: consumer queue is full")

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                # listener failures never propagate into the worker thread
                logger.exception(f"Listener failed on {event.channel.value}: {e}")
