"""
Multi-producer, single-consumer event queue.

Producers (listener thread, signal handlers, interactive shell) enqueue
change sets and control actions; the dispatch loop drains them.
"""

from collections import deque
from typing import Deque, List

from watch_queue.models import QueueItem


class EventQueue:
    """
    Unbounded FIFO of QueueItems.

    Uses deque's atomic ``append``/``popleft`` as a lock-free exchange, so
    ``enqueue`` is safe from any thread and from a signal handler that
    interrupts the consumer in the middle of ``drain_all``.
    """

    def __init__(self):
        self._items: Deque[QueueItem] = deque()

    def enqueue(self, item: QueueItem) -> None:
        """Append an item to the tail. Never blocks."""
        self._items.append(item)

    def drain_all(self) -> List[QueueItem]:
        """
        Remove and return every item present when the call started.

        Only the dispatch loop may call this. Items enqueued while draining
        stay queued for the next cycle.

        Returns:
            Items in arrival order (empty list if none)
        """
        drained = []
        for _ in range(len(self._items)):
            try:
                drained.append(self._items.popleft())
            except IndexError:
                break
        return drained

    def is_empty(self) -> bool:
        """Advisory check; may be stale by the time the caller acts on it."""
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
