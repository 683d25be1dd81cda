"""Bounded FIFO queue of processes."""

from __future__ import annotations

from collections.abc import Iterator

from simos.process import Process

MAX_QUEUE_SIZE = 10


class ProcessQueue:
    """FIFO of at most MAX_QUEUE_SIZE processes; extra arrivals are dropped."""

    def __init__(self) -> None:
        self._items: list[Process] = []

    def enqueue(self, proc: Process) -> None:
        """Append proc unless the queue is full."""
        if len(self._items) >= MAX_QUEUE_SIZE:
            return
        self._items.append(proc)

    def dequeue(self) -> Process | None:
        """Remove and return the oldest process, or None when empty."""
        if not self._items:
            return None
        return self._items.pop(0)

    def empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Process]:
        return iter(list(self._items))