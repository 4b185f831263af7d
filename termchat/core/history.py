from __future__ import annotations

from collections import deque
from typing import Deque, List

from ..models import Event


DEFAULT_CAPACITY = 100


class HistoryBuffer:
    """Fixed-capacity FIFO of recent chat and system events, oldest first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive")
        self._events: Deque[Event] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    def append(self, event: Event) -> None:
        # deque(maxlen) drops the oldest entry on overflow
        self._events.append(event)

    def snapshot(self) -> List[Event]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)
