from __future__ import annotations

"""
Bounded conversation history.

Append-only log of assistant speech and system notices, trimmed oldest-first
once it exceeds `capacity`. Entries are stamped with a monotonically increasing
`sequence` so causal order survives trimming.
"""

import dataclasses
import logging
import threading
from typing import List

from .schemas import HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 20


class HistoryLedger:
    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._entries: List[HistoryEntry] = []
        self._next_sequence = 0
        # Proximity chat can deliver notices from another actor's loop thread.
        self._lock = threading.RLock()

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        with self._lock:
            stamped = dataclasses.replace(entry, sequence=self._next_sequence)
            self._next_sequence += 1
            self._entries.append(stamped)
            overflow = len(self._entries) - self.capacity
            if overflow > 0:
                del self._entries[:overflow]
                logger.debug("[History] trimmed %d oldest entries (capacity=%d)", overflow, self.capacity)
            return stamped

    def entries(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def tail(self, n: int) -> List[HistoryEntry]:
        if n <= 0:
            return []
        with self._lock:
            return list(self._entries[-n:])

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
