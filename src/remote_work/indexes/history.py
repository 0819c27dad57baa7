# src/remote_work/indexes/history.py

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from ..records.models import format_ts

DEFAULT_HISTORY_CAP = 1000


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    ts: float
    description: str

    def __str__(self) -> str:
        return f"{format_ts(self.ts)} - {self.description}"


class HistoryLog:
    """Bounded in-memory event log; the oldest entry is evicted first."""

    def __init__(self, cap: int = DEFAULT_HISTORY_CAP, *, clock: Callable[[], float] = time.time) -> None:
        if cap <= 0:
            raise ValueError("history cap must be positive")
        self._entries: deque[HistoryEntry] = deque(maxlen=cap)
        self._clock = clock

    @property
    def cap(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, description: str) -> HistoryEntry:
        entry = HistoryEntry(ts=self._clock(), description=description)
        self._entries.append(entry)
        return entry

    def recent(self, n: int) -> list[HistoryEntry]:
        """Up to n entries, newest first."""
        if n <= 0:
            return []
        out: list[HistoryEntry] = []
        for entry in reversed(self._entries):
            if len(out) >= n:
                break
            out.append(entry)
        return out
