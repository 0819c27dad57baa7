# src/remote_work/indexes/task_queue.py

from __future__ import annotations

"""
Priority-ordered task cache.

Holds Task snapshots in a binary heap keyed by
(descending priority, ascending due epoch, insertion sequence).
"No due date" is NO_DUE_EPOCH, so it naturally sorts after real due times.

The queue is a cache: whenever a task's priority, due time or status changes
in the store, the owner calls rebuild_from() with a fresh snapshot of all tasks.
"""

import heapq
import itertools
import logging
from collections.abc import Iterable, Iterator

from ..records.models import Task

logger = logging.getLogger(__name__)

_Entry = tuple[int, int, int, Task]


def _entry(task: Task, seq: int) -> _Entry:
    return (-task.priority, task.due_epoch, seq, task)


class OrderedTasks:
    """
    Finite, restartable view of the queue in scheduling order.

    The contents are captured when the view is created; each iteration sorts
    lazily with a heap pop so a caller reading only the head pays O(k log n).
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: list[_Entry]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[Task]:
        heap = list(self._entries)
        heapq.heapify(heap)
        while heap:
            yield heapq.heappop(heap)[3]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


class TaskQueue:
    def __init__(self) -> None:
        self._heap: list[_Entry] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def rebuild_from(self, tasks: Iterable[Task]) -> None:
        """Discard the current contents and reload from a full snapshot."""
        self._seq = itertools.count()
        heap = [_entry(t, next(self._seq)) for t in tasks]
        heapq.heapify(heap)
        self._heap = heap
        logger.debug("TaskQueue rebuilt size=%d", len(heap))

    def insert(self, task: Task) -> None:
        """Add a freshly created task. Mutations of existing tasks go through rebuild_from()."""
        heapq.heappush(self._heap, _entry(task, next(self._seq)))

    def snapshot_ordered(self) -> OrderedTasks:
        return OrderedTasks(list(self._heap))

    def peek(self) -> Task | None:
        """Most urgent task, or None when empty."""
        return self._heap[0][3] if self._heap else None

    def get(self, task_id: str) -> Task | None:
        for entry in self._heap:
            if entry[3].id == task_id:
                return entry[3]
        return None
