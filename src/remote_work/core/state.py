# src/remote_work/core/state.py

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..indexes.assignments import AssignmentIndex
from ..indexes.history import DEFAULT_HISTORY_CAP, HistoryLog
from ..indexes.prefix_index import PrefixIndex
from ..indexes.task_queue import TaskQueue
from .ports import RecordStore


@dataclass
class AppState:
    """
    Everything the operations need, owned by one instance per running app.

    The store is authoritative. The four indexes are derived from it and are
    rebuilt wholesale by core.operations.load_indexes().
    """

    # Settings object (config.Settings or any object with the same attributes).
    settings: object
    store: RecordStore

    history: HistoryLog
    prefix_index: PrefixIndex = field(default_factory=PrefixIndex)
    task_queue: TaskQueue = field(default_factory=TaskQueue)
    assignments: AssignmentIndex = field(default_factory=AssignmentIndex)

    clock: Callable[[], float] = time.time

    # Held across persist + reconcile of every mutating operation.
    lock: threading.RLock = field(default_factory=threading.RLock)

    # Set when a reconcile phase failed after the store committed.
    needs_resync: bool = False


def build_state(
    settings: object,
    store: RecordStore,
    *,
    clock: Callable[[], float] = time.time,
) -> AppState:
    """Create an AppState with empty indexes; call load_indexes() to fill them."""
    cap = int(getattr(settings, "history_cap", DEFAULT_HISTORY_CAP))
    return AppState(
        settings=settings,
        store=store,
        history=HistoryLog(cap, clock=clock),
        clock=clock,
    )
