# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from remote_work.core.operations import load_indexes
from remote_work.core.state import AppState, build_state
from remote_work.records.document_store import SQLiteDocumentStore

from .fakes import FakeClock, InMemoryRecordStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="remote-work-test",
        log_level="WARNING",
        data_dir=tmp_path,
        store_path=tmp_path / "records.sqlite3",
        history_cap=1000,
        history_show_default=20,
        search_limit=50,
        auto_resync=False,
    )


@pytest.fixture()
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state(settings: SimpleNamespace, store: InMemoryRecordStore, clock: FakeClock) -> AppState:
    """AppState wired to the in-memory store and a deterministic clock."""
    st = build_state(settings, store, clock=clock)
    load_indexes(st)
    return st


@pytest.fixture()
def sqlite_state(settings: SimpleNamespace) -> AppState:
    """
    AppState backed by a real SQLite document store in tmp_path.

    The store's correctness is part of what we want to test end to end.
    """
    st = build_state(settings, SQLiteDocumentStore(settings.store_path))
    load_indexes(st)
    return st
