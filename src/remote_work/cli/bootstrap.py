# src/remote_work/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the document store into AppState,
- fills the in-memory indexes from a full store scan.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.operations import load_indexes
from ..core.ports import RecordStore
from ..core.state import AppState, build_state
from ..records.document_store import SQLiteDocumentStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, store: RecordStore | None = None) -> AppState:
    """
    Create AppState from the provided settings and load its indexes.

    Keeping settings and store injectable makes the app easier to test and avoids
    hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if store is None:
        _ensure_local_dirs(settings)
        store = SQLiteDocumentStore(settings.store_path)

    state = build_state(settings, store)
    load_indexes(state)
    return state
