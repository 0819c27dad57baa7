# src/remote_work/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations, so the
document store is swappable and tests can run against an in-memory fake.
"""

from typing import Any, Protocol

from ..records.models import Collection

Document = dict[str, Any]
# Persisted record as the store sees it: camelCase keys plus "id".


class RecordStore(Protocol):
    """
    Document store capability.

    Implementations assign ids on insert and raise StoreUnavailable when a
    call cannot complete. Writes are atomic per record.
    """

    def insert(self, collection: Collection, record: Document) -> str: ...
    def find_by_id(self, collection: Collection, record_id: str) -> Document | None: ...
    def find_all(self, collection: Collection) -> list[Document]: ...
    def update_fields(self, collection: Collection, record_id: str, changes: Document) -> bool: ...
    def close(self) -> None: ...
