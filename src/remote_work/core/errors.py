# src/remote_work/core/errors.py

from __future__ import annotations


class RemoteWorkError(Exception):
    """Base class for every failure reported to a caller of the core."""


class NotFound(RemoteWorkError):
    """A referenced employee/task/project id is absent from the store."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class InvalidInput(RemoteWorkError):
    """Malformed caller input. Raised before any store call."""


class StoreUnavailable(RemoteWorkError):
    """The persist phase could not complete."""


class IndexDivergence(RemoteWorkError):
    """
    The store write succeeded but the in-memory indexes could not be updated.

    Indexes and store may disagree until resync_indexes() runs.
    """
