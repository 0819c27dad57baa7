# src/remote_work/indexes/prefix_index.py

from __future__ import annotations

"""
Employee name prefix index.

A trie stored as an arena: nodes live in one list and refer to their children
by integer handle. Every node on a name's path keeps the ids of all employees
whose lowercased name passes through it, so a lookup is a single walk of the
prefix with no subtree collection.
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
_ROOT = 0


@dataclass(slots=True)
class _Node:
    children: dict[str, int] = field(default_factory=dict)
    ids: list[str] = field(default_factory=list)
    terminal: bool = False


class PrefixIndex:
    """Append-only prefix index: lowercased name prefix -> employee ids."""

    def __init__(self) -> None:
        self._nodes: list[_Node] = [_Node()]
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def clear(self) -> None:
        self._nodes = [_Node()]
        self._ids = set()

    def _child(self, handle: int, ch: str) -> int | None:
        return self._nodes[handle].children.get(ch)

    def _walk(self, key: str) -> int | None:
        handle = _ROOT
        for ch in key:
            nxt = self._child(handle, ch)
            if nxt is None:
                return None
            handle = nxt
        return handle

    def insert(self, name: str, employee_id: str) -> None:
        key = (name or "").lower()
        if not key:
            logger.debug("PrefixIndex: skip empty name id=%s", employee_id)
            return

        handle = _ROOT
        for ch in key:
            nxt = self._child(handle, ch)
            if nxt is None:
                nxt = len(self._nodes)
                self._nodes.append(_Node())
                self._nodes[handle].children[ch] = nxt
            handle = nxt
            node = self._nodes[handle]
            if employee_id not in node.ids:
                node.ids.append(employee_id)

        self._nodes[handle].terminal = True
        self._ids.add(employee_id)

    def search_prefix(self, prefix: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[str]:
        """
        Ids whose lowercased name starts with `prefix`, in insertion order.

        Unknown and empty prefixes give an empty list.
        """
        key = (prefix or "").lower()
        if not key or limit <= 0:
            return []
        handle = self._walk(key)
        if handle is None:
            return []
        return list(self._nodes[handle].ids[:limit])

    def contains(self, name: str) -> bool:
        key = (name or "").lower()
        if not key:
            return False
        handle = self._walk(key)
        return handle is not None and self._nodes[handle].terminal
