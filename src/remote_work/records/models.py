# src/remote_work/records/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

# "No due date": infinitely late, so it sorts after every real due time.
NO_DUE_EPOCH = 2**63 - 1


class Collection(StrEnum):
    EMPLOYEES = "employees"
    PROJECTS = "projects"
    TASKS = "tasks"


class TaskStatus(StrEnum):
    OPEN = "OPEN"
    COMPLETED = "COMPLETED"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.OPEN
        try:
            return cls(raw)
        except ValueError:
            return cls.OPEN


def format_ts(ts: float | None) -> str:
    if ts is None:
        return "None"
    return datetime.fromtimestamp(ts).astimezone().isoformat(timespec="seconds")


def _opt_float(raw: Any) -> float | None:
    return float(raw) if raw is not None else None


@dataclass(frozen=True, slots=True)
class Employee:
    id: str
    name: str
    email: str
    created_at: float

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Employee:
        return cls(
            id=str(doc["id"]),
            name=str(doc.get("name") or ""),
            email=str(doc.get("email") or ""),
            created_at=float(doc.get("createdAt") or 0.0),
        )

    def __str__(self) -> str:
        return f"{self.id} | {self.name} | {self.email} | createdAt={format_ts(self.created_at)}"


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str
    description: str
    created_at: float

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Project:
        return cls(
            id=str(doc["id"]),
            name=str(doc.get("name") or ""),
            description=str(doc.get("description") or ""),
            created_at=float(doc.get("createdAt") or 0.0),
        )

    def __str__(self) -> str:
        return f"{self.id} | {self.name} | {self.description} | createdAt={format_ts(self.created_at)}"


@dataclass(frozen=True, slots=True)
class Task:
    """
    Snapshot of a persisted task.

    Instances are immutable copies; the store stays the source of truth and a
    snapshot can be stale relative to it.
    """

    id: str
    title: str
    details: str
    priority: int
    due_epoch: int
    assigned_to_id: str | None
    status: TaskStatus
    created_at: float
    completed_at: float | None = None

    @property
    def has_due(self) -> bool:
        return self.due_epoch != NO_DUE_EPOCH

    def to_document(self) -> dict[str, Any]:
        """Persisted shape (without id; the store assigns it)."""
        doc: dict[str, Any] = {
            "title": self.title,
            "details": self.details,
            "priority": self.priority,
            "dueEpoch": self.due_epoch,
            "status": self.status.value,
            "createdAt": self.created_at,
        }
        if self.assigned_to_id is not None:
            doc["assignedToId"] = self.assigned_to_id
        if self.completed_at is not None:
            doc["completedAt"] = self.completed_at
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Task:
        due = doc.get("dueEpoch")
        priority = doc.get("priority")
        assignee = doc.get("assignedToId")
        return cls(
            id=str(doc["id"]),
            title=str(doc.get("title") or ""),
            details=str(doc.get("details") or ""),
            priority=int(priority) if priority is not None else 1,
            due_epoch=int(due) if due is not None else NO_DUE_EPOCH,
            assigned_to_id=str(assignee) if assignee else None,
            status=TaskStatus.from_db(doc.get("status")),
            created_at=float(doc.get("createdAt") or 0.0),
            completed_at=_opt_float(doc.get("completedAt")),
        )

    def __str__(self) -> str:
        due = str(self.due_epoch) if self.has_due else "none"
        return (
            f"{self.id} | {self.title} | pr={self.priority} | due={due} "
            f"| assignee={self.assigned_to_id} | status={self.status.value}"
        )
