# src/remote_work/indexes/assignments.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..records.models import Task, TaskStatus

logger = logging.getLogger(__name__)


class AssignmentIndex:
    """
    employee id -> ordered task ids assigned to that employee.

    Derived from Task.assigned_to_id; lists are created lazily so an unknown
    employee id is never an error.
    """

    def __init__(self) -> None:
        self._by_employee: dict[str, list[str]] = {}

    def __len__(self) -> int:
        return len(self._by_employee)

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._by_employee

    def ensure(self, employee_id: str) -> None:
        self._by_employee.setdefault(employee_id, [])

    def assign(self, employee_id: str, task_id: str) -> None:
        tasks = self._by_employee.setdefault(employee_id, [])
        if task_id not in tasks:
            tasks.append(task_id)

    def unassign(self, employee_id: str | None, task_id: str) -> None:
        if employee_id is None:
            return
        tasks = self._by_employee.get(employee_id)
        if tasks and task_id in tasks:
            tasks.remove(task_id)

    def unassign_on_complete(self, employee_id: str | None, task_id: str) -> None:
        # A completed task that never had an assignee arrives with employee_id=None.
        self.unassign(employee_id, task_id)

    def list_for(self, employee_id: str) -> list[str]:
        return list(self._by_employee.get(employee_id, ()))

    def rebuild_from(self, employee_ids: Iterable[str], tasks: Iterable[Task]) -> None:
        """Reconstruct from persisted records. Completed tasks are not indexed."""
        self._by_employee = {eid: [] for eid in employee_ids}
        for task in tasks:
            if task.assigned_to_id and task.status == TaskStatus.OPEN:
                self.assign(task.assigned_to_id, task.id)
        logger.debug("AssignmentIndex rebuilt employees=%d", len(self._by_employee))
