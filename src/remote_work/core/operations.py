# src/remote_work/core/operations.py

from __future__ import annotations

"""
Application core operations.

Every mutating operation runs in two phases under state.lock:

1. persist   - write the change to the store (StoreUnavailable/NotFound abort here,
               nothing in memory changes and no history is recorded)
2. reconcile - bring the indexes in line with the committed change, then record
               a history entry

There is no rollback of phase 1. A failure in phase 2 marks the state as
needing a resync and surfaces as IndexDivergence.
"""

import contextlib
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, replace

from ..indexes.history import HistoryEntry
from ..indexes.prefix_index import DEFAULT_SEARCH_LIMIT
from ..indexes.task_queue import OrderedTasks
from ..records.models import NO_DUE_EPOCH, Collection, Employee, Project, Task, TaskStatus
from .errors import IndexDivergence, InvalidInput, NotFound
from .state import AppState

logger = logging.getLogger(__name__)

MIN_PRIORITY = 1
MAX_PRIORITY = 5

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


@dataclass(frozen=True, slots=True)
class IndexStats:
    employees: int
    tasks: int
    assigned: int


# ---- input validation (runs before any store call) ----


def _require_text(value: str | None, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInput(f"{field_name} must not be empty")
    return text


def _require_id(value: str | None, kind: str) -> str:
    raw = (value or "").strip()
    if not _ID_RE.match(raw):
        raise InvalidInput(f"malformed {kind} id: {value!r}")
    return raw


def parse_priority(raw: int | str) -> int:
    try:
        priority = int(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"priority must be an integer, got {raw!r}") from None
    if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise InvalidInput(f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority}")
    return priority


def parse_due_epoch(raw: int | str | None) -> int:
    """Epoch seconds; 0 (or None) means no due date and maps to NO_DUE_EPOCH."""
    if raw is None:
        return NO_DUE_EPOCH
    try:
        due = int(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"due date must be epoch seconds or 0, got {raw!r}") from None
    if due < 0:
        raise InvalidInput(f"due date must not be negative, got {due}")
    if due >= NO_DUE_EPOCH:
        raise InvalidInput(f"due date out of range, got {due}")
    return NO_DUE_EPOCH if due == 0 else due


# ---- reconcile helpers ----


@contextlib.contextmanager
def _reconcile(state: AppState, op: str) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        state.needs_resync = True
        logger.critical(
            "Index divergence after %s: store committed but indexes were not updated",
            op,
            exc_info=True,
        )
        raise IndexDivergence(f"{op}: indexes out of sync with the store ({exc}); resync required") from exc


def _maybe_auto_resync(state: AppState) -> None:
    if state.needs_resync and getattr(state.settings, "auto_resync", False):
        logger.warning("Indexes marked divergent; resynchronizing before next operation")
        resync_indexes(state)


def _load_tasks(state: AppState) -> list[Task]:
    return [Task.from_document(d) for d in state.store.find_all(Collection.TASKS)]


def _rebuild_task_queue(state: AppState) -> None:
    state.task_queue.rebuild_from(_load_tasks(state))


def _find_task(state: AppState, task_id: str) -> Task:
    doc = state.store.find_by_id(Collection.TASKS, task_id)
    if doc is None:
        raise NotFound("Task", task_id)
    return Task.from_document(doc)


# ---- startup / recovery ----


def load_indexes(state: AppState) -> IndexStats:
    """Rebuild every index from a full store scan."""
    employees = [Employee.from_document(d) for d in state.store.find_all(Collection.EMPLOYEES)]
    tasks = _load_tasks(state)

    state.prefix_index.clear()
    for emp in employees:
        state.prefix_index.insert(emp.name, emp.id)
    state.assignments.rebuild_from((e.id for e in employees), tasks)
    state.task_queue.rebuild_from(tasks)

    stats = IndexStats(
        employees=len(employees),
        tasks=len(tasks),
        assigned=sum(1 for t in tasks if t.assigned_to_id and t.status == TaskStatus.OPEN),
    )
    logger.info(
        "Loaded in-memory indexes: employees=%d tasks=%d assigned=%d",
        stats.employees,
        stats.tasks,
        stats.assigned,
    )
    return stats


def resync_indexes(state: AppState) -> IndexStats:
    """Resynchronize all indexes from the store and clear the divergence flag."""
    with state.lock:
        stats = load_indexes(state)
        was_divergent = state.needs_resync
        state.needs_resync = False
        state.history.record(f"Resynchronized indexes (employees={stats.employees}, tasks={stats.tasks})")
    if was_divergent:
        logger.info("Index divergence cleared by resync")
    return stats


# ---- employees ----


def add_employee(state: AppState, name: str, email: str) -> Employee:
    name = _require_text(name, "name")
    email = (email or "").strip()

    with state.lock:
        _maybe_auto_resync(state)
        created_at = state.clock()
        emp_id = state.store.insert(
            Collection.EMPLOYEES,
            {"name": name, "email": email, "createdAt": created_at},
        )
        employee = Employee(id=emp_id, name=name, email=email, created_at=created_at)

        with _reconcile(state, "add_employee"):
            state.prefix_index.insert(name, emp_id)
            state.assignments.ensure(emp_id)
            state.history.record(f"Added employee: {name} ({emp_id})")

    logger.info("Employee added id=%s", emp_id)
    return employee


def list_employees(state: AppState) -> list[Employee]:
    return [Employee.from_document(d) for d in state.store.find_all(Collection.EMPLOYEES)]


def search_employees(state: AppState, prefix: str) -> list[Employee]:
    """
    Prefix search over employee names.

    The index only yields ids; each match is re-read from the store so that
    displayed fields are current. Ids the store no longer knows are skipped.
    """
    limit = min(int(getattr(state.settings, "search_limit", DEFAULT_SEARCH_LIMIT)), DEFAULT_SEARCH_LIMIT)
    ids = state.prefix_index.search_prefix((prefix or "").strip(), limit=limit)

    out: list[Employee] = []
    for emp_id in ids:
        doc = state.store.find_by_id(Collection.EMPLOYEES, emp_id)
        if doc is None:
            logger.warning("Prefix index references unknown employee id=%s", emp_id)
            continue
        out.append(Employee.from_document(doc))
    return out


def employee_tasks(state: AppState, employee_id: str) -> list[Task]:
    """Open tasks currently assigned to an employee, in assignment order."""
    emp_id = _require_id(employee_id, "employee")
    if state.store.find_by_id(Collection.EMPLOYEES, emp_id) is None:
        raise NotFound("Employee", emp_id)

    out: list[Task] = []
    for task_id in state.assignments.list_for(emp_id):
        task = state.task_queue.get(task_id)
        if task is not None:
            out.append(task)
    return out


# ---- projects ----


def create_project(state: AppState, name: str, description: str = "") -> Project:
    name = _require_text(name, "project name")
    description = (description or "").strip()

    with state.lock:
        _maybe_auto_resync(state)
        created_at = state.clock()
        project_id = state.store.insert(
            Collection.PROJECTS,
            {"name": name, "description": description, "createdAt": created_at},
        )
        with _reconcile(state, "create_project"):
            state.history.record(f"Created project: {name} ({project_id})")

    logger.info("Project created id=%s", project_id)
    return Project(id=project_id, name=name, description=description, created_at=created_at)


def list_projects(state: AppState) -> list[Project]:
    return [Project.from_document(d) for d in state.store.find_all(Collection.PROJECTS)]


# ---- tasks ----


def create_task(
    state: AppState,
    title: str,
    details: str,
    priority: int | str,
    due_epoch: int | str | None = 0,
) -> Task:
    title = _require_text(title, "title")
    details = (details or "").strip()
    prio = parse_priority(priority)
    due = parse_due_epoch(due_epoch)

    with state.lock:
        _maybe_auto_resync(state)
        draft = Task(
            id="",
            title=title,
            details=details,
            priority=prio,
            due_epoch=due,
            assigned_to_id=None,
            status=TaskStatus.OPEN,
            created_at=state.clock(),
        )
        task_id = state.store.insert(Collection.TASKS, draft.to_document())
        task = replace(draft, id=task_id)

        with _reconcile(state, "create_task"):
            state.task_queue.insert(task)
            state.history.record(f"Created task: {title} ({task_id})")

    logger.info("Task created id=%s priority=%d due=%s", task_id, prio, due if task.has_due else "none")
    return task


def list_tasks(state: AppState) -> OrderedTasks:
    return state.task_queue.snapshot_ordered()


def assign_task(state: AppState, task_id: str, employee_id: str) -> Task:
    tid = _require_id(task_id, "task")
    eid = _require_id(employee_id, "employee")

    with state.lock:
        _maybe_auto_resync(state)
        task = _find_task(state, tid)
        if state.store.find_by_id(Collection.EMPLOYEES, eid) is None:
            raise NotFound("Employee", eid)
        if task.status == TaskStatus.COMPLETED:
            raise InvalidInput(f"task {tid} is already completed")

        if not state.store.update_fields(Collection.TASKS, tid, {"assignedToId": eid}):
            raise NotFound("Task", tid)

        with _reconcile(state, "assign_task"):
            previous = task.assigned_to_id
            if previous and previous != eid:
                state.assignments.unassign(previous, tid)
            state.assignments.assign(eid, tid)
            _rebuild_task_queue(state)
            state.history.record(f"Assigned task {tid} to employee {eid}")

        refreshed = state.task_queue.get(tid)

    logger.info("Task %s assigned to %s (previous=%s)", tid, eid, task.assigned_to_id)
    return refreshed or replace(task, assigned_to_id=eid)


def complete_task(state: AppState, task_id: str) -> Task:
    tid = _require_id(task_id, "task")

    with state.lock:
        _maybe_auto_resync(state)
        task = _find_task(state, tid)
        if task.status == TaskStatus.COMPLETED:
            raise InvalidInput(f"task {tid} is already completed")

        completed_at = state.clock()
        changes = {"status": TaskStatus.COMPLETED.value, "completedAt": completed_at}
        if not state.store.update_fields(Collection.TASKS, tid, changes):
            raise NotFound("Task", tid)

        with _reconcile(state, "complete_task"):
            state.assignments.unassign_on_complete(task.assigned_to_id, tid)
            _rebuild_task_queue(state)
            state.history.record(f"Completed task: {tid}")

        refreshed = state.task_queue.get(tid)

    logger.info("Task %s completed", tid)
    return refreshed or replace(task, status=TaskStatus.COMPLETED, completed_at=completed_at)


# ---- history ----


def show_history(state: AppState, limit: int | None = None) -> list[HistoryEntry]:
    if limit is None:
        limit = int(getattr(state.settings, "history_show_default", 20))
    if limit <= 0:
        raise InvalidInput(f"history limit must be positive, got {limit}")
    return state.history.recent(limit)
