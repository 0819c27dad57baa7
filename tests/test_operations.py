# tests/test_operations.py

from __future__ import annotations

import pytest

from remote_work.core import operations as ops
from remote_work.core.errors import IndexDivergence, InvalidInput, NotFound, StoreUnavailable
from remote_work.core.state import AppState, build_state
from remote_work.records.models import NO_DUE_EPOCH, Collection, TaskStatus

from .fakes import InMemoryRecordStore

MISSING_ID = "0" * 32


def _titles(state: AppState) -> list[str]:
    return [t.title for t in ops.list_tasks(state)]


def test_end_to_end_scenario(state: AppState) -> None:
    alice = ops.add_employee(state, "Alice Smith", "alice@example.com")
    assert [e.id for e in ops.search_employees(state, "ali")] == [alice.id]

    fix = ops.create_task(state, "Fix bug", "crash on save", 3, 0)
    deploy = ops.create_task(state, "Deploy", "ship it", 5, 1_700_000_000)
    assert fix.due_epoch == NO_DUE_EPOCH
    assert _titles(state) == ["Deploy", "Fix bug"]

    ops.assign_task(state, fix.id, alice.id)
    assert state.assignments.list_for(alice.id) == [fix.id]

    done = ops.complete_task(state, fix.id)
    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at is not None
    assert state.assignments.list_for(alice.id) == []

    by_id = {t.id: t for t in ops.list_tasks(state)}
    assert by_id[fix.id].status == TaskStatus.COMPLETED
    assert by_id[deploy.id].status == TaskStatus.OPEN
    assert _titles(state) == ["Deploy", "Fix bug"]


def test_add_employee_persists_then_indexes(state: AppState, store: InMemoryRecordStore) -> None:
    emp = ops.add_employee(state, "  Bob Jones ", "bob@example.com")

    doc = store.docs[Collection.EMPLOYEES][emp.id]
    assert doc["name"] == "Bob Jones"
    assert doc["email"] == "bob@example.com"
    assert doc["createdAt"] == emp.created_at
    assert emp.id in state.assignments
    assert state.prefix_index.search_prefix("bob j") == [emp.id]
    assert ops.show_history(state)[0].description == f"Added employee: Bob Jones ({emp.id})"


def test_create_task_persists_open_task(state: AppState, store: InMemoryRecordStore) -> None:
    task = ops.create_task(state, "Write docs", "README", "2", "0")

    doc = store.docs[Collection.TASKS][task.id]
    assert doc["status"] == "OPEN"
    assert doc["priority"] == 2
    assert doc["dueEpoch"] == NO_DUE_EPOCH
    assert "assignedToId" not in doc
    assert state.task_queue.get(task.id) == task


def test_assign_twice_keeps_single_entry(state: AppState) -> None:
    emp = ops.add_employee(state, "Carol", "c@example.com")
    task = ops.create_task(state, "Review", "", 1)

    ops.assign_task(state, task.id, emp.id)
    refreshed = ops.assign_task(state, task.id, emp.id)

    assert state.assignments.list_for(emp.id) == [task.id]
    assert refreshed.assigned_to_id == emp.id
    assert state.task_queue.get(task.id).assigned_to_id == emp.id


def test_reassign_moves_task_between_employees(state: AppState, store: InMemoryRecordStore) -> None:
    a = ops.add_employee(state, "Ann", "a@example.com")
    b = ops.add_employee(state, "Ben", "b@example.com")
    task = ops.create_task(state, "Triage", "", 4)

    ops.assign_task(state, task.id, a.id)
    ops.assign_task(state, task.id, b.id)

    assert state.assignments.list_for(a.id) == []
    assert state.assignments.list_for(b.id) == [task.id]
    assert store.docs[Collection.TASKS][task.id]["assignedToId"] == b.id


def test_assign_unknown_task_changes_nothing(state: AppState, store: InMemoryRecordStore) -> None:
    emp = ops.add_employee(state, "Dave", "d@example.com")
    ops.create_task(state, "Existing", "", 2)
    before_tasks = [(t.id, t.assigned_to_id) for t in ops.list_tasks(state)]
    before_history = len(state.history)
    writes = store.writes

    with pytest.raises(NotFound) as exc_info:
        ops.assign_task(state, MISSING_ID, emp.id)

    assert exc_info.value.kind == "Task"
    assert state.assignments.list_for(emp.id) == []
    assert [(t.id, t.assigned_to_id) for t in ops.list_tasks(state)] == before_tasks
    assert len(state.history) == before_history
    assert store.writes == writes


def test_assign_unknown_employee_is_not_found(state: AppState) -> None:
    task = ops.create_task(state, "Orphan", "", 2)

    with pytest.raises(NotFound) as exc_info:
        ops.assign_task(state, task.id, MISSING_ID)

    assert exc_info.value.kind == "Employee"
    assert state.task_queue.get(task.id).assigned_to_id is None


def test_complete_unassigned_task(state: AppState) -> None:
    task = ops.create_task(state, "Solo", "", 1)

    done = ops.complete_task(state, task.id)

    assert done.status == TaskStatus.COMPLETED
    assert ops.show_history(state, 1)[0].description == f"Completed task: {task.id}"


def test_completed_task_cannot_be_completed_or_assigned_again(state: AppState) -> None:
    emp = ops.add_employee(state, "Eve", "e@example.com")
    task = ops.create_task(state, "Once", "", 1)
    ops.complete_task(state, task.id)

    with pytest.raises(InvalidInput):
        ops.complete_task(state, task.id)
    with pytest.raises(InvalidInput):
        ops.assign_task(state, task.id, emp.id)
    assert state.assignments.list_for(emp.id) == []


def test_complete_unknown_task_is_not_found(state: AppState) -> None:
    with pytest.raises(NotFound):
        ops.complete_task(state, MISSING_ID)
    assert len(state.history) == 0


@pytest.mark.parametrize(
    ("priority", "due"),
    [(0, 0), (6, 0), ("high", 0), (3, -5), (3, "tomorrow"), (3, NO_DUE_EPOCH), (3, 2**64)],
)
def test_create_task_rejects_bad_input_before_store(
    state: AppState, store: InMemoryRecordStore, priority, due
) -> None:
    store.fail_writes = True  # any store call would surface as StoreUnavailable instead

    with pytest.raises(InvalidInput):
        ops.create_task(state, "Bad", "", priority, due)
    assert len(state.task_queue) == 0


def test_invalid_identifiers_and_names(state: AppState, store: InMemoryRecordStore) -> None:
    store.fail_reads = True
    store.fail_writes = True

    with pytest.raises(InvalidInput):
        ops.assign_task(state, "not-an-id", MISSING_ID)
    with pytest.raises(InvalidInput):
        ops.complete_task(state, "")
    with pytest.raises(InvalidInput):
        ops.add_employee(state, "   ", "x@example.com")
    with pytest.raises(InvalidInput):
        ops.create_task(state, "", "details", 3)
    with pytest.raises(InvalidInput):
        ops.create_project(state, "", "description")


def test_store_failure_aborts_without_history(state: AppState, store: InMemoryRecordStore) -> None:
    store.fail_writes = True

    with pytest.raises(StoreUnavailable):
        ops.add_employee(state, "Frank", "f@example.com")
    with pytest.raises(StoreUnavailable):
        ops.create_task(state, "Never", "", 3)

    assert len(state.history) == 0
    assert len(state.prefix_index) == 0
    assert len(state.task_queue) == 0
    assert not state.needs_resync


def test_store_failure_on_assign_leaves_indexes(state: AppState, store: InMemoryRecordStore) -> None:
    emp = ops.add_employee(state, "Gina", "g@example.com")
    task = ops.create_task(state, "Blocked", "", 3)
    history = len(state.history)
    store.fail_writes = True

    with pytest.raises(StoreUnavailable):
        ops.assign_task(state, task.id, emp.id)

    assert state.assignments.list_for(emp.id) == []
    assert len(state.history) == history


def test_reconcile_failure_reports_divergence_and_resync_recovers(
    state: AppState, store: InMemoryRecordStore, monkeypatch
) -> None:
    emp = ops.add_employee(state, "Hank", "h@example.com")
    task = ops.create_task(state, "Flaky", "", 3)
    history = len(state.history)

    def boom(_tasks) -> None:
        raise RuntimeError("rebuild failed")

    monkeypatch.setattr(state.task_queue, "rebuild_from", boom)

    with pytest.raises(IndexDivergence):
        ops.assign_task(state, task.id, emp.id)

    # The store committed; the history entry for the failed reconcile is not written.
    assert store.docs[Collection.TASKS][task.id]["assignedToId"] == emp.id
    assert state.needs_resync
    assert len(state.history) == history

    monkeypatch.undo()
    stats = ops.resync_indexes(state)

    assert not state.needs_resync
    assert stats.employees == 1 and stats.tasks == 1 and stats.assigned == 1
    assert state.assignments.list_for(emp.id) == [task.id]
    assert state.task_queue.get(task.id).assigned_to_id == emp.id


def test_auto_resync_runs_before_next_operation(
    state: AppState, store: InMemoryRecordStore, monkeypatch
) -> None:
    state.settings.auto_resync = True
    emp = ops.add_employee(state, "Ivy", "i@example.com")
    task = ops.create_task(state, "Auto", "", 3)

    def boom(_employee_id, _task_id) -> None:
        raise RuntimeError("index write failed")

    monkeypatch.setattr(state.assignments, "assign", boom)
    with pytest.raises(IndexDivergence):
        ops.assign_task(state, task.id, emp.id)
    monkeypatch.undo()

    ops.create_project(state, "Apollo", "next")

    assert not state.needs_resync
    assert state.assignments.list_for(emp.id) == [task.id]


def test_search_rereads_store_and_skips_unknown_ids(state: AppState, store: InMemoryRecordStore) -> None:
    emp = ops.add_employee(state, "Jane Roe", "old@example.com")
    store.docs[Collection.EMPLOYEES][emp.id]["email"] = "new@example.com"
    state.prefix_index.insert("Janet Ghost", MISSING_ID)

    found = ops.search_employees(state, "JAN")

    assert [e.email for e in found] == ["new@example.com"]
    assert ops.search_employees(state, "") == []
    assert ops.search_employees(state, "zzz") == []


def test_employee_tasks_lists_open_assignments(state: AppState) -> None:
    emp = ops.add_employee(state, "Kim", "k@example.com")
    t1 = ops.create_task(state, "One", "", 1)
    t2 = ops.create_task(state, "Two", "", 2)
    ops.assign_task(state, t1.id, emp.id)
    ops.assign_task(state, t2.id, emp.id)
    ops.complete_task(state, t1.id)

    assert [t.id for t in ops.employee_tasks(state, emp.id)] == [t2.id]
    with pytest.raises(NotFound):
        ops.employee_tasks(state, MISSING_ID)


def test_projects_pass_through_to_store(state: AppState, store: InMemoryRecordStore) -> None:
    project = ops.create_project(state, "Migration", "Move to new infra")

    assert store.docs[Collection.PROJECTS][project.id]["description"] == "Move to new infra"
    assert [p.name for p in ops.list_projects(state)] == ["Migration"]
    assert ops.show_history(state, 1)[0].description == f"Created project: Migration ({project.id})"


def test_largest_valid_due_still_sorts_before_no_due(state: AppState) -> None:
    undated = ops.create_task(state, "Undated", "", 3, 0)
    late = ops.create_task(state, "Far future", "", 3, NO_DUE_EPOCH - 1)

    assert late.due_epoch == NO_DUE_EPOCH - 1
    assert late.has_due
    assert [t.id for t in ops.list_tasks(state)] == [late.id, undated.id]


def test_search_is_capped_at_fifty_even_if_configured_higher(state: AppState) -> None:
    state.settings.search_limit = 100
    for i in range(60):
        ops.add_employee(state, f"User {i}", f"u{i}@example.com")

    assert len(ops.search_employees(state, "user")) == 50

    state.settings.search_limit = 5
    assert len(ops.search_employees(state, "user")) == 5


def test_show_history_defaults_to_configured_limit(state: AppState) -> None:
    state.settings.history_show_default = 3
    for i in range(5):
        ops.create_project(state, f"P{i}", "")

    assert [e.description.split(":")[1].split()[0] for e in ops.show_history(state)] == ["P4", "P3", "P2"]


@pytest.mark.parametrize("limit", [0, -3])
def test_show_history_rejects_non_positive_limit(state: AppState, limit: int) -> None:
    ops.create_project(state, "P0")
    with pytest.raises(InvalidInput):
        ops.show_history(state, limit)


def test_load_indexes_rebuilds_from_existing_store(settings, store: InMemoryRecordStore, clock) -> None:
    first = build_state(settings, store, clock=clock)
    ops.load_indexes(first)
    emp = ops.add_employee(first, "Liam Neeson", "l@example.com")
    t1 = ops.create_task(first, "Low", "", 1)
    t2 = ops.create_task(first, "High", "", 5, 1_800_000_000)
    ops.assign_task(first, t1.id, emp.id)

    second = build_state(settings, store, clock=clock)
    stats = ops.load_indexes(second)

    assert stats.employees == 1 and stats.tasks == 2
    assert [t.id for t in ops.list_tasks(second)] == [t2.id, t1.id]
    assert second.assignments.list_for(emp.id) == [t1.id]
    assert second.prefix_index.search_prefix("liam") == [emp.id]
    assert len(second.history) == 0
