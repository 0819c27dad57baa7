# src/remote_work/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable

from ..core import operations as ops
from ..core.errors import IndexDivergence, InvalidInput, NotFound, RemoteWorkError, StoreUnavailable
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


def format_error(exc: RemoteWorkError) -> str:
    if isinstance(exc, NotFound):
        return f"Not found: {exc}"
    if isinstance(exc, InvalidInput):
        return f"Invalid input: {exc}"
    if isinstance(exc, StoreUnavailable):
        return f"Store unavailable: {exc}"
    if isinstance(exc, IndexDivergence):
        return f"Index divergence: {exc}. Use /resync to rebuild the indexes."
    return f"Error: {exc}"


class CommandRegistry:
    """Slash-command registry used by connectors (/help, /task, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like '/command args'. Arguments use shell-style quoting.

        Returns a reply string or None if not a command. Core failures
        (not found, invalid input, store/index problems) become reply text.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as exc:
            return f"Invalid input: {exc}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except RemoteWorkError as exc:
            logger.info("/%s failed: %s", name, exc)
            return format_error(exc)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _usage(text: str) -> str:
    return f"Usage: {text}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    indexes = "DIVERGENT (run /resync)" if state.needs_resync else "in sync"
    return (
        "Status:\n"
        f"  Employees indexed: {len(state.prefix_index)}\n"
        f"  Tasks queued: {len(state.task_queue)}\n"
        f"  History entries: {len(state.history)}/{state.history.cap}\n"
        f"  Indexes: {indexes}"
    )


def cmd_add_employee(state: AppState, args: list[str]) -> str:
    """
    /add-employee "Alice Smith" alice@example.com
    /add-employee Alice Smith alice@example.com   (last word is the email)
    """
    if len(args) < 2:
        return _usage("/add-employee NAME EMAIL")
    emp = ops.add_employee(state, " ".join(args[:-1]), args[-1])
    return f"Employee added with id: {emp.id}"


def cmd_employees(state: AppState, args: list[str]) -> str:
    employees = ops.list_employees(state)
    if not employees:
        return "No employees."
    return "\n".join(["Employees:", *(str(e) for e in employees)])


def cmd_project(state: AppState, args: list[str]) -> str:
    if not args:
        return _usage("/project NAME [DESCRIPTION]")
    project = ops.create_project(state, args[0], " ".join(args[1:]))
    return f"Project created with id: {project.id}"


def cmd_projects(state: AppState, args: list[str]) -> str:
    projects = ops.list_projects(state)
    if not projects:
        return "No projects."
    return "\n".join(["Projects:", *(str(p) for p in projects)])


def cmd_task(state: AppState, args: list[str]) -> str:
    """
    /task TITLE DETAILS PRIORITY [DUE_EPOCH]
    Priority is 1 (low) .. 5 (high); DUE_EPOCH 0 or omitted means no due date.
    """
    if len(args) not in (3, 4):
        return _usage('/task "TITLE" "DETAILS" PRIORITY(1-5) [DUE_EPOCH|0]')
    due = args[3] if len(args) == 4 else 0
    task = ops.create_task(state, args[0], args[1], args[2], due)
    return f"Task created with id: {task.id}"


def cmd_assign(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return _usage("/assign TASK_ID EMPLOYEE_ID")
    ops.assign_task(state, args[0], args[1])
    return "Assigned task."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = ops.list_tasks(state)
    if not tasks:
        return "No tasks."
    return "\n".join(["Tasks:", *(str(t) for t in tasks)])


def cmd_complete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return _usage("/complete TASK_ID")
    ops.complete_task(state, args[0])
    return "Marked complete."


def cmd_search(state: AppState, args: list[str]) -> str:
    if not args:
        return _usage("/search NAME_PREFIX")
    matches = ops.search_employees(state, " ".join(args))
    if not matches:
        return "No employees found with that prefix."
    return "\n".join(["Matches:", *(str(e) for e in matches)])


def cmd_assigned(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return _usage("/assigned EMPLOYEE_ID")
    tasks = ops.employee_tasks(state, args[0])
    if not tasks:
        return "No open tasks assigned."
    return "\n".join(["Assigned tasks:", *(str(t) for t in tasks)])


def cmd_history(state: AppState, args: list[str]) -> str:
    limit: int | None = None
    if args:
        try:
            limit = int(args[0])
        except ValueError:
            raise InvalidInput(f"history limit must be an integer, got {args[0]!r}") from None
        if limit <= 0:
            raise InvalidInput(f"history limit must be positive, got {limit}")
    entries = ops.show_history(state, limit)
    if not entries:
        return "No history yet."
    return "\n".join(["Recent history (latest first):", *(str(e) for e in entries)])


def cmd_resync(state: AppState, args: list[str]) -> str:
    stats = ops.resync_indexes(state)
    return f"Indexes rebuilt: employees={stats.employees}, tasks={stats.tasks}, assigned={stats.assigned}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show index sizes and sync state.")
registry.register("add-employee", cmd_add_employee, help_text="Add an employee: /add-employee NAME EMAIL.")
registry.register("employees", cmd_employees, help_text="List employees.")
registry.register("project", cmd_project, help_text="Create a project: /project NAME [DESCRIPTION].")
registry.register("projects", cmd_projects, help_text="List projects.")
registry.register(
    "task", cmd_task, help_text="Create a task: /task TITLE DETAILS PRIORITY(1-5) [DUE_EPOCH|0]."
)
registry.register("assign", cmd_assign, help_text="Assign a task: /assign TASK_ID EMPLOYEE_ID.")
registry.register("tasks", cmd_tasks, help_text="List tasks by priority, then due date.")
registry.register("complete", cmd_complete, help_text="Mark a task complete: /complete TASK_ID.")
registry.register("search", cmd_search, help_text="Search employees by name prefix: /search PREFIX.")
registry.register("assigned", cmd_assigned, help_text="Open tasks of an employee: /assigned EMPLOYEE_ID.")
registry.register("history", cmd_history, help_text="Show recent history: /history [LIMIT].")
registry.register("resync", cmd_resync, help_text="Rebuild all in-memory indexes from the store.")
