# src/todolist/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, cast

from ..core.ports import TaskEditor, TaskListActions, TaskReader
from ..core.results import NotFound, PersistenceFailure, ValidationSkip
from ..core.state import AppState
from ..tasks.task_models import Task
from ..tasks.task_sync import AlreadySeeded, SeedCancelled, Seeded, SeedFailed, SeedOutcome, SeedState

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /list, ...)."""

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

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def format_task(task: Task) -> str:
    mark = "x" if task.is_completed else " "
    title = task.title or "(untitled)"
    return f"[{mark}] {task.id[:8]}  {_ts_local(task.date)}  {title}"


def describe_result(value: Any) -> str | None:
    """Human text for non-success results, None for a success value."""
    if isinstance(value, NotFound):
        return f"Task {value.task_id} not found."
    if isinstance(value, PersistenceFailure):
        return f"Storage error during {value.operation}: {value.message}"
    return None


def describe_seed_outcome(outcome: SeedOutcome) -> str:
    if isinstance(outcome, Seeded):
        return f"Imported {outcome.count} task(s) from the remote source."
    if isinstance(outcome, AlreadySeeded):
        return "Initial import already done; serving local tasks."
    if isinstance(outcome, SeedFailed):
        return f"Initial import failed: {outcome.error.message}"
    if isinstance(outcome, SeedCancelled):
        return "Initial import cancelled."
    return str(outcome)


def _resolve_id(reader: TaskReader, raw: str) -> tuple[str | None, str | None]:
    """Accept a full id or a unique id prefix. Returns (task_id, error_text)."""
    raw = raw.strip()
    if not raw:
        return None, "Task id is required."

    tasks = reader.list_tasks()
    if isinstance(tasks, PersistenceFailure):
        return None, describe_result(tasks)

    matches = [t.id for t in tasks if t.id == raw or t.id.startswith(raw)]
    if raw in matches:
        return raw, None
    if not matches:
        return None, f"Task {raw} not found."
    if len(matches) > 1:
        return None, f"Id prefix {raw} is ambiguous ({len(matches)} tasks)."
    return matches[0], None


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.task_store
    total = store.count_tasks()
    open_count = store.count_uncompleted()
    return (
        "Status:\n"
        f"  App: {getattr(state.settings, 'app_name', 'todolist')}\n"
        f"  Database: {store.db_path}\n"
        f"  Seed: {state.sync_service.state.value} (policy: {state.sync_service.retry_policy.value})\n"
        f"  Tasks: {describe_result(total) or total}, open: {describe_result(open_count) or open_count}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list        -> all tasks, newest first
    /list open   -> only uncompleted
    /list done   -> only completed
    """
    which = (args[0].lower() if args else "all")
    completed: bool | None
    if which in ("all", ""):
        completed = None
    elif which in ("open", "todo"):
        completed = False
    elif which in ("done", "completed"):
        completed = True
    else:
        return "Usage: /list [open|done]"

    tasks = state.task_store.list_tasks(completed=completed)
    if isinstance(tasks, PersistenceFailure):
        return describe_result(tasks) or ""
    if not tasks:
        return "No tasks."

    open_count = state.task_store.count_uncompleted()
    lines = [format_task(t) for t in tasks]
    lines.append(f"{describe_result(open_count) or open_count} open task(s)")
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    task_id, err = _resolve_id(state.task_store, args[0] if args else "")
    if err:
        return err
    task = state.task_store.get_task(cast(str, task_id))
    failure = describe_result(task)
    if failure:
        return failure
    task = cast(Task, task)
    return "\n".join(
        [
            format_task(task),
            f"  id: {task.id}",
            f"  description: {task.description or '(empty)'}",
        ]
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [| description]

    Goes through a draft, like the details editor: an empty entry is
    discarded instead of being saved.
    """
    text = " ".join(args)
    title, _, description = text.partition("|")

    editor: TaskEditor = state.task_store
    draft = editor.start_draft()
    try:
        result = editor.update_task(draft.id, title=title.strip(), description=description.strip())
    finally:
        kept = editor.discard_uncommitted(draft)

    # A failed commit also leaves the draft behind, so check the update first.
    failure = describe_result(result)
    if failure:
        return failure
    if isinstance(kept, ValidationSkip):
        return "Nothing to add: empty task discarded."
    return f"Added: {format_task(cast(Task, result))}"


def _edit_field(state: AppState, args: list[str], field: str, usage: str) -> str:
    if not args:
        return usage
    task_id, err = _resolve_id(state.task_store, args[0])
    if err:
        return err
    value = " ".join(args[1:]).strip()
    editor: TaskEditor = state.task_store
    result = editor.update_task(cast(str, task_id), **{field: value})
    failure = describe_result(result)
    if failure:
        return failure
    return f"Updated: {format_task(cast(Task, result))}"


def cmd_title(state: AppState, args: list[str]) -> str:
    return _edit_field(state, args, "title", "Usage: /title <id> <text>")


def cmd_descr(state: AppState, args: list[str]) -> str:
    return _edit_field(state, args, "description", "Usage: /descr <id> <text>")


def cmd_toggle(state: AppState, args: list[str]) -> str:
    task_id, err = _resolve_id(state.task_store, args[0] if args else "")
    if err:
        return err
    actions: TaskListActions = state.task_store
    result = actions.toggle_completion(cast(str, task_id))
    failure = describe_result(result)
    if failure:
        return failure
    return format_task(cast(Task, result))


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id, err = _resolve_id(state.task_store, args[0] if args else "")
    if err:
        return err
    actions: TaskListActions = state.task_store
    result = actions.delete_task(cast(str, task_id))
    failure = describe_result(result)
    if failure:
        return failure
    return f"Deleted: {cast(Task, result).title or task_id}"


def cmd_count(state: AppState, args: list[str]) -> str:
    n = state.task_store.count_uncompleted()
    return describe_result(n) or f"{n} open task(s)"


def cmd_seed(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Run the one-time import now (no-op once it has run)."""
    logger.info("Seed requested from console (state=%s)", state.sync_service.state.value)
    if emit is not None and state.sync_service.state is SeedState.NOT_SEEDED:
        emit("Fetching tasks from the remote source...")
    outcome = asyncio.run(state.sync_service.ensure_seeded())
    return describe_seed_outcome(outcome)


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"])
registry.register("status", cmd_status, "Show store and seed status")
registry.register("list", cmd_list, "List tasks: /list [open|done]", aliases=["ls"])
registry.register("show", cmd_show, "Show a task: /show <id>")
registry.register("add", cmd_add, "Add a task: /add <title> [| description]", aliases=["new"])
registry.register("title", cmd_title, "Change title: /title <id> <text>")
registry.register("descr", cmd_descr, "Change description: /descr <id> <text>")
registry.register("toggle", cmd_toggle, "Toggle completion: /toggle <id>", aliases=["done"])
registry.register("delete", cmd_delete, "Delete a task: /delete <id>", aliases=["rm"])
registry.register("count", cmd_count, "Count open tasks")
registry.register("seed", cmd_seed, "Run the one-time remote import")
