# src/todolist/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import format_task, registry as command_registry
from ..core.state import AppState
from ..tasks.task_models import TaskEvent, TaskEventKind

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def render_event(event: TaskEvent) -> str:
    if event.kind is TaskEventKind.DELETED:
        title = event.task.title if event.task is not None else event.task_id
        return f"- deleted {event.task_id[:8]} {title}"
    prefix = "+" if event.kind is TaskEventKind.CREATED else "~"
    if event.task is None:
        return f"{prefix} {event.kind.value} {event.task_id[:8]}"
    return f"{prefix} {format_task(event.task)}"


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /list to see tasks, /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g., remote import)
        print(f"[{_ts_local()}] {text}", flush=True)

    def on_task_event(event: TaskEvent) -> None:
        emit(render_event(event))

    unsubscribe = state.task_store.events.subscribe(on_task_event)
    try:
        while True:
            try:
                user_input = input(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not user_input.startswith("/"):
                # Bare text is a shortcut for /add.
                user_input = f"/add {user_input}"

            try:
                with state.lock:
                    reply = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command failed: %s", user_input)
                _print_ts("Command failed, see log for details.")
                continue

            if reply:
                print(reply)
    finally:
        unsubscribe()
