# src/todolist/tasks/task_store.py

from __future__ import annotations

import contextlib
import dataclasses
import logging
import sqlite3
import threading
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from ..core.events import EventBus
from ..core.results import NotFound, PersistenceFailure, ValidationSkip
from .task_models import Task, TaskEvent, TaskEventKind

logger = logging.getLogger(__name__)

_UNSET: Any = object()

_ORDER_BY = "ORDER BY date DESC, title DESC, id DESC"

# Drafts abandoned without discard_uncommitted() are evicted oldest first.
MAX_PENDING_DRAFTS = 64


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - mutations and their change events run under one write lock, so
      listeners see events in commit order

    Errors:
    - sqlite3.Error is logged and returned as PersistenceFailure
    - a missing task is returned as NotFound
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.RLock()
        self._drafts: dict[str, Task] = {}
        self.events: EventBus[TaskEvent] = EventBus("TaskStore")

        self._ensure_schema()
        total = self.count_tasks()
        if isinstance(total, PersistenceFailure):
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        with self._write_lock:
            if self._drafts:
                logger.debug("Dropping %d uncommitted draft(s) on close", len(self._drafts))
            self._drafts.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    description TEXT NOT NULL DEFAULT '',
                    date REAL NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("title", "TEXT NOT NULL DEFAULT ''")
            add_col("description", "TEXT NOT NULL DEFAULT ''")
            add_col("date", "REAL NOT NULL DEFAULT 0")
            add_col("is_completed", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_order ON tasks(date DESC, title DESC)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(is_completed)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            date=float(row["date"] or 0.0),
            is_completed=bool(row["is_completed"]),
        )

    @staticmethod
    def _build_task(
        *,
        title: str = "",
        description: str = "",
        date: float | None = None,
        is_completed: bool = False,
    ) -> Task:
        return Task(
            title=str(title or ""),
            description=str(description or ""),
            date=time.time() if date is None else float(date),
            is_completed=bool(is_completed),
        )

    @staticmethod
    def _insert(cur: sqlite3.Cursor, task: Task) -> None:
        cur.execute(
            """
            INSERT INTO tasks(id, title, description, date, is_completed)
            VALUES (?, ?, ?, ?, ?)
            """,
            (task.id, task.title, task.description, task.date, int(task.is_completed)),
        )

    @staticmethod
    def _select_one(cur: sqlite3.Cursor, task_id: str) -> Task | None:
        cur.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),))
        row = cur.fetchone()
        return TaskStore._row_to_task(row) if row else None

    @staticmethod
    def _failure(operation: str, exc: sqlite3.Error) -> PersistenceFailure:
        logger.exception("TaskStore %s failed", operation)
        return PersistenceFailure(operation=operation, message=str(exc))

    def _publish(self, kind: TaskEventKind, task: Task) -> None:
        self.events.publish(TaskEvent(kind=kind, task_id=task.id, task=dataclasses.replace(task)))

    # ---- public API: reads ----

    def count_tasks(self) -> int | PersistenceFailure:
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT COUNT(*) FROM tasks")
                (n,) = cur.fetchone()
                return int(n)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            return self._failure("count_tasks", exc)

    def count_uncompleted(self) -> int | PersistenceFailure:
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT COUNT(*) FROM tasks WHERE is_completed = 0")
                (n,) = cur.fetchone()
                return int(n)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            return self._failure("count_uncompleted", exc)

    def get_task(self, task_id: str) -> Task | NotFound | PersistenceFailure:
        try:
            conn = self._get_conn()
            try:
                task = self._select_one(conn.cursor(), task_id)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            return self._failure("get_task", exc)

        if task is None:
            logger.debug("Task not found id=%s", task_id)
            return NotFound(str(task_id))
        return task

    def list_tasks(self, *, completed: bool | None = None) -> list[Task] | PersistenceFailure:
        """
        All tasks, newest first.

        Ties on date are broken by title descending, then id descending,
        so the order is total and stable across calls.
        """
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                if completed is None:
                    cur.execute(f"SELECT * FROM tasks {_ORDER_BY}")
                else:
                    cur.execute(
                        f"SELECT * FROM tasks WHERE is_completed = ? {_ORDER_BY}",
                        (int(bool(completed)),),
                    )
                return [self._row_to_task(r) for r in cur.fetchall()]
            finally:
                conn.close()
        except sqlite3.Error as exc:
            return self._failure("list_tasks", exc)

    # ---- public API: writes ----

    def create_task(
        self,
        *,
        title: str = "",
        description: str = "",
        date: float | None = None,
        is_completed: bool = False,
    ) -> Task | PersistenceFailure:
        task = self._build_task(
            title=title,
            description=description,
            date=date,
            is_completed=is_completed,
        )

        with self._write_lock:
            try:
                conn = self._get_conn()
                try:
                    self._insert(conn.cursor(), task)
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                return self._failure("create_task", exc)

            logger.debug("Task created id=%s", task.id)
            self._publish(TaskEventKind.CREATED, task)
        return task

    def create_many(self, items: Iterable[Mapping[str, Any]]) -> list[Task] | PersistenceFailure:
        """
        Insert a batch of tasks in a single transaction.

        Either every task is committed or none is. Created events are
        published after the commit, in insert order.
        """
        tasks = [
            self._build_task(
                title=item.get("title", ""),
                description=item.get("description", ""),
                date=item.get("date"),
                is_completed=item.get("is_completed", False),
            )
            for item in items
        ]
        if not tasks:
            return []

        with self._write_lock:
            try:
                conn = self._get_conn()
                try:
                    cur = conn.cursor()
                    try:
                        for task in tasks:
                            self._insert(cur, task)
                        conn.commit()
                    except sqlite3.Error:
                        conn.rollback()
                        raise
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                return self._failure("create_many", exc)

            logger.info("Tasks created in batch count=%d", len(tasks))
            for task in tasks:
                self._publish(TaskEventKind.CREATED, task)
        return tasks

    def update_task(
        self,
        task_id: str,
        *,
        title: str = _UNSET,
        description: str = _UNSET,
        date: float = _UNSET,
        is_completed: bool = _UNSET,
    ) -> Task | NotFound | PersistenceFailure:
        """
        Apply a partial update.

        Updating a draft (see start_draft) commits it as soon as it has a
        non-empty title or description.
        """
        with self._write_lock:
            draft = self._drafts.get(task_id)
            if draft is not None:
                return self._update_draft(
                    draft,
                    title=title,
                    description=description,
                    date=date,
                    is_completed=is_completed,
                )

            try:
                conn = self._get_conn()
                try:
                    cur = conn.cursor()
                    task = self._select_one(cur, task_id)
                    if task is None:
                        return NotFound(str(task_id))

                    changed = self._apply(
                        task,
                        title=title,
                        description=description,
                        date=date,
                        is_completed=is_completed,
                    )
                    if not changed:
                        return task

                    cur.execute(
                        """
                        UPDATE tasks
                        SET title = ?, description = ?, date = ?, is_completed = ?
                        WHERE id = ?
                        """,
                        (task.title, task.description, task.date, int(task.is_completed), task.id),
                    )
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                return self._failure("update_task", exc)

            logger.debug("Task updated id=%s", task.id)
            self._publish(TaskEventKind.UPDATED, task)
        return task

    def toggle_completion(self, task_id: str) -> Task | NotFound | PersistenceFailure:
        with self._write_lock:
            try:
                conn = self._get_conn()
                try:
                    cur = conn.cursor()
                    task = self._select_one(cur, task_id)
                    if task is None:
                        return NotFound(str(task_id))

                    task.is_completed = not task.is_completed
                    cur.execute(
                        "UPDATE tasks SET is_completed = ? WHERE id = ?",
                        (int(task.is_completed), task.id),
                    )
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                return self._failure("toggle_completion", exc)

            logger.debug("Task toggled id=%s completed=%s", task.id, task.is_completed)
            self._publish(TaskEventKind.UPDATED, task)
        return task

    def delete_task(self, task_id: str) -> Task | NotFound | PersistenceFailure:
        """Remove a task permanently. Returns the removed task."""
        with self._write_lock:
            try:
                conn = self._get_conn()
                try:
                    cur = conn.cursor()
                    task = self._select_one(cur, task_id)
                    if task is None:
                        return NotFound(str(task_id))

                    cur.execute("DELETE FROM tasks WHERE id = ?", (task.id,))
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as exc:
                return self._failure("delete_task", exc)

            logger.debug("Task deleted id=%s", task.id)
            self._publish(TaskEventKind.DELETED, task)
        return task

    # ---- drafts (user-initiated creation) ----

    def start_draft(self) -> Task:
        """
        Allocate a new task without persisting it.

        The draft is invisible to reads and emits nothing until an update
        gives it a non-empty title or description.
        Pending drafts live until discard_uncommitted() or close(); past
        MAX_PENDING_DRAFTS the oldest one is dropped.
        """
        task = Task()
        with self._write_lock:
            while len(self._drafts) >= MAX_PENDING_DRAFTS:
                stale = next(iter(self._drafts))
                del self._drafts[stale]
                logger.debug("Draft evicted id=%s (too many pending drafts)", stale)
            self._drafts[task.id] = task
        logger.debug("Draft started id=%s", task.id)
        return dataclasses.replace(task)

    def discard_uncommitted(self, task: Task) -> Task | ValidationSkip | NotFound | PersistenceFailure:
        """
        Called when the creating context ends.

        A draft that never got content is dropped (ValidationSkip).
        A committed task is kept and returned as stored.
        """
        with self._write_lock:
            if self._drafts.pop(task.id, None) is not None:
                logger.debug("Draft discarded id=%s", task.id)
                return ValidationSkip(task.id)
        return self.get_task(task.id)

    def _update_draft(
        self,
        draft: Task,
        *,
        title: Any,
        description: Any,
        date: Any,
        is_completed: Any,
    ) -> Task | PersistenceFailure:
        self._apply(draft, title=title, description=description, date=date, is_completed=is_completed)
        if not draft.has_content():
            return dataclasses.replace(draft)

        try:
            conn = self._get_conn()
            try:
                self._insert(conn.cursor(), draft)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            return self._failure("update_task", exc)

        self._drafts.pop(draft.id, None)
        logger.debug("Draft committed id=%s", draft.id)
        self._publish(TaskEventKind.CREATED, draft)
        return dataclasses.replace(draft)

    @staticmethod
    def _apply(task: Task, *, title: Any, description: Any, date: Any, is_completed: Any) -> bool:
        changed = False
        if title is not _UNSET:
            task.title = str(title or "")
            changed = True
        if description is not _UNSET:
            task.description = str(description or "")
            changed = True
        if date is not _UNSET:
            task.date = float(date)
            changed = True
        if is_completed is not _UNSET:
            task.is_completed = bool(is_completed)
            changed = True
        return changed
