# src/todolist/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Consumers depend on the narrowest Protocol they need instead of a concrete
store. This keeps storage and the remote source swappable and makes testing
easier.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from ..tasks.task_models import RemoteTaskRecord, Task
from .results import NotFound, PersistenceFailure, ValidationSkip


class TaskReader(Protocol):
    """Read side of the task store (list screen, details screen)."""

    def get_task(self, task_id: str) -> Task | NotFound | PersistenceFailure: ...
    def list_tasks(self, *, completed: bool | None = None) -> list[Task] | PersistenceFailure: ...
    def count_uncompleted(self) -> int | PersistenceFailure: ...


class TaskEditor(Protocol):
    """What a task-details editor needs: drafts and partial updates."""

    def start_draft(self) -> Task: ...
    def update_task(self, task_id: str, **changes: Any) -> Task | NotFound | PersistenceFailure: ...
    def discard_uncommitted(self, task: Task) -> Task | ValidationSkip | NotFound | PersistenceFailure: ...


class TaskListActions(Protocol):
    """What a task-list screen needs besides reading."""

    def toggle_completion(self, task_id: str) -> Task | NotFound | PersistenceFailure: ...
    def delete_task(self, task_id: str) -> Task | NotFound | PersistenceFailure: ...


class TaskSeedSink(Protocol):
    """Batch insert used by the seed import."""

    def create_many(self, items: Iterable[Mapping[str, Any]]) -> list[Task] | PersistenceFailure: ...


class SeedFlagRepo(Protocol):
    def is_set(self) -> bool: ...
    def mark_set(self) -> None | PersistenceFailure: ...


class RemoteTaskSource(Protocol):
    """
    One read-only request returning the remote collection.

    Implementations raise RemoteFetchError for any transport or decode problem.
    """

    async def fetch_tasks(self) -> list[RemoteTaskRecord]: ...
