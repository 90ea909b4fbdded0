# src/todolist/tasks/task_models.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum


def new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class Task:
    """
    A to-do item.

    Every field has a default, so a freshly allocated Task is valid
    before anything is set on it. `id` is never reassigned.
    """

    id: str = field(default_factory=new_task_id)
    title: str = ""
    description: str = ""
    date: float = field(default_factory=time.time)
    is_completed: bool = False

    def has_content(self) -> bool:
        return bool(self.title.strip() or self.description.strip())


@dataclass(frozen=True, slots=True)
class RemoteTaskRecord:
    """Decoded remote to-do. The remote id is informational only."""

    remote_id: int
    text: str
    completed: bool


class TaskEventKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class TaskEvent:
    """
    Emitted by TaskStore after a committed mutation.

    `task` carries the full task for created/updated and the removed
    snapshot for deleted.
    """

    kind: TaskEventKind
    task_id: str
    task: Task | None = None
