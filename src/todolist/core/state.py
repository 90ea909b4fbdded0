# src/todolist/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.seed_flag import SeedFlag
from ..tasks.task_store import TaskStore
from ..tasks.task_sync import TaskSyncService


@dataclass
class AppState:
    """
    Everything the connectors need, wired once by the composition root.

    There is no module-level store: consumers receive this object (or the
    single collaborator they need) explicitly.
    """

    settings: Any

    task_store: TaskStore
    seed_flag: SeedFlag
    sync_service: TaskSyncService

    # Serializes console commands with background notifications.
    lock: threading.RLock = field(default_factory=threading.RLock)
