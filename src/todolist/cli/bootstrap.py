# src/todolist/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store, seed flag, remote source, sync).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..remote.adapter import DummyJsonTaskSource
from ..remote.client import DummyJsonClient
from ..tasks.seed_flag import SeedFlag
from ..tasks.task_store import TaskStore
from ..tasks.task_sync import SeedRetryPolicy, TaskSyncService

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def retry_policy_from_settings(settings) -> SeedRetryPolicy:
    if getattr(settings, "seed_retry_on_failure", False):
        return SeedRetryPolicy.RETRY_ON_NEXT_START
    return SeedRetryPolicy.MARK_SEEDED


def create_initial_state(*, settings=None, source=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the remote source) injectable makes the app easier
    to test and avoids hidden global config reads. If settings is None,
    falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if source is None:
        client = DummyJsonClient(
            base_url=settings.remote_base_url,
            todos_path=settings.remote_todos_path,
            connect_timeout=settings.remote_connect_timeout,
            read_timeout=settings.remote_read_timeout,
        )
        source = DummyJsonTaskSource(client)

    task_store = TaskStore(settings.tasks_db_path)
    seed_flag = SeedFlag(settings.preferences_path)
    sync_service = TaskSyncService(
        task_store,
        seed_flag,
        source,
        retry_policy=retry_policy_from_settings(settings),
        description_asset_path=getattr(settings, "description_asset_path", None),
    )

    logger.info(
        "State ready: db=%s preferences=%s seed=%s policy=%s",
        settings.tasks_db_path,
        settings.preferences_path,
        sync_service.state.value,
        sync_service.retry_policy.value,
    )
    return AppState(
        settings=settings,
        task_store=task_store,
        seed_flag=seed_flag,
        sync_service=sync_service,
    )
