# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todolist.cli.bootstrap import create_initial_state
from todolist.core.state import AppState
from todolist.tasks.seed_flag import SeedFlag
from todolist.tasks.task_store import TaskStore

from .fakes import FakeRemoteSource, sample_records


@pytest.fixture()
def description_file(tmp_path: Path) -> Path:
    path = tmp_path / "description.txt"
    path.write_text("Imported from the remote list.\n", "utf-8")
    return path


@pytest.fixture()
def settings(tmp_path: Path, description_file: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap code.

    We intentionally use a SimpleNamespace rather than the real config,
    to keep unit tests isolated from the environment and any .env file.
    """
    return SimpleNamespace(
        app_name="todolist-test",
        log_level="DEBUG",
        console_enabled=False,
        seed_on_start=False,
        seed_retry_on_failure=False,
        remote_base_url="https://dummyjson.test",
        remote_todos_path="/todos",
        remote_connect_timeout=1.0,
        remote_read_timeout=1.0,
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "tasks.sqlite3",
        preferences_path=tmp_path / "data" / "preferences.json",
        description_asset_path=description_file,
    )


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def seed_flag(tmp_path: Path) -> SeedFlag:
    return SeedFlag(tmp_path / "preferences.json")


@pytest.fixture()
def remote_source() -> FakeRemoteSource:
    return FakeRemoteSource(sample_records())


@pytest.fixture()
def state(settings: SimpleNamespace, remote_source: FakeRemoteSource) -> AppState:
    """
    AppState wired with a fake remote source.

    NOTE: the SQLite store and the preferences file are real, because
    their correctness is part of what we want to test.
    """
    return create_initial_state(settings=settings, source=remote_source)
