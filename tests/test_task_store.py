# tests/test_task_store.py

from __future__ import annotations

import sqlite3
import time
from pathlib import Path

import pytest

from todolist.core.results import NotFound, PersistenceFailure, ValidationSkip
from todolist.tasks.task_models import Task, TaskEvent, TaskEventKind
from todolist.tasks.task_store import MAX_PENDING_DRAFTS, TaskStore

from .fakes import EventRecorder


def test_create_uses_defaults_and_get_returns_same_fields(store: TaskStore) -> None:
    before = time.time()
    task = store.create_task()
    after = time.time()

    assert isinstance(task, Task)
    assert task.title == ""
    assert task.description == ""
    assert task.is_completed is False
    assert before <= task.date <= after

    loaded = store.get_task(task.id)
    assert loaded == task


def test_create_with_overrides(store: TaskStore) -> None:
    task = store.create_task(title="Write report", description="Q3 numbers", date=1000.0, is_completed=True)

    loaded = store.get_task(task.id)
    assert isinstance(loaded, Task)
    assert loaded.title == "Write report"
    assert loaded.description == "Q3 numbers"
    assert loaded.date == 1000.0
    assert loaded.is_completed is True


def test_ids_are_unique_over_store_lifetime(store: TaskStore) -> None:
    seen: set[str] = set()
    for i in range(25):
        task = store.create_task(title=f"t{i}")
        assert task.id not in seen
        seen.add(task.id)
        if i % 3 == 0:
            store.delete_task(task.id)

    assert len(seen) == 25


def test_list_orders_by_date_desc_then_title_desc(store: TaskStore) -> None:
    store.create_task(title="alpha", date=100.0)
    store.create_task(title="charlie", date=100.0)
    store.create_task(title="bravo", date=100.0)
    store.create_task(title="old", date=50.0)
    store.create_task(title="new", date=200.0)

    tasks = store.list_tasks()
    assert isinstance(tasks, list)
    assert [t.title for t in tasks] == ["new", "charlie", "bravo", "alpha", "old"]

    for a, b in zip(tasks, tasks[1:]):
        assert a.date > b.date or (a.date == b.date and a.title >= b.title)


def test_list_is_deterministic_for_identical_date_and_title(store: TaskStore) -> None:
    for _ in range(4):
        store.create_task(title="same", date=10.0)

    first = store.list_tasks()
    second = store.list_tasks()
    assert isinstance(first, list)
    assert [t.id for t in first] == [t.id for t in second]
    assert [t.id for t in first] == sorted((t.id for t in first), reverse=True)


def test_list_filters_by_completion(store: TaskStore) -> None:
    done = store.create_task(title="done", is_completed=True)
    open_ = store.create_task(title="open")

    assert [t.id for t in store.list_tasks(completed=True)] == [done.id]
    assert [t.id for t in store.list_tasks(completed=False)] == [open_.id]


def test_update_applies_partial_changes(store: TaskStore) -> None:
    task = store.create_task(title="Old title", description="keep me", date=5.0)

    updated = store.update_task(task.id, title="New title")
    assert isinstance(updated, Task)
    assert updated.title == "New title"
    assert updated.description == "keep me"
    assert updated.date == 5.0

    assert store.get_task(task.id) == updated


def test_update_missing_task_is_not_found(store: TaskStore) -> None:
    assert store.update_task("missing", title="x") == NotFound("missing")


def test_toggle_twice_restores_state_and_count(store: TaskStore) -> None:
    task = store.create_task(title="Toggle me")
    store.create_task(title="Other")
    assert store.count_uncompleted() == 2

    once = store.toggle_completion(task.id)
    assert isinstance(once, Task)
    assert once.is_completed is True
    assert store.count_uncompleted() == 1

    twice = store.toggle_completion(task.id)
    assert isinstance(twice, Task)
    assert twice.is_completed is False
    assert store.count_uncompleted() == 2


def test_toggle_missing_task_is_not_found(store: TaskStore) -> None:
    assert store.toggle_completion("nope") == NotFound("nope")


def test_delete_then_get_and_delete_again_are_not_found(store: TaskStore) -> None:
    task = store.create_task(title="Temporary")

    removed = store.delete_task(task.id)
    assert isinstance(removed, Task)
    assert removed.id == task.id

    assert store.get_task(task.id) == NotFound(task.id)
    assert store.delete_task(task.id) == NotFound(task.id)
    assert store.delete_task("never-existed") == NotFound("never-existed")
    assert store.count_tasks() == 0


def test_events_follow_commit_order(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    task = store.create_task(title="a")
    store.update_task(task.id, description="b")
    store.toggle_completion(task.id)
    store.delete_task(task.id)

    assert [e.kind for e in recorder.events] == [
        TaskEventKind.CREATED,
        TaskEventKind.UPDATED,
        TaskEventKind.UPDATED,
        TaskEventKind.DELETED,
    ]
    assert all(e.task_id == task.id for e in recorder.events)
    assert recorder.events[1].task is not None
    assert recorder.events[1].task.description == "b"
    assert recorder.events[2].task is not None
    assert recorder.events[2].task.is_completed is True


def test_not_found_operations_emit_nothing(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    store.update_task("x", title="y")
    store.toggle_completion("x")
    store.delete_task("x")

    assert recorder.events == []


def test_failing_listener_does_not_break_mutation(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()

    def broken(_event: TaskEvent) -> None:
        raise RuntimeError("listener bug")

    store.events.subscribe(broken)
    store.events.subscribe(recorder)

    task = store.create_task(title="still saved")
    assert isinstance(task, Task)
    assert store.get_task(task.id) == task
    assert recorder.kinds == ["created"]


def test_draft_is_invisible_and_discarded_without_persisting(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    draft = store.start_draft()
    assert draft.title == "" and draft.description == "" and draft.is_completed is False
    assert store.get_task(draft.id) == NotFound(draft.id)
    assert store.list_tasks() == []

    assert store.discard_uncommitted(draft) == ValidationSkip(draft.id)
    assert store.count_tasks() == 0
    assert recorder.events == []


def test_draft_with_only_empty_fields_stays_uncommitted(store: TaskStore) -> None:
    draft = store.start_draft()

    pending = store.update_task(draft.id, title="   ", description="")
    assert isinstance(pending, Task)
    assert store.count_tasks() == 0

    assert store.discard_uncommitted(draft) == ValidationSkip(draft.id)


def test_draft_commits_on_first_non_empty_field(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    draft = store.start_draft()
    committed = store.update_task(draft.id, title="Call mom")
    assert isinstance(committed, Task)
    assert committed.id == draft.id
    assert recorder.kinds == ["created"]

    # Later edits are regular updates.
    store.update_task(draft.id, description="Sunday")
    assert recorder.kinds == ["created", "updated"]

    kept = store.discard_uncommitted(draft)
    assert isinstance(kept, Task)
    assert kept.title == "Call mom"
    assert kept.description == "Sunday"
    assert store.count_tasks() == 1


def test_create_many_is_all_or_nothing(store: TaskStore, monkeypatch: pytest.MonkeyPatch) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    real_insert = TaskStore._insert
    calls = {"n": 0}

    def flaky_insert(cur: sqlite3.Cursor, task: Task) -> None:
        calls["n"] += 1
        if calls["n"] == 2:
            raise sqlite3.OperationalError("disk I/O error")
        real_insert(cur, task)

    monkeypatch.setattr(TaskStore, "_insert", staticmethod(flaky_insert))

    result = store.create_many([{"title": "one"}, {"title": "two"}, {"title": "three"}])
    assert isinstance(result, PersistenceFailure)
    assert result.operation == "create_many"
    assert store.count_tasks() == 0
    assert recorder.events == []


def test_create_many_emits_created_in_insert_order(store: TaskStore) -> None:
    recorder: EventRecorder[TaskEvent] = EventRecorder()
    store.events.subscribe(recorder)

    created = store.create_many(
        [
            {"title": "first", "date": 1.0},
            {"title": "second", "date": 1.0, "is_completed": True},
        ]
    )
    assert isinstance(created, list)
    assert [e.task_id for e in recorder.events] == [t.id for t in created]
    assert store.count_uncompleted() == 1


def test_tasks_survive_reopen(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    task = TaskStore(db).create_task(title="persisted", is_completed=True)

    reopened = TaskStore(db)
    assert reopened.get_task(task.id) == task


def test_storage_errors_are_returned_not_raised(store: TaskStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_conn() -> sqlite3.Connection:
        raise sqlite3.OperationalError("unable to open database file")

    monkeypatch.setattr(store, "_get_conn", broken_conn)

    assert isinstance(store.get_task("x"), PersistenceFailure)
    assert isinstance(store.list_tasks(), PersistenceFailure)
    assert isinstance(store.create_task(title="x"), PersistenceFailure)
    assert isinstance(store.toggle_completion("x"), PersistenceFailure)
    assert isinstance(store.delete_task("x"), PersistenceFailure)
    assert isinstance(store.count_uncompleted(), PersistenceFailure)


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "legacy.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE tasks (id TEXT PRIMARY KEY, title TEXT NOT NULL DEFAULT '', date REAL NOT NULL)")
    conn.execute("INSERT INTO tasks(id, title, date) VALUES ('legacy-1', 'Old task', 3.0)")
    conn.commit()
    conn.close()

    store = TaskStore(db)

    loaded = store.get_task("legacy-1")
    assert isinstance(loaded, Task)
    assert loaded.title == "Old task"
    assert loaded.description == ""
    assert loaded.is_completed is False
    assert store.count_uncompleted() == 1


def test_abandoned_drafts_are_capped(store: TaskStore) -> None:
    first = store.start_draft()
    for _ in range(MAX_PENDING_DRAFTS):
        store.start_draft()

    assert len(store._drafts) == MAX_PENDING_DRAFTS
    assert first.id not in store._drafts
    # the evicted draft can no longer be committed
    assert store.update_task(first.id, title="late") == NotFound(first.id)
    assert store.count_tasks() == 0


def test_close_drops_pending_drafts(store: TaskStore) -> None:
    draft = store.start_draft()
    store.close()

    assert store._drafts == {}
    assert store.discard_uncommitted(draft) == NotFound(draft.id)
