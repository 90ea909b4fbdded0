# tests/test_results.py

from __future__ import annotations

from todolist.core.results import NotFound, PersistenceFailure, RemoteFetchFailure, ValidationSkip, is_failure
from todolist.tasks.task_models import Task


def test_is_failure_only_for_storage_and_network_errors() -> None:
    assert is_failure(PersistenceFailure(operation="create_task", message="disk full"))
    assert is_failure(RemoteFetchFailure("offline"))

    assert not is_failure(NotFound("x"))
    assert not is_failure(ValidationSkip("x"))
    assert not is_failure(Task(title="ok"))
    assert not is_failure(None)
