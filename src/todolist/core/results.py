# src/todolist/core/results.py

from __future__ import annotations

"""
Result values returned by the store and the sync service.

Storage and network problems never escape as exceptions: operations return
one of these values next to their normal result and the caller decides what
to show to the user.
"""

from dataclasses import dataclass
from typing import Any, TypeGuard


@dataclass(frozen=True, slots=True)
class NotFound:
    """Lookup/update/delete target is absent. Normal control flow, not an error."""

    task_id: str


@dataclass(frozen=True, slots=True)
class PersistenceFailure:
    """Local storage I/O failed. No automatic retry."""

    operation: str
    message: str


@dataclass(frozen=True, slots=True)
class RemoteFetchFailure:
    """Network or decode error while fetching the remote task collection."""

    message: str


@dataclass(frozen=True, slots=True)
class ValidationSkip:
    """An untouched new task was dropped instead of being persisted."""

    task_id: str


def is_failure(value: Any) -> TypeGuard[PersistenceFailure | RemoteFetchFailure]:
    """True for the storage and network error values (NotFound and ValidationSkip are not errors)."""
    return isinstance(value, (PersistenceFailure, RemoteFetchFailure))
