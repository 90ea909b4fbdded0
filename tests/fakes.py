# tests/fakes.py

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from todolist.tasks.task_models import RemoteTaskRecord

E = TypeVar("E")


class FakeRemoteSource:
    """
    Deterministic RemoteTaskSource for unit tests.

    - returns `records` or raises `error`
    - counts calls
    - optional `gate` lets a test hold the fetch "in flight"
    """

    def __init__(
        self,
        records: list[RemoteTaskRecord] | None = None,
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.records = list(records or [])
        self.error = error
        self.gate = gate
        self.calls = 0

    async def fetch_tasks(self) -> list[RemoteTaskRecord]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.records)


class EventRecorder(Generic[E]):
    """Listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[E] = []

    def __call__(self, event: E) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[str]:
        return [str(getattr(e, "kind")) for e in self.events]


def sample_records() -> list[RemoteTaskRecord]:
    return [
        RemoteTaskRecord(remote_id=1, text="Buy milk", completed=False),
        RemoteTaskRecord(remote_id=2, text="Pay bills", completed=True),
    ]
