# src/todolist/remote/adapter.py

from __future__ import annotations

from .client import DummyJsonClient
from ..tasks.task_models import RemoteTaskRecord


class DummyJsonTaskSource:
    """RemoteTaskSource backed by DummyJsonClient."""

    def __init__(self, client: DummyJsonClient) -> None:
        self._client = client

    async def fetch_tasks(self) -> list[RemoteTaskRecord]:
        response = await self._client.get_todos()
        return [
            RemoteTaskRecord(remote_id=t.id, text=t.todo, completed=t.completed)
            for t in response.todos
        ]
