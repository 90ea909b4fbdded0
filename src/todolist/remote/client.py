# src/todolist/remote/client.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dummyjson.com"
TODOS_PATH = "/todos"


class RemoteFetchError(Exception):
    """
    Any failure while fetching remote to-dos.

    Transport errors, bad HTTP status and malformed payloads all end up
    here; callers do not distinguish between them.
    """


@dataclass(frozen=True, slots=True)
class RemoteTodo:
    id: int
    todo: str
    completed: bool


@dataclass(frozen=True, slots=True)
class GetTodosResponse:
    todos: list[RemoteTodo]


def _make_timeout_obj(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=10.0,
        pool=connect_s,
    )


def _decode_todo(raw: Any) -> RemoteTodo:
    if not isinstance(raw, dict):
        raise RemoteFetchError(f"todo entry is not an object: {raw!r}")

    todo_id = raw.get("id")
    text = raw.get("todo")
    completed = raw.get("completed")

    # bool is a subclass of int; an id of true/false is not a valid id.
    if not isinstance(todo_id, int) or isinstance(todo_id, bool):
        raise RemoteFetchError(f"todo entry has invalid id: {todo_id!r}")
    if not isinstance(text, str):
        raise RemoteFetchError(f"todo entry has invalid text: {text!r}")
    if not isinstance(completed, bool):
        raise RemoteFetchError(f"todo entry has invalid completed flag: {completed!r}")

    return RemoteTodo(id=todo_id, todo=text, completed=completed)


def decode_get_todos(payload: Any) -> GetTodosResponse:
    """Decode a `GET /todos` body. Extra keys (total, skip, userId...) are ignored."""
    if not isinstance(payload, dict):
        raise RemoteFetchError("response body is not an object")
    todos = payload.get("todos")
    if not isinstance(todos, list):
        raise RemoteFetchError("response body has no 'todos' list")
    return GetTodosResponse(todos=[_decode_todo(t) for t in todos])


class DummyJsonClient:
    """
    Thin async client for the DummyJSON to-dos endpoint.

    - single GET, no auth, no pagination parameters
    - no retries (the seed import is fire-once)
    - `transport` is injectable so tests can use httpx.MockTransport
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        todos_path: str = TODOS_PATH,
        connect_timeout: float = 5.0,
        read_timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._todos_path = "/" + todos_path.lstrip("/")
        self._timeout = _make_timeout_obj(connect_s=float(connect_timeout), read_s=float(read_timeout))
        self._transport = transport

    @property
    def todos_url(self) -> str:
        return f"{self._base_url}{self._todos_path}"

    async def get_todos(self) -> GetTodosResponse:
        logger.info("Remote: GET %s", self.todos_url)
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(self._todos_path)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise RemoteFetchError(f"{exc.__class__.__name__}: {exc}") from exc
        except ValueError as exc:
            # response.json() on a non-JSON body
            raise RemoteFetchError(f"invalid JSON: {exc}") from exc

        decoded = decode_get_todos(payload)
        logger.info("Remote: received %d todos", len(decoded.todos))
        return decoded
