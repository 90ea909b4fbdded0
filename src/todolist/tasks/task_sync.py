# src/todolist/tasks/task_sync.py

from __future__ import annotations

"""
One-time seed import.

On first start the local store is filled from the remote source. The
"seeded" flag is persisted, so later starts skip the network and serve
purely from the local store.

What happens to the flag after a failed fetch is a policy
(SeedRetryPolicy); the default keeps the historical behavior of marking
the store as seeded anyway, so a failing remote is not hit on every start.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from importlib import resources
from pathlib import Path

from ..core.events import EventBus
from ..core.ports import RemoteTaskSource, SeedFlagRepo, TaskSeedSink
from ..core.results import PersistenceFailure, RemoteFetchFailure, is_failure
from ..remote.client import RemoteFetchError
from .task_models import RemoteTaskRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = "Lorem ipsum dolor sit amet, consectetur adipiscing elit."
BUNDLED_DESCRIPTION_ASSET = "lorem-ipsum-3p.txt"


class SeedRetryPolicy(StrEnum):
    MARK_SEEDED = "mark_seeded"  # flag is set after the first attempt, whatever the outcome
    RETRY_ON_NEXT_START = "retry_on_next_start"  # flag is set only after a successful import


class SeedState(StrEnum):
    NOT_SEEDED = "not_seeded"
    SEEDED = "seeded"


@dataclass(frozen=True, slots=True)
class AlreadySeeded:
    pass


@dataclass(frozen=True, slots=True)
class Seeded:
    count: int


@dataclass(frozen=True, slots=True)
class SeedFailed:
    error: RemoteFetchFailure | PersistenceFailure


@dataclass(frozen=True, slots=True)
class SeedCancelled:
    pass


SeedOutcome = AlreadySeeded | Seeded | SeedFailed | SeedCancelled


class SeedEventKind(StrEnum):
    STARTED = "started"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class SeedEvent:
    kind: SeedEventKind
    outcome: SeedOutcome | None = None


class CancelToken:
    """Set by the owner of a seed run when it no longer wants the result."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class SeedHandle:
    """A seed run scheduled with TaskSyncService.start_seed()."""

    def __init__(self, task: asyncio.Task[SeedOutcome], token: CancelToken) -> None:
        self._task = task
        self._token = token

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        """Abandon the run. Nothing is written and on_done is not called."""
        self._token.cancel()
        self._task.cancel()

    async def wait(self) -> SeedOutcome:
        try:
            return await self._task
        except asyncio.CancelledError:
            return SeedCancelled()


def load_fallback_description(asset_path: str | Path | None = None) -> str:
    """
    Description used for imported tasks.

    Reads `asset_path` if given, else the bundled text asset. Falls back
    to PLACEHOLDER_DESCRIPTION when the asset is missing, unreadable or blank.
    """
    try:
        if asset_path is not None:
            text = Path(asset_path).read_text("utf-8")
        else:
            text = (
                resources.files("todolist.resources")
                .joinpath(BUNDLED_DESCRIPTION_ASSET)
                .read_text("utf-8")
            )
    except (OSError, UnicodeDecodeError):
        logger.warning("Description asset unavailable (%s); using placeholder", asset_path or "bundled")
        return PLACEHOLDER_DESCRIPTION

    text = text.strip()
    return text or PLACEHOLDER_DESCRIPTION


class TaskSyncService:
    """
    Bootstraps the local store from a remote source exactly once.

    Only this service writes the seed flag. Tasks are written through the
    store's batch insert, so a finished seed is either fully present or
    absent.
    """

    def __init__(
        self,
        store: TaskSeedSink,
        seed_flag: SeedFlagRepo,
        source: RemoteTaskSource,
        *,
        retry_policy: SeedRetryPolicy = SeedRetryPolicy.MARK_SEEDED,
        description_asset_path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._seed_flag = seed_flag
        self._source = source
        self._retry_policy = SeedRetryPolicy(retry_policy)
        self._description_asset_path = description_asset_path
        self._clock = clock
        self._lock = asyncio.Lock()
        # Covers a run whose flag write failed; the store is seeded for this process.
        self._seeded = False
        self.events: EventBus[SeedEvent] = EventBus("TaskSyncService")

    @property
    def retry_policy(self) -> SeedRetryPolicy:
        return self._retry_policy

    @property
    def state(self) -> SeedState:
        return SeedState.SEEDED if self._is_seeded() else SeedState.NOT_SEEDED

    async def ensure_seeded(self, cancel_token: CancelToken | None = None) -> SeedOutcome:
        """
        Run the seed import unless the flag says it already ran.

        Never raises for storage or network problems; they come back as
        SeedFailed. Concurrent callers are serialized, and the later ones
        see AlreadySeeded.
        """
        token = cancel_token or CancelToken()

        async with self._lock:
            if self._is_seeded():
                logger.debug("Seed skipped: already seeded")
                return AlreadySeeded()

            self.events.publish(SeedEvent(kind=SeedEventKind.STARTED))
            outcome = await self._seed(token)
            if isinstance(outcome, SeedCancelled):
                return outcome

            self.events.publish(SeedEvent(kind=SeedEventKind.FINISHED, outcome=outcome))
            return outcome

    def start_seed(self, on_done: Callable[[SeedOutcome], None] | None = None) -> SeedHandle:
        """
        Schedule ensure_seeded() on the running event loop.

        `on_done` is called with the outcome unless the handle was
        cancelled first.
        """
        loop = asyncio.get_running_loop()
        token = CancelToken()
        task = loop.create_task(self.ensure_seeded(token))

        def _done(t: asyncio.Task[SeedOutcome]) -> None:
            if token.cancelled or t.cancelled():
                logger.debug("Seed run abandoned; completion ignored")
                return
            exc = t.exception()
            if exc is not None:
                logger.error("Seed run crashed", exc_info=exc)
                return
            if on_done is not None:
                try:
                    on_done(t.result())
                except Exception:
                    logger.exception("Seed on_done callback failed")

        task.add_done_callback(_done)
        return SeedHandle(task, token)

    # ---- internals ----

    async def _seed(self, token: CancelToken) -> SeedOutcome:
        error: RemoteFetchFailure | None = None
        records: list[RemoteTaskRecord] = []

        try:
            records = await self._source.fetch_tasks()
        except RemoteFetchError as exc:
            logger.warning("Seed fetch failed: %s", exc)
            error = RemoteFetchFailure(str(exc))
        except Exception as exc:
            logger.exception("Seed fetch failed unexpectedly")
            error = RemoteFetchFailure(f"{exc.__class__.__name__}: {exc}")

        if token.cancelled:
            logger.info("Seed cancelled; discarding fetch result")
            return SeedCancelled()

        if error is not None:
            self._finish_attempt(success=False)
            return SeedFailed(error)

        description = load_fallback_description(self._description_asset_path)
        now_ts = self._clock()
        items = [
            {
                "title": record.text,
                "description": description,
                "date": now_ts,
                "is_completed": record.completed,
            }
            for record in records
        ]

        created = self._store.create_many(items)
        if isinstance(created, PersistenceFailure):
            self._finish_attempt(success=False)
            return SeedFailed(created)

        self._finish_attempt(success=True)
        logger.info("Seed imported %d task(s)", len(created))
        return Seeded(count=len(created))

    def _finish_attempt(self, *, success: bool) -> None:
        if not success and self._retry_policy is SeedRetryPolicy.RETRY_ON_NEXT_START:
            logger.info("Seed failed; flag left unset, will retry on next start")
            return

        self._seeded = True
        failure = self._seed_flag.mark_set()
        if is_failure(failure):
            logger.warning("Seed flag could not be persisted: %s", failure.message)

    def _is_seeded(self) -> bool:
        return self._seeded or self._seed_flag.is_set()
