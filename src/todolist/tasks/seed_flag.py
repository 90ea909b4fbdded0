# src/todolist/tasks/seed_flag.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.results import PersistenceFailure

logger = logging.getLogger(__name__)

SEED_FLAG_KEY = "isInitialFetchCompleted"


class SeedFlag:
    """
    Process-wide "initial fetch completed" flag.

    Stored as one key in a small JSON preferences file, separate from the
    task database. A missing or unreadable file reads as "not set".
    """

    def __init__(self, path: str | Path, *, key: str = SEED_FLAG_KEY) -> None:
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Preferences unreadable at %s; treating as empty", self._path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def is_set(self) -> bool:
        return bool(self._read_all().get(self._key, False))

    def mark_set(self) -> None | PersistenceFailure:
        data = self._read_all()
        data[self._key] = True
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.exception("Failed to persist %s to %s", self._key, self._path)
            with contextlib.suppress(OSError):
                self._path.with_suffix(".tmp").unlink(missing_ok=True)
            return PersistenceFailure(operation="mark_seeded", message=str(exc))

        logger.info("Preference %s set in %s", self._key, self._path)
        return None
