# src/todolist/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No network or disk access at import time besides reading .env.
- Paths default to a local, gitignored data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TODO"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_optional_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Switches ----
    console_enabled: bool
    seed_on_start: bool
    seed_retry_on_failure: bool

    # ---- Remote source ----
    remote_base_url: str
    remote_todos_path: str
    remote_connect_timeout: float
    remote_read_timeout: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    preferences_path: Path
    description_asset_path: Optional[Path]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todolist").strip() or "todolist"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        seed_on_start = _env_bool(_k("SEED_ON_START"), True)
        seed_retry_on_failure = _env_bool(_k("SEED_RETRY_ON_FAILURE"), False)

        remote_base_url = _env(_k("REMOTE_BASE_URL"), "https://dummyjson.com").strip()
        remote_todos_path = _env(_k("REMOTE_TODOS_PATH"), "/todos").strip() or "/todos"
        remote_connect_timeout = _env_float(_k("REMOTE_CONNECT_TIMEOUT_SECONDS"), 5.0)
        remote_read_timeout = _env_float(_k("REMOTE_READ_TIMEOUT_SECONDS"), 15.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todolist"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        preferences_path = _env_path(_k("PREFERENCES_PATH"), data_dir / "preferences.json")
        description_asset_path = _env_optional_path(_k("DESCRIPTION_ASSET_PATH"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            seed_on_start=seed_on_start,
            seed_retry_on_failure=seed_retry_on_failure,
            remote_base_url=remote_base_url,
            remote_todos_path=remote_todos_path,
            remote_connect_timeout=remote_connect_timeout,
            remote_read_timeout=remote_read_timeout,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            preferences_path=preferences_path,
            description_asset_path=description_asset_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
