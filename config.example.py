# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TODO_APP_NAME": "App display name (default: todolist).",
    "TODO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Switches
    "TODO_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "TODO_SEED_ON_START": "Run the one-time remote import at startup (true/false, default: true).",
    "TODO_SEED_RETRY_ON_FAILURE": (
        "false (default): mark the store as seeded even when the import fails. "
        "true: leave it unseeded so the next start tries again."
    ),
    # Remote source
    "TODO_REMOTE_BASE_URL": "Remote base URL (default: https://dummyjson.com).",
    "TODO_REMOTE_TODOS_PATH": "Path of the to-dos collection (default: /todos).",
    "TODO_REMOTE_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "TODO_REMOTE_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 15).",
    # Paths (gitignored)
    "TODO_DATA_DIR": "Local data directory (default: .local/todolist).",
    "TODO_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "TODO_PREFERENCES_PATH": "Preferences JSON holding the seed flag (default: <data_dir>/preferences.json).",
    "TODO_DESCRIPTION_ASSET_PATH": "Text file used as description of imported tasks (default: bundled asset).",
}
