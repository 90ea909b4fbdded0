"""
Task subsystem.

Components:
- task_models.py: data structures (Task, RemoteTaskRecord, TaskEvent)
- task_store.py: SQLite-backed storage with change events
- seed_flag.py: persisted "initial fetch completed" flag
- task_sync.py: one-time seed import from the remote source
"""
