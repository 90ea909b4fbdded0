# src/todolist/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the one-time seed import,
then starts the console REPL.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..cli.commands import describe_seed_outcome
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_sync import SeedEvent, SeedEventKind

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # TaskStore uses short-lived sqlite connections per call; close() only drops drafts.
    try:
        state.task_store.close()
    except Exception:
        logger.debug("TaskStore close failed.", exc_info=True)


def _log_seed_event(event: SeedEvent) -> None:
    if event.kind is SeedEventKind.STARTED:
        logger.info("Initial fetch started.")
    elif event.outcome is not None:
        logger.info("Initial fetch finished: %s", describe_seed_outcome(event.outcome))


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    state.sync_service.events.subscribe(_log_seed_event)

    if settings.seed_on_start:
        outcome = asyncio.run(state.sync_service.ensure_seeded())
        print(describe_seed_outcome(outcome))

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Nothing left to do after the initial import.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
