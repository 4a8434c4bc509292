# src/tasklist/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console front-end on an
asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..cli.console import run_console_loop
from ..config import get_settings
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(
        log_dir=settings.data_dir,
        log_name=settings.app_name,
        console_level=settings.log_level,
    )

    logger.info("Starting %s (backend=%s, log=%s)...", settings.app_name, settings.backend, log_file)

    state = create_initial_state(settings=settings)

    if not settings.console_enabled:
        logger.info("Console disabled; nothing to run.")
        return

    try:
        asyncio.run(run_console_loop(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
