# src/tasklist/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the persistence gateway and wires it into a TaskStore,
- builds the AppState the console front-end works on.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import PersistenceGateway
from ..core.state import AppState
from ..storage.memory_gateway import InMemoryTaskGateway, StaticCategoryLookup
from ..storage.sqlite_gateway import SqliteTaskGateway
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_gateway(settings: Settings) -> PersistenceGateway:
    if settings.backend == "memory":
        logger.info(
            "Using in-memory gateway (latency=%sms failure_rate=%.2f)",
            settings.latency_ms,
            settings.failure_rate,
        )
        return InMemoryTaskGateway(
            latency_s=settings.latency_ms / 1000.0,
            failure_rate=settings.failure_rate,
        )
    return SqliteTaskGateway(settings.tasks_db_path)


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        store=TaskStore(build_gateway(settings)),
        categories=StaticCategoryLookup(),
        show_completed=settings.show_completed,
    )
