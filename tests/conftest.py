# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from tasklist.cli.bootstrap import create_initial_state
from tasklist.config import Settings
from tasklist.core.state import AppState
from tasklist.tasks.task_store import TaskStore

from .fakes import FakeGateway, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings built directly instead of from the environment,
    to keep unit tests isolated and deterministic.
    """
    return Settings(
        app_name="tasklist-test",
        log_level="DEBUG",
        backend="memory",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        latency_ms=0,
        failure_rate=0.0,
        console_enabled=False,
        show_completed=False,
    )


@pytest.fixture()
def state(settings: Settings) -> AppState:
    """AppState wired through the real composition root (memory backend)."""
    return create_initial_state(settings=settings)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def seeded_gateway() -> FakeGateway:
    """Three pending tasks with dense orders 0..2 (ids "1", "2", "3")."""
    return FakeGateway([make_task("1", 0), make_task("2", 1), make_task("3", 2)])


@pytest.fixture()
def store(gateway: FakeGateway) -> TaskStore:
    return TaskStore(gateway)


@pytest.fixture()
def seeded_store(seeded_gateway: FakeGateway) -> TaskStore:
    """Not loaded yet: call `await seeded_store.list()` first."""
    return TaskStore(seeded_gateway)
