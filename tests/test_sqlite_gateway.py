# tests/test_sqlite_gateway.py

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from tasklist.core.errors import TaskNotFoundError, TaskValidationError
from tasklist.storage.sqlite_gateway import SqliteTaskGateway
from tasklist.tasks.task_models import Priority, TaskDraft, TaskPatch
from tasklist.tasks.task_store import TaskStore


def _fields(title: str, order: int, **extra):
    base = {
        "title": title,
        "completed": False,
        "completed_at": None,
        "priority": Priority.MEDIUM,
        "category_id": None,
        "due_date": None,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "order": order,
    }
    base.update(extra)
    return base


@pytest.mark.asyncio
async def test_create_get_update_delete(tmp_path: Path) -> None:
    gw = SqliteTaskGateway(tmp_path / "tasks.sqlite3")

    created = await gw.create(_fields("Pay rent", 0, priority=Priority.HIGH, due_date=date(2026, 2, 1)))
    assert created.id
    assert created.title == "Pay rent"
    assert created.priority is Priority.HIGH
    assert created.due_date == date(2026, 2, 1)
    assert created.completed is False and created.completed_at is None

    fetched = await gw.get(created.id)
    assert fetched == created

    done_at = datetime(2026, 1, 2, 8, 30, tzinfo=timezone.utc)
    updated = await gw.update(created.id, {"completed": True, "completed_at": done_at, "category_id": "home"})
    assert updated.completed is True
    assert abs((updated.completed_at - done_at).total_seconds()) < 1e-3
    assert updated.category_id == "home"
    assert updated.title == "Pay rent"

    assert await gw.delete(created.id) is True
    with pytest.raises(TaskNotFoundError):
        await gw.get(created.id)
    with pytest.raises(TaskNotFoundError):
        await gw.delete(created.id)


@pytest.mark.asyncio
async def test_list_sorted_by_order(tmp_path: Path) -> None:
    gw = SqliteTaskGateway(tmp_path / "tasks.sqlite3")
    await gw.create(_fields("c", 2))
    await gw.create(_fields("a", 0))
    await gw.create(_fields("b", 1))

    assert [t.title for t in await gw.list()] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_errors(tmp_path: Path) -> None:
    gw = SqliteTaskGateway(tmp_path / "tasks.sqlite3")

    with pytest.raises(TaskValidationError):
        await gw.create(_fields("   ", 0))
    with pytest.raises(TaskNotFoundError):
        await gw.update("42", {"title": "x"})
    with pytest.raises(TaskNotFoundError):
        await gw.get("not-a-number")

    t = await gw.create(_fields("x", 0))
    with pytest.raises(TaskValidationError):
        await gw.update(t.id, {"created_at": datetime.now(timezone.utc)})


@pytest.mark.asyncio
async def test_empty_update_echoes_record(tmp_path: Path) -> None:
    gw = SqliteTaskGateway(tmp_path / "tasks.sqlite3")
    t = await gw.create(_fields("x", 0))
    assert await gw.update(t.id, {}) == t


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE tasks (id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL)")
    conn.execute("INSERT INTO tasks(title) VALUES ('legacy')")
    conn.commit()
    conn.close()

    SqliteTaskGateway(db)

    conn = sqlite3.connect(db)
    cols = {row[1] for row in conn.execute("PRAGMA table_info(tasks)")}
    conn.close()
    assert {"completed", "priority", "category_id", "due_date", "created_at", "position"} <= cols


@pytest.mark.asyncio
async def test_store_over_sqlite_persists_reorder(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(SqliteTaskGateway(db))
    for title in ("one", "two", "three"):
        await store.create(TaskDraft(title=title))
    await store.update(store.tasks[1].id, TaskPatch(completed=True))

    await store.reorder(0, 2)

    reopened = TaskStore(SqliteTaskGateway(db))
    tasks = await reopened.list()
    assert [(t.title, t.order) for t in tasks] == [("two", 0), ("three", 1), ("one", 2)]
    assert [t.completed for t in tasks] == [True, False, False]
    assert all(t.completed == (t.completed_at is not None) for t in tasks)
