# src/tasklist/storage/sqlite_gateway.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from collections.abc import Sequence
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from ..core.errors import GatewayUnavailableError, TaskNotFoundError, TaskValidationError
from ..tasks.task_models import Priority, Task, utcnow

logger = logging.getLogger(__name__)

# Task attribute -> column name ("order" is reserved in SQL).
_COLUMNS: dict[str, str] = {
    "title": "title",
    "completed": "completed",
    "completed_at": "completed_at",
    "priority": "priority",
    "category_id": "category_id",
    "due_date": "due_date",
    "created_at": "created_at",
    "order": "position",
}
_UPDATABLE = frozenset(_COLUMNS) - {"created_at"}


def _ts_to_db(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def _ts_from_db(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def _date_to_db(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _date_from_db(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        logger.warning("Ignoring malformed due_date in DB: %r", value)
        return None


def _to_db(name: str, value: Any) -> Any:
    if name in ("completed_at", "created_at"):
        return _ts_to_db(value)
    if name == "due_date":
        return _date_to_db(value)
    if name == "completed":
        return 1 if value else 0
    if name == "priority":
        return Priority.parse(value).value
    if name == "order":
        return int(value)
    return value


class SqliteTaskGateway:
    """
    SQLite-backed PersistenceGateway.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Each call opens its own short-lived connection and runs in a worker thread,
    so the event loop never blocks on disk I/O.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteTaskGateway ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    completed_at REAL,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    category_id TEXT,
                    due_date TEXT,
                    created_at REAL NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskGateway migration: added column %s", name)

            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("completed_at", "REAL")
            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("category_id", "TEXT")
            add_col("due_date", "TEXT")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("position", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_position ON tasks(position)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category_id)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            completed=bool(row["completed"]),
            completed_at=_ts_from_db(row["completed_at"]),
            priority=Priority.parse(row["priority"]),
            category_id=row["category_id"],
            due_date=_date_from_db(row["due_date"]),
            created_at=_ts_from_db(row["created_at"]) or datetime.fromtimestamp(0, tz=timezone.utc),
            order=int(row["position"] or 0),
        )

    @staticmethod
    def _row_id(task_id: str) -> int:
        try:
            return int(task_id)
        except (TypeError, ValueError):
            raise TaskNotFoundError(task_id) from None

    async def _run(self, operation: str, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.exception("SQLite %s failed db=%s", operation, self._db_path)
            raise GatewayUnavailableError(f"{operation} failed: {e}") from e

    # ---- sync implementations ----

    def _list_sync(self) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM tasks ORDER BY position ASC, created_at ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _get_sync(self, row_id: int) -> Task:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (row_id,)).fetchone()
            if row is None:
                raise TaskNotFoundError(str(row_id))
            return self._row_to_task(row)
        finally:
            conn.close()

    def _create_sync(self, fields: dict[str, Any]) -> Task:
        title = str(fields.get("title") or "").strip()
        if not title:
            raise TaskValidationError("title must not be blank")

        values = {name: fields.get(name) for name in _COLUMNS}
        values["title"] = title
        values["created_at"] = values["created_at"] or utcnow()
        values["order"] = values["order"] or 0

        names = list(values)
        sql = (
            f"INSERT INTO tasks({', '.join(_COLUMNS[n] for n in names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        conn = self._get_conn()
        try:
            cur = conn.execute(sql, [_to_db(n, values[n]) for n in names])
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise GatewayUnavailableError("SQLite did not return lastrowid for tasks insert")
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (rowid,)).fetchone()
            return self._row_to_task(row)
        finally:
            conn.close()

    def _update_sync(self, row_id: int, fields: dict[str, Any]) -> Task:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise TaskValidationError(f"fields not updatable: {', '.join(sorted(unknown))}")

        conn = self._get_conn()
        try:
            if fields:
                names = list(fields)
                assignments = ", ".join(f"{_COLUMNS[n]} = ?" for n in names)
                params = [_to_db(n, fields[n]) for n in names]
                cur = conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", (*params, row_id))
                conn.commit()
                if cur.rowcount == 0:
                    raise TaskNotFoundError(str(row_id))
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (row_id,)).fetchone()
            if row is None:
                raise TaskNotFoundError(str(row_id))
            return self._row_to_task(row)
        finally:
            conn.close()

    def _delete_sync(self, row_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (row_id,))
            conn.commit()
            if cur.rowcount == 0:
                raise TaskNotFoundError(str(row_id))
            return True
        finally:
            conn.close()

    # ---- PersistenceGateway ----

    async def list(self) -> Sequence[Task]:
        return await self._run("list", self._list_sync)

    async def get(self, task_id: str) -> Task:
        return await self._run("get", self._get_sync, self._row_id(task_id))

    async def create(self, fields: dict[str, Any]) -> Task:
        task = await self._run("create", self._create_sync, dict(fields))
        logger.debug("SQLite task inserted id=%s", task.id)
        return task

    async def update(self, task_id: str, fields: dict[str, Any]) -> Task:
        return await self._run("update", self._update_sync, self._row_id(task_id), dict(fields))

    async def delete(self, task_id: str) -> bool:
        return await self._run("delete", self._delete_sync, self._row_id(task_id))
