# src/tasklist/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from ..core.errors import GatewayUnavailableError, TaskNotFoundError, TaskValidationError
from ..core.ports import PersistenceGateway
from .ordering import next_order, reorder_tasks
from .result_cache import ResultCache, cache_key
from .task_models import Priority, Task, TaskDraft, TaskPatch, utcnow

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Canonical in-memory task collection backed by a PersistenceGateway.

    Commit rules:
    - the collection changes only after a gateway call resolves successfully
      (reorder is the one optimistic exception, see reorder());
    - every successful create/update/delete clears the ResultCache before
      returning;
    - on failure the error propagates unchanged and nothing is committed.

    Concurrency:
    - calls are not serialized; each commit happens when its own gateway call
      resolves, so for the same id the last-resolved response wins.

    Recovery:
    - rollback() restores the snapshot taken before the last optimistic reorder;
    - resync() drops the cache and reloads everything from the gateway.
    """

    def __init__(self, gateway: PersistenceGateway, cache: ResultCache | None = None) -> None:
        self._gateway = gateway
        self._cache = cache if cache is not None else ResultCache()
        self._tasks: dict[str, Task] = {}
        self._generation = 0
        self._pending_orders: set[int] = set()
        self._snapshot: list[Task] | None = None

    # ---- introspection ----

    @property
    def tasks(self) -> list[Task]:
        """Snapshot of the canonical collection, ascending by order."""
        return [replace(t) for t in self._ordered()]

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ---- internal helpers ----

    def _ordered(self) -> list[Task]:
        return sorted(self._tasks.values(), key=lambda t: (t.order, t.created_at))

    def _invalidate(self) -> None:
        self._generation += 1
        self._cache.clear()

    def _reserve_order(self) -> int:
        # Orders held by creates still in flight count as taken.
        floor = max(self._pending_orders) + 1 if self._pending_orders else 0
        order = max(next_order(list(self._tasks.values())), floor)
        self._pending_orders.add(order)
        return order

    async def _load(self) -> list[Task]:
        # Refetch when a write commits while the read is in flight.
        while True:
            generation = self._generation
            try:
                records = list(await self._gateway.list())
            except Exception:
                logger.warning("TaskStore list failed", exc_info=True)
                raise
            if generation == self._generation:
                break
            logger.debug("TaskStore list raced with a write; refetching")

        self._tasks = {t.id: replace(t) for t in records}
        self._cache.set(cache_key("list"), tuple(replace(t) for t in records))
        logger.debug("TaskStore loaded %d tasks", len(records))
        return records

    async def _cached_query(
        self,
        operation: str,
        predicate: Callable[[Task], bool],
        *args: Any,
    ) -> list[Task]:
        key = cache_key(operation, *args)
        if key in self._cache:
            return [replace(t) for t in self._cache.get(key)]
        records = [t for t in await self.list() if predicate(t)]
        self._cache.set(key, tuple(replace(t) for t in records))
        return records

    @staticmethod
    def _clean_title(raw: Any) -> str:
        title = raw.strip() if isinstance(raw, str) else ""
        if not title:
            raise TaskValidationError("title must not be blank")
        return title

    @staticmethod
    def _clean_priority(raw: Any) -> Priority:
        try:
            return Priority(raw)
        except ValueError:
            raise TaskValidationError(f"unknown priority: {raw!r}") from None

    def _prepare_changes(self, current: Task, patch: TaskPatch) -> dict[str, Any]:
        changes = patch.changes()

        if "title" in changes:
            changes["title"] = self._clean_title(changes["title"])
        if "priority" in changes:
            changes["priority"] = self._clean_priority(changes["priority"])
        if "order" in changes:
            order = changes["order"]
            if not isinstance(order, int) or isinstance(order, bool) or order < 0:
                raise TaskValidationError(f"order must be a non-negative integer, got {order!r}")

        if "completed" in changes:
            completed = bool(changes["completed"])
            changes["completed"] = completed
            if completed and not current.completed:
                changes["completed_at"] = utcnow()
            elif not completed and current.completed:
                changes["completed_at"] = None

        if "completed_at" in changes:
            completed = changes.get("completed", current.completed)
            if completed != (changes["completed_at"] is not None):
                raise TaskValidationError("completed_at must be set exactly when completed is true")

        return changes

    # ---- reads ----

    async def list(self) -> list[Task]:
        """Full task list; served from cache until the next write."""
        key = cache_key("list")
        if key in self._cache:
            return [replace(t) for t in self._cache.get(key)]
        return await self._load()

    async def list_by_category(self, category_id: str | None) -> list[Task]:
        return await self._cached_query(
            "list_by_category", lambda t: t.category_id == category_id, category_id
        )

    async def list_completed(self) -> list[Task]:
        return await self._cached_query("list_completed", lambda t: t.completed)

    async def list_pending(self) -> list[Task]:
        return await self._cached_query("list_pending", lambda t: not t.completed)

    async def get(self, task_id: str) -> Task:
        """Single task straight from the gateway (uncached)."""
        try:
            return await self._gateway.get(task_id)
        except Exception:
            logger.warning("TaskStore get failed id=%s", task_id, exc_info=True)
            raise

    # ---- writes ----

    async def create(self, draft: TaskDraft) -> Task:
        title = self._clean_title(draft.title)
        order = self._reserve_order()
        fields: dict[str, Any] = {
            "title": title,
            "completed": False,
            "completed_at": None,
            "priority": Priority.parse(draft.priority),
            "category_id": draft.category_id,
            "due_date": draft.due_date,
            "created_at": utcnow(),
            "order": order,
        }

        try:
            task = await self._gateway.create(fields)
        except Exception:
            logger.warning("TaskStore create failed title=%r", title, exc_info=True)
            raise
        finally:
            self._pending_orders.discard(order)

        self._tasks[task.id] = replace(task)
        self._invalidate()
        logger.info("Task created id=%s order=%s", task.id, task.order)
        return task

    async def update(self, task_id: str, patch: TaskPatch) -> Task:
        """
        Apply a partial patch.

        A completed false->true transition stamps completed_at, true->false
        clears it, before the gateway sees the change. The gateway's echoed
        record replaces the in-memory one.
        """
        current = self._tasks.get(task_id)
        if current is None:
            raise TaskNotFoundError(task_id)

        changes = self._prepare_changes(current, patch)

        try:
            task = await self._gateway.update(task_id, changes)
        except Exception:
            logger.warning("TaskStore update failed id=%s fields=%s", task_id, sorted(changes), exc_info=True)
            raise

        if task_id in self._tasks:
            self._tasks[task_id] = replace(task)
        else:
            logger.debug("Task %s was deleted while its update was in flight", task_id)
        self._invalidate()
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return task

    async def delete(self, task_id: str) -> None:
        """Remove a task. Remaining order values are not renumbered."""
        if task_id not in self._tasks:
            raise TaskNotFoundError(task_id)

        try:
            deleted = await self._gateway.delete(task_id)
        except Exception:
            logger.warning("TaskStore delete failed id=%s", task_id, exc_info=True)
            raise
        if not deleted:
            raise GatewayUnavailableError(f"gateway did not confirm deletion of {task_id}")

        self._tasks.pop(task_id, None)
        self._invalidate()
        logger.info("Task deleted id=%s", task_id)

    async def reorder(
        self,
        source_index: int,
        dest_index: int,
        source_category_id: str | None = None,
        dest_category_id: str | None = None,
        *,
        sequence: Sequence[Task] | None = None,
    ) -> list[Task]:
        """
        Move a task within `sequence` (default: the whole collection by order).

        Pass the exact list being displayed; only its members are renumbered.
        The new order is applied in memory before it is persisted. When
        persisting fails the optimistic state stays in place and the error
        propagates; call rollback() or resync() to recover.
        """
        seq = list(sequence) if sequence is not None else self._ordered()
        result = reorder_tasks(seq, source_index, dest_index, source_category_id, dest_category_id)
        if source_index == dest_index:
            return result

        moved_id = seq[source_index].id
        previous_orders = {t.id: t.order for t in seq}

        self._snapshot = [replace(t) for t in self._ordered()]
        moved = next(t for t in result if t.id == moved_id)
        recategorize = source_category_id != dest_category_id
        for t in result:
            current = self._tasks.get(t.id)
            if current is None:
                continue
            if t.id == moved_id and recategorize:
                self._tasks[t.id] = replace(current, order=t.order, category_id=dest_category_id)
            else:
                self._tasks[t.id] = replace(current, order=t.order)

        patch = TaskPatch(order=moved.order)
        if recategorize:
            patch = TaskPatch(order=moved.order, category_id=dest_category_id)
        await self.update(moved_id, patch)

        shifted = [
            t for t in result
            if t.id != moved_id and t.id in self._tasks and previous_orders.get(t.id) != t.order
        ]
        if shifted:
            await asyncio.gather(*(self.update(t.id, TaskPatch(order=t.order)) for t in shifted))

        logger.info(
            "Task reordered id=%s %s->%s (%d renumbered)",
            moved_id,
            source_index,
            dest_index,
            len(shifted) + 1,
        )
        return result

    # ---- recovery ----

    def rollback(self) -> bool:
        """Restore the collection held before the last reorder."""
        if self._snapshot is None:
            return False
        self._tasks = {t.id: t for t in self._snapshot}
        self._snapshot = None
        logger.info("TaskStore rolled back to pre-reorder snapshot")
        return True

    async def resync(self) -> list[Task]:
        """Reload the collection from the gateway, bypassing the cache."""
        self._cache.clear()
        self._snapshot = None
        records = await self._load()
        logger.info("TaskStore resynced (%d tasks)", len(records))
        return list(records)
