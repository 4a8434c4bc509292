# src/tasklist/storage/memory_gateway.py

"""
In-process gateways.

InMemoryTaskGateway behaves like a remote API without the network: every call
can be delayed and can fail at random, which is how the UI's optimistic paths
get exercised in demos.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from ..core.errors import GatewayUnavailableError, TaskNotFoundError, TaskValidationError
from ..tasks.task_models import Category, Priority, Task, utcnow

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset(
    {"title", "completed", "completed_at", "priority", "category_id", "due_date", "order"}
)

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="work", name="Work", color="#5B21B6", icon="Briefcase"),
    Category(id="personal", name="Personal", color="#0EA5E9", icon="User"),
    Category(id="shopping", name="Shopping", color="#F59E0B", icon="ShoppingCart"),
    Category(id="health", name="Health", color="#10B981", icon="Heart"),
)


class InMemoryTaskGateway:
    """
    Dict-backed PersistenceGateway.

    - latency_s: delay applied to every call (asyncio.sleep)
    - failure_rate: probability in [0, 1] that a call raises GatewayUnavailableError
    - calls: per-operation call counter
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        *,
        latency_s: float = 0.0,
        failure_rate: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._tasks: dict[str, Task] = {t.id: replace(t) for t in tasks}
        self.latency_s = max(0.0, float(latency_s))
        self.failure_rate = min(1.0, max(0.0, float(failure_rate)))
        self._rng = rng or random.Random()
        self.calls: Counter[str] = Counter()

    async def _io(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if self.failure_rate and self._rng.random() < self.failure_rate:
            logger.debug("InMemoryTaskGateway simulated failure op=%s", operation)
            raise GatewayUnavailableError(f"simulated failure during {operation}")

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list(self) -> Sequence[Task]:
        await self._io("list")
        return [replace(t) for t in sorted(self._tasks.values(), key=lambda t: (t.order, t.created_at))]

    async def get(self, task_id: str) -> Task:
        await self._io("get")
        return replace(self._require(task_id))

    async def create(self, fields: dict[str, Any]) -> Task:
        await self._io("create")
        title = str(fields.get("title") or "").strip()
        if not title:
            raise TaskValidationError("title must not be blank")

        task = Task(
            id=uuid.uuid4().hex,
            title=title,
            completed=bool(fields.get("completed", False)),
            completed_at=fields.get("completed_at"),
            priority=Priority.parse(fields.get("priority")),
            category_id=fields.get("category_id"),
            due_date=fields.get("due_date"),
            created_at=fields.get("created_at") or utcnow(),
            order=int(fields.get("order", len(self._tasks))),
        )
        self._tasks[task.id] = task
        return replace(task)

    async def update(self, task_id: str, fields: dict[str, Any]) -> Task:
        await self._io("update")
        current = self._require(task_id)
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise TaskValidationError(f"fields not updatable: {', '.join(sorted(unknown))}")
        updated = replace(current, **fields)
        self._tasks[task_id] = updated
        return replace(updated)

    async def delete(self, task_id: str) -> bool:
        await self._io("delete")
        self._require(task_id)
        del self._tasks[task_id]
        return True


class StaticCategoryLookup:
    """CategoryLookup over a fixed table."""

    def __init__(self, categories: Iterable[Category] = DEFAULT_CATEGORIES) -> None:
        self._categories = tuple(categories)

    async def get_all(self) -> Sequence[Category]:
        return list(self._categories)

    def by_id(self, category_id: str | None) -> Category | None:
        for c in self._categories:
            if c.id == category_id:
                return c
        return None
