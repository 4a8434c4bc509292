# tests/test_memory_gateway.py

from __future__ import annotations

import random

import pytest

from tasklist.core.errors import GatewayUnavailableError, TaskNotFoundError, TaskValidationError
from tasklist.storage.memory_gateway import DEFAULT_CATEGORIES, InMemoryTaskGateway, StaticCategoryLookup
from tasklist.tasks.task_models import TaskDraft
from tasklist.tasks.task_store import TaskStore

from .fakes import make_task


@pytest.mark.asyncio
async def test_returns_copies() -> None:
    gw = InMemoryTaskGateway([make_task("1", 0)])

    listed = await gw.list()
    listed[0].title = "mutated by caller"

    assert (await gw.get("1")).title == "task 1"


@pytest.mark.asyncio
async def test_crud_and_errors() -> None:
    gw = InMemoryTaskGateway()

    with pytest.raises(TaskValidationError):
        await gw.create({"title": " "})

    t = await gw.create({"title": "x", "order": 0})
    assert t.priority.value == "medium"
    assert (await gw.update(t.id, {"title": "y"})).title == "y"

    with pytest.raises(TaskValidationError):
        await gw.update(t.id, {"id": "other"})

    assert await gw.delete(t.id) is True
    with pytest.raises(TaskNotFoundError):
        await gw.update(t.id, {"title": "z"})
    assert gw.calls["update"] == 3


@pytest.mark.asyncio
async def test_failure_rate_one_always_fails() -> None:
    gw = InMemoryTaskGateway([make_task("1", 0)], failure_rate=1.0)
    store = TaskStore(gw)

    with pytest.raises(GatewayUnavailableError):
        await store.list()
    with pytest.raises(GatewayUnavailableError):
        await gw.delete("1")
    gw.failure_rate = 0.0
    assert [t.id for t in await gw.list()] == ["1"]


@pytest.mark.asyncio
async def test_seeded_rng_makes_failures_reproducible() -> None:
    async def outcomes(seed: int) -> list[bool]:
        gw = InMemoryTaskGateway(failure_rate=0.5, rng=random.Random(seed))
        store = TaskStore(gw)
        out = []
        for i in range(10):
            try:
                await store.create(TaskDraft(title=f"t{i}"))
                out.append(True)
            except GatewayUnavailableError:
                out.append(False)
        return out

    assert await outcomes(7) == await outcomes(7)


@pytest.mark.asyncio
async def test_static_category_lookup() -> None:
    lookup = StaticCategoryLookup()
    cats = await lookup.get_all()
    assert [c.id for c in cats] == [c.id for c in DEFAULT_CATEGORIES]
    assert lookup.by_id("work").name == "Work"
    assert lookup.by_id(None) is None
