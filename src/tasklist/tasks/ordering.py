# src/tasklist/tasks/ordering.py

"""
Reorder protocol.

A drag gesture arrives as "move the task at position A to position B,
optionally into category C". The result is the same sequence with the task
moved and every task relabelled `order = position`.

Only the sequence passed in is relabelled. Callers pass exactly the slice they
render, so filtered-out tasks keep their previous order value.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from ..core.errors import InvalidIndexError
from .task_models import Task


def reorder_tasks(
    tasks: Sequence[Task],
    source_index: int,
    dest_index: int,
    source_category_id: str | None = None,
    dest_category_id: str | None = None,
) -> list[Task]:
    """
    Return a new list with the task at source_index moved to dest_index.

    - source_index outside [0, len) -> InvalidIndexError
    - dest_index past the end is clamped to the last position; negative -> InvalidIndexError
    - source_index == dest_index -> input returned unchanged
    - differing category ids move the task into dest_category_id

    Input Task objects are never mutated.
    """
    n = len(tasks)
    if not 0 <= source_index < n:
        raise InvalidIndexError(f"source index {source_index} out of range for {n} tasks")
    if dest_index < 0:
        raise InvalidIndexError(f"destination index {dest_index} is negative")

    if source_index == dest_index:
        return list(tasks)

    remaining = list(tasks)
    moved = remaining.pop(source_index)
    if source_category_id != dest_category_id:
        moved = replace(moved, category_id=dest_category_id)

    remaining.insert(min(dest_index, len(remaining)), moved)

    return [
        t if t.order == pos else replace(t, order=pos)
        for pos, t in enumerate(remaining)
    ]


def next_order(tasks: Sequence[Task]) -> int:
    """Order value for a newly appended task (== len(tasks) while dense)."""
    if not tasks:
        return 0
    return max(t.order for t in tasks) + 1
