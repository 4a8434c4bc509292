# src/tasklist/tasks/view.py

"""
Display-side derivations over a task collection.

All functions are pure: (tasks, filters, today) -> result. They never touch
the store and are safe to re-run on every state change.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from .task_models import (
    ALL,
    CategoryCounts,
    ProgressStats,
    StatusFilter,
    Task,
    ViewFilters,
)


def is_overdue(task: Task, today: date | None = None) -> bool:
    """Not completed and due strictly before today. Due today is not overdue."""
    if task.completed or task.due_date is None:
        return False
    today = today or date.today()
    return task.due_date < today


def _matches(task: Task, filters: ViewFilters, today: date) -> bool:
    if filters.category != ALL and task.category_id != filters.category:
        return False

    needle = (filters.search or "").lower()
    if needle and needle not in task.title.lower():
        return False

    if filters.priority != ALL and task.priority != filters.priority:
        return False

    status = filters.status
    if status == StatusFilter.COMPLETED:
        return task.completed
    if status == StatusFilter.PENDING:
        return not task.completed
    if status == StatusFilter.OVERDUE:
        return is_overdue(task, today)
    return True


def project_tasks(
    tasks: Iterable[Task],
    filters: ViewFilters | None = None,
    show_completed: bool = False,
    *,
    today: date | None = None,
) -> list[Task]:
    """
    Filtered, sorted display list.

    Hidden completed tasks are dropped before the status filter runs, so
    status=completed with show_completed=False yields nothing.
    Sort: pending before completed, then ascending order.
    """
    filters = filters or ViewFilters()
    today = today or date.today()

    visible = [
        t
        for t in tasks
        if (show_completed or not t.completed) and _matches(t, filters, today)
    ]
    visible.sort(key=lambda t: (t.completed, t.order))
    return visible


def summarize_progress(tasks: Sequence[Task], today: date | None = None) -> ProgressStats:
    """
    Daily progress.

    completed_today counts tasks whose completion timestamp falls on today's
    local date. percent is completed_today / (completed_today + pending),
    rounded half up, and 0 when nothing is pending.
    """
    today = today or date.today()
    pending = sum(1 for t in tasks if not t.completed)
    completed_today = sum(
        1
        for t in tasks
        if t.completed
        and t.completed_at is not None
        and t.completed_at.astimezone().date() == today
    )
    percent = 0
    if pending > 0:
        percent = int(completed_today * 100 / (completed_today + pending) + 0.5)
    return ProgressStats(pending=pending, completed_today=completed_today, percent=percent)


def count_by_category(tasks: Iterable[Task]) -> CategoryCounts:
    counts = CategoryCounts()
    for t in tasks:
        counts.total += 1
        counts.by_category[t.category_id] = counts.by_category.get(t.category_id, 0) + 1
    return counts
