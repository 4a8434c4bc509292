# tests/test_view.py

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta

from tasklist.tasks.task_models import Priority, StatusFilter, ViewFilters
from tasklist.tasks.view import count_by_category, is_overdue, project_tasks, summarize_progress

from .fakes import make_task

TODAY = date(2026, 3, 15)
YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)


def _ids(tasks):
    return [t.id for t in tasks]


def test_overdue_excludes_today_and_includes_yesterday() -> None:
    due_today = make_task("today", 0, due_date=TODAY)
    due_yesterday = make_task("yesterday", 1, due_date=YESTERDAY)

    out = project_tasks(
        [due_today, due_yesterday],
        ViewFilters(status=StatusFilter.OVERDUE),
        True,
        today=TODAY,
    )

    assert _ids(out) == ["yesterday"]


def test_is_overdue_rules() -> None:
    assert is_overdue(make_task("a", 0, due_date=YESTERDAY), TODAY)
    assert not is_overdue(make_task("b", 0, due_date=TODAY), TODAY)
    assert not is_overdue(make_task("c", 0, due_date=TOMORROW), TODAY)
    assert not is_overdue(make_task("d", 0), TODAY)
    assert not is_overdue(make_task("e", 0, due_date=YESTERDAY, completed=True), TODAY)


def test_pending_sort_before_completed_then_by_order() -> None:
    tasks = [
        make_task("c1", 0, completed=True),
        make_task("p2", 3),
        make_task("c2", 1, completed=True),
        make_task("p1", 2),
    ]

    out = project_tasks(tasks, ViewFilters(), True, today=TODAY)

    assert _ids(out) == ["p1", "p2", "c1", "c2"]


def test_show_completed_off_hides_completed_even_with_completed_status() -> None:
    tasks = [make_task("p", 0), make_task("c", 1, completed=True)]

    assert _ids(project_tasks(tasks, ViewFilters(), False, today=TODAY)) == ["p"]
    assert project_tasks(tasks, ViewFilters(status=StatusFilter.COMPLETED), False, today=TODAY) == []
    assert _ids(project_tasks(tasks, ViewFilters(status=StatusFilter.COMPLETED), True, today=TODAY)) == ["c"]
    assert _ids(project_tasks(tasks, ViewFilters(status=StatusFilter.PENDING), True, today=TODAY)) == ["p"]


def test_filters_compose_with_and() -> None:
    tasks = [
        make_task("1", 0, title="Buy milk", priority=Priority.HIGH, category_id="shopping"),
        make_task("2", 1, title="buy stamps", priority=Priority.LOW, category_id="shopping"),
        make_task("3", 2, title="Write report", priority=Priority.HIGH, category_id="work"),
        make_task("4", 3, title="BUY flowers", priority=Priority.HIGH, category_id="personal"),
    ]

    f = ViewFilters(category="shopping", search="BUY", priority=Priority.HIGH)
    assert _ids(project_tasks(tasks, f, False, today=TODAY)) == ["1"]

    f = ViewFilters(search="buy")
    assert _ids(project_tasks(tasks, f, False, today=TODAY)) == ["1", "2", "4"]

    f = ViewFilters(priority="high")
    assert _ids(project_tasks(tasks, f, False, today=TODAY)) == ["1", "3", "4"]


def test_category_filter_compares_raw_ids() -> None:
    tasks = [make_task("1", 0, category_id="work"), make_task("2", 1)]

    assert _ids(project_tasks(tasks, ViewFilters(category="work"), False, today=TODAY)) == ["1"]
    assert _ids(project_tasks(tasks, ViewFilters(category="all"), False, today=TODAY)) == ["1", "2"]


def test_summarize_progress() -> None:
    now_local = datetime.combine(TODAY, time(12, 0)).astimezone()
    tasks = [
        make_task("p1", 0),
        make_task("p2", 1),
        replace(make_task("c1", 2, completed=True), completed_at=now_local),
        replace(make_task("old", 3, completed=True), completed_at=now_local - timedelta(days=3)),
    ]

    stats = summarize_progress(tasks, TODAY)

    assert stats.pending == 2
    assert stats.completed_today == 1
    assert stats.percent == 33


def test_summarize_progress_rounds_half_up_and_handles_nothing_pending() -> None:
    now_local = datetime.combine(TODAY, time(9, 0)).astimezone()
    done = replace(make_task("c", 0, completed=True), completed_at=now_local)
    pending = [make_task(str(i), i + 1) for i in range(7)]

    # 1 / 8 = 12.5% -> 13
    assert summarize_progress([done, *pending], TODAY).percent == 13
    assert summarize_progress([done], TODAY).percent == 0


def test_count_by_category() -> None:
    tasks = [
        make_task("1", 0, category_id="work"),
        make_task("2", 1, category_id="work"),
        make_task("3", 2),
    ]

    counts = count_by_category(tasks)

    assert counts.total == 3
    assert counts.by_category == {"work": 2, None: 1}
