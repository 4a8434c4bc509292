# src/tasklist/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..storage.memory_gateway import StaticCategoryLookup
from ..tasks.task_models import Task, ViewFilters
from ..tasks.task_store import TaskStore
from ..tasks.view import project_tasks


@dataclass
class AppState:
    """Everything a front-end session holds. Built by cli.bootstrap."""

    settings: object
    store: TaskStore
    categories: StaticCategoryLookup

    filters: ViewFilters = field(default_factory=ViewFilters)
    show_completed: bool = False

    def visible_tasks(self, today: date | None = None) -> list[Task]:
        """Current projected view; positions in it are what commands refer to."""
        return project_tasks(self.store.tasks, self.filters, self.show_completed, today=today)
