# src/tasklist/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum, StrEnum
from typing import Any, Final


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, raw: str | Priority | None) -> Priority:
        """Unset or unknown values fall back to MEDIUM."""
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


class StatusFilter(StrEnum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"
    OVERDUE = "overdue"


ALL: Final = "all"


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Task:
    id: str
    title: str
    completed: bool
    completed_at: datetime | None
    priority: Priority
    category_id: str | None
    due_date: date | None
    created_at: datetime
    order: int

    def to_fields(self) -> dict[str, Any]:
        """All attributes except `id`, as passed to a gateway."""
        return {
            "title": self.title,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "priority": self.priority,
            "category_id": self.category_id,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "order": self.order,
        }


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """Creation input. `title` is validated by the store, not here."""

    title: str
    priority: Priority = Priority.MEDIUM
    category_id: str | None = None
    due_date: date | None = None


@dataclass(slots=True, frozen=True)
class TaskPatch:
    """
    Partial update.

    Every attribute defaults to UNSET ("not mentioned"). None is a real value
    and clears optional fields such as due_date or category_id.
    """

    title: str | _Unset = UNSET
    completed: bool | _Unset = UNSET
    completed_at: datetime | None | _Unset = UNSET
    priority: Priority | _Unset = UNSET
    category_id: str | None | _Unset = UNSET
    due_date: date | None | _Unset = UNSET
    order: int | _Unset = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(slots=True, frozen=True)
class Category:
    id: str
    name: str
    color: str
    icon: str


@dataclass(slots=True)
class ViewFilters:
    """Active filter set. Every predicate must match (logical AND)."""

    category: str = ALL
    search: str = ""
    priority: Priority | str = ALL
    status: StatusFilter = StatusFilter.ALL


@dataclass(slots=True, frozen=True)
class ProgressStats:
    pending: int
    completed_today: int
    percent: int


@dataclass(slots=True)
class CategoryCounts:
    total: int = 0
    by_category: dict[str | None, int] = field(default_factory=dict)
