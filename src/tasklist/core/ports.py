# src/tasklist/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store depends on Protocols instead of concrete storage.
Whether a gateway talks to SQLite, a remote API or a dict is invisible to it,
which also keeps tests free of real I/O.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from ..tasks.task_models import Category, Task


class PersistenceGateway(Protocol):
    """
    CRUD over Task records.

    Errors (tasklist.core.errors):
    - list:   GatewayUnavailableError
    - get:    TaskNotFoundError | GatewayUnavailableError
    - create: GatewayUnavailableError | TaskValidationError
    - update: TaskNotFoundError | TaskValidationError | GatewayUnavailableError
    - delete: TaskNotFoundError | GatewayUnavailableError

    `fields` dicts use Task attribute names (see Task.to_fields).
    Returned records are authoritative; the store stores them as-is.
    """

    async def list(self) -> Sequence[Task]: ...
    async def get(self, task_id: str) -> Task: ...
    async def create(self, fields: dict[str, Any]) -> Task: ...
    async def update(self, task_id: str, fields: dict[str, Any]) -> Task: ...
    async def delete(self, task_id: str) -> bool: ...


class CategoryLookup(Protocol):
    """Read-only category table. Categories are owned elsewhere."""

    async def get_all(self) -> Sequence[Category]: ...
