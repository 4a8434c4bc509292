# src/tasklist/core/errors.py

"""
Error taxonomy shared by the core and the persistence adapters.

Every failure the store surfaces is one of these kinds, so front-ends can map
them to a notification without inspecting messages.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for task engine errors."""


class TaskNotFoundError(TaskError):
    """Referenced task id is absent at the time of the call."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class TaskValidationError(TaskError):
    """Empty title or malformed field."""


class InvalidIndexError(TaskError):
    """Reorder index outside the sequence being reordered."""


class GatewayUnavailableError(TaskError):
    """Collaborator / transport failure."""


def friendly_error_message(exc: BaseException) -> str:
    """Short user-facing text for a failed operation."""
    if isinstance(exc, TaskNotFoundError):
        return "That task no longer exists."
    if isinstance(exc, TaskValidationError):
        return f"Invalid input: {exc}"
    if isinstance(exc, InvalidIndexError):
        return f"Invalid position: {exc}"
    if isinstance(exc, GatewayUnavailableError):
        return "Storage is unavailable right now. Please try again."
    return f"Unexpected error: {type(exc).__name__}"
