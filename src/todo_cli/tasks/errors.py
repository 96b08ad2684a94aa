# src/todo_cli/tasks/errors.py

"""
Error taxonomy for the task store.

Every error carries a one-line, user-facing `message`. The CLI prints that
message and nothing else; OS error text stays in the log file.
"""

from __future__ import annotations

from uuid import UUID


class TodoError(Exception):
    """Base class for all expected task-store failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TodoError):
    """A field failed a constraint (title length, tag format, past due date...)."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


# ---- identifier resolution ----


class ResolveError(TodoError):
    pass


class TooShortIdError(ResolveError):
    def __init__(self, text: str, min_length: int) -> None:
        super().__init__(f"Task ID must be at least {min_length} characters (got '{text}').")
        self.text = text
        self.min_length = min_length


class TaskNotFoundError(ResolveError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Task not found: {text}")
        self.text = text


class AmbiguousIdError(ResolveError):
    """More than one task id starts with the given prefix."""

    def __init__(self, text: str, matches: list[tuple[UUID, str]]) -> None:
        super().__init__(
            f"Ambiguous ID '{text}' matches {len(matches)} tasks. Use a longer prefix."
        )
        self.text = text
        self.matches = matches


# ---- state ----


class AlreadyCompleteError(TodoError):
    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"Task {str(task_id)[:8]} is already completed.")
        self.task_id = task_id


# ---- persistence ----


class FormatError(TodoError):
    """The tasks document is structurally invalid."""


class RepositoryError(TodoError):
    pass


class UnrecoverableStoreError(RepositoryError):
    """Both the primary file and its backup failed to decode."""


class StorageIOError(RepositoryError):
    """Reading or writing the tasks file failed at the OS level."""
