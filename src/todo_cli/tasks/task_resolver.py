# src/todo_cli/tasks/task_resolver.py

from __future__ import annotations

from collections.abc import Sequence

from .errors import AmbiguousIdError, TaskNotFoundError, TooShortIdError
from .task_models import Task

MIN_PREFIX_LENGTH = 4


def resolve(tasks: Sequence[Task], text: str) -> Task:
    """
    Map a full or partial task id to exactly one task.

    Matching is a case-sensitive prefix match against the canonical id string.
    Inputs shorter than MIN_PREFIX_LENGTH are rejected before any matching.
    """
    prefix = (text or "").strip()
    if len(prefix) < MIN_PREFIX_LENGTH:
        raise TooShortIdError(prefix, MIN_PREFIX_LENGTH)

    matches = [t for t in tasks if str(t.id).startswith(prefix)]
    if not matches:
        raise TaskNotFoundError(prefix)
    if len(matches) > 1:
        raise AmbiguousIdError(prefix, [(t.id, t.title) for t in matches])
    return matches[0]
