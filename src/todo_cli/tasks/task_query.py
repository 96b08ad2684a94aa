# src/todo_cli/tasks/task_query.py

"""
Filtering and sorting for task listings.

Clauses of a TaskFilter are ANDed together; the tag clause matches a task that
has ANY of the requested tags. Every sort ends with (created_at, id) so the
order is fully deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum

from .errors import ValidationError
from .task_models import Priority, Task


class StatusFilter(StrEnum):
    ALL = "all"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


class DueBucket(StrEnum):
    OVERDUE = "overdue"
    TODAY = "today"
    WITHIN = "within"


class SortKey(StrEnum):
    CREATED_AT = "created"
    DUE_DATE = "due"
    PRIORITY = "priority"


# CLI shorthands for DueBucket.WITHIN
DUE_WITHIN_ALIASES = {"week": 7, "month": 30}


@dataclass(frozen=True, slots=True)
class TaskFilter:
    status: StatusFilter = StatusFilter.ALL
    priority: Priority | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    due: DueBucket | None = None
    due_within_days: int | None = None
    include_undated: bool = False

    def __post_init__(self) -> None:
        if self.due is DueBucket.WITHIN:
            if self.due_within_days is None or self.due_within_days < 0:
                raise ValidationError("due", "Due-within filter needs a non-negative number of days.")
        object.__setattr__(self, "tags", frozenset(t.strip().lower() for t in self.tags))

    def matches(self, task: Task, today: date) -> bool:
        if self.status is StatusFilter.COMPLETE and not task.completed:
            return False
        if self.status is StatusFilter.INCOMPLETE and task.completed:
            return False

        if self.priority is not None and task.priority != self.priority:
            return False

        if self.tags and not any(t.lower() in self.tags for t in task.tags):
            return False

        if self.due is not None:
            return self._matches_due(task.due_date, today)
        return True

    def _matches_due(self, due: date | None, today: date) -> bool:
        if due is None:
            return self.include_undated
        if self.due is DueBucket.OVERDUE:
            return due < today
        if self.due is DueBucket.TODAY:
            return due == today
        return today <= due <= today + timedelta(days=self.due_within_days or 0)


def _sort_key(sort: SortKey):
    if sort is SortKey.PRIORITY:
        return lambda t: (-t.priority.rank, t.created_at, str(t.id))
    if sort is SortKey.DUE_DATE:
        # Undated tasks go last.
        return lambda t: (t.due_date is None, t.due_date or date.max, t.created_at, str(t.id))
    return lambda t: (t.created_at, str(t.id))


def apply(
    tasks: Iterable[Task],
    task_filter: TaskFilter | None = None,
    sort: SortKey = SortKey.CREATED_AT,
    *,
    today: date,
) -> list[Task]:
    """Return the matching tasks in sort order. Never mutates `tasks`."""
    flt = task_filter or TaskFilter()
    selected = [t for t in tasks if flt.matches(t, today)]
    selected.sort(key=_sort_key(sort))
    return selected
