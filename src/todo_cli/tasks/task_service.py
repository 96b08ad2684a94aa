# src/todo_cli/tasks/task_service.py

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from ..core.clock import SystemClock
from ..core.ports import Clock, TaskRepo
from . import task_query, task_resolver
from .errors import ValidationError
from .task_models import (
    UNSET,
    Priority,
    Task,
    TaskChanges,
    merge_tags,
    normalize_description,
    normalize_title,
    validate_due_date,
    validate_task,
)
from .task_query import SortKey, TaskFilter
from .task_store import LoadResult

logger = logging.getLogger(__name__)


class TaskService:
    """
    Task lifecycle: add / update / complete / delete / list / get.

    Every mutating call is one load -> mutate -> save cycle against the
    repository. All validation runs before save, so a rejected call leaves the
    stored collection untouched.
    """

    def __init__(self, repository: TaskRepo, clock: Clock | None = None) -> None:
        self._repo = repository
        self._clock = clock or SystemClock()
        self.last_load: LoadResult | None = None

    def _load(self) -> list[Task]:
        self.last_load = self._repo.load()
        return self.last_load.tasks

    # ---- write paths ----

    def add(
        self,
        title: str,
        description: str | None = None,
        due_date: date | None = None,
        priority: Priority | str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Task:
        task = Task(
            id=uuid.uuid4(),
            title=normalize_title(title),
            created_at=self._clock.now(),
            description=normalize_description(description),
            due_date=validate_due_date(due_date, self._clock.today()),
            priority=_coerce_priority(priority) if priority is not None else Priority.MEDIUM,
            tags=merge_tags([], tags or []),
        )
        validate_task(task)

        tasks = self._load()
        tasks.append(task)
        self._repo.save(tasks)
        logger.info("Task added id=%s priority=%s tags=%s", task.id, task.priority, task.tags)
        return copy.deepcopy(task)

    def update(self, id_input: str, changes: TaskChanges | Mapping[str, Any]) -> Task:
        if not isinstance(changes, TaskChanges):
            changes = TaskChanges.from_mapping(changes)
        if changes.is_empty():
            raise ValidationError("changes", "No changes specified.")

        tasks = self._load()
        task = task_resolver.resolve(tasks, id_input)

        # Work on a copy so a failed validation leaves nothing half-applied.
        updated = copy.deepcopy(task)
        if changes.title is not UNSET:
            updated.title = normalize_title(changes.title)
        if changes.description is not UNSET:
            updated.description = normalize_description(changes.description)
        if changes.due_date is not UNSET:
            updated.due_date = validate_due_date(changes.due_date, self._clock.today())
        if changes.priority is not UNSET:
            updated.priority = _coerce_priority(changes.priority)
        if changes.add_tags is not UNSET:
            updated.add_tags(changes.add_tags or [])
        if changes.remove_tags is not UNSET:
            updated.remove_tags(changes.remove_tags or [])
        validate_task(updated)

        tasks[tasks.index(task)] = updated
        self._repo.save(tasks)
        logger.info("Task updated id=%s", updated.id)
        return copy.deepcopy(updated)

    def complete(self, id_input: str) -> Task:
        tasks = self._load()
        task = task_resolver.resolve(tasks, id_input)
        task.mark_complete(self._clock.now())

        self._repo.save(tasks)
        logger.info("Task completed id=%s after %s", task.id, task.completion_duration())
        return copy.deepcopy(task)

    def delete(self, id_input: str) -> Task:
        tasks = self._load()
        task = task_resolver.resolve(tasks, id_input)
        tasks.remove(task)

        self._repo.save(tasks)
        logger.info("Task deleted id=%s", task.id)
        return task

    # ---- read paths ----

    def list(
        self,
        task_filter: TaskFilter | None = None,
        sort: SortKey = SortKey.CREATED_AT,
    ) -> list[Task]:
        tasks = self._load()
        return [
            copy.deepcopy(t)
            for t in task_query.apply(tasks, task_filter, sort, today=self._clock.today())
        ]

    def get(self, id_input: str) -> Task:
        return copy.deepcopy(task_resolver.resolve(self._load(), id_input))


def _coerce_priority(value: Priority | str) -> Priority:
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        return Priority.parse(value)
    raise ValidationError("priority", f"Invalid priority {value!r}.")
