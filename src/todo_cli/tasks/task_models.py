# src/todo_cli/tasks/task_models.py

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID

from .errors import AlreadyCompleteError, ValidationError

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
TAG_MAX_LENGTH = 20
MAX_TAGS = 10
SHORT_ID_LENGTH = 8

_TAG_RE = re.compile(r"^[a-z0-9_-]+$")

# Marks a TaskChanges field as "not supplied" (None means "clear").
UNSET: Any = object()


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Higher is more important."""
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: str) -> Priority:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValidationError("priority", f"Invalid priority '{raw}'. Allowed: {allowed}.") from None


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}


@dataclass(slots=True)
class Task:
    id: UUID
    title: str
    created_at: datetime
    description: str | None = None
    due_date: date | None = None
    completed: bool = False
    completed_at: datetime | None = None
    priority: Priority = Priority.MEDIUM
    tags: list[str] = field(default_factory=list)

    @property
    def short_id(self) -> str:
        return str(self.id)[:SHORT_ID_LENGTH]

    def completion_duration(self) -> timedelta | None:
        if not self.completed or self.completed_at is None:
            return None
        return self.completed_at - self.created_at

    def mark_complete(self, now: datetime) -> None:
        """One-way transition: incomplete -> complete."""
        if self.completed:
            raise AlreadyCompleteError(self.id)
        self.completed = True
        self.completed_at = max(now, self.created_at)

    def add_tags(self, new_tags: Iterable[str]) -> None:
        self.tags = merge_tags(self.tags, new_tags)

    def remove_tags(self, old_tags: Iterable[str]) -> None:
        drop = {t.strip().lower() for t in old_tags}
        self.tags = [t for t in self.tags if t.lower() not in drop]


@dataclass(slots=True)
class TaskChanges:
    """
    Partial update for a task.

    Fields left as UNSET keep the task's current value. `description=None`
    and `due_date=None` clear the field.
    """

    title: Any = UNSET
    description: Any = UNSET
    due_date: Any = UNSET
    priority: Any = UNSET
    add_tags: Any = UNSET
    remove_tags: Any = UNSET

    _IMMUTABLE = frozenset({"id", "created_at", "completed_at", "completed"})

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TaskChanges:
        allowed = {f.name for f in fields(cls)}
        for key in data:
            if key in cls._IMMUTABLE:
                raise ValidationError(key, f"Field '{key}' cannot be changed.")
            if key not in allowed:
                raise ValidationError(key, f"Unknown field '{key}'.")
        values = dict(data)
        if values.get("due_date") is not None:
            values["due_date"] = coerce_due_date(values["due_date"])
        return cls(**values)


# ---- field validation ----


def normalize_title(raw: str) -> str:
    title = (raw or "").strip()
    if not title:
        raise ValidationError("title", "Task title cannot be empty.")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError("title", f"Task title cannot exceed {TITLE_MAX_LENGTH} characters.")
    return title


def normalize_description(raw: str | None) -> str | None:
    if raw is None:
        return None
    text = raw.strip()
    if len(text) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "description", f"Task description cannot exceed {DESCRIPTION_MAX_LENGTH} characters."
        )
    return text or None


def coerce_due_date(value: date | str) -> date:
    """Accept a date or an ISO `YYYY-MM-DD` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    message = f"Invalid due date '{value}'. Use YYYY-MM-DD."
    if not isinstance(value, str):
        raise ValidationError("due_date", message)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("due_date", message) from None


def validate_due_date(due: date | None, today: date) -> date | None:
    if due is not None and due < today:
        raise ValidationError("due_date", "Due date must be today or in the future.")
    return due


def normalize_tag(raw: str) -> str:
    tag = (raw or "").strip().lower()
    if not tag:
        raise ValidationError("tags", "Tag cannot be empty.")
    if len(tag) > TAG_MAX_LENGTH:
        raise ValidationError("tags", f"Tag '{tag}' exceeds {TAG_MAX_LENGTH} character limit.")
    if not _TAG_RE.match(tag):
        raise ValidationError(
            "tags",
            f"Tag '{tag}' contains invalid characters "
            "(use only letters, numbers, hyphens, underscores).",
        )
    return tag


def merge_tags(existing: Iterable[str], new_tags: Iterable[str]) -> list[str]:
    """Append normalized tags that are not already present (case-insensitive)."""
    out = list(existing)
    seen = {t.lower() for t in out}
    for raw in new_tags:
        tag = normalize_tag(raw)
        if tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    if len(out) > MAX_TAGS:
        raise ValidationError("tags", f"Maximum {MAX_TAGS} tags allowed per task.")
    return out


def validate_task(task: Task) -> None:
    """Check the per-record invariants that must hold before any write commits."""
    if not task.title.strip() or len(task.title) > TITLE_MAX_LENGTH:
        raise ValidationError("title", f"Invalid title for task {task.short_id}.")
    if task.description is not None and len(task.description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError("description", f"Invalid description for task {task.short_id}.")

    if len(task.tags) > MAX_TAGS:
        raise ValidationError("tags", f"Task {task.short_id} has more than {MAX_TAGS} tags.")
    seen: set[str] = set()
    for tag in task.tags:
        if normalize_tag(tag) != tag or tag in seen:
            raise ValidationError("tags", f"Invalid tag '{tag}' on task {task.short_id}.")
        seen.add(tag)

    if task.completed != (task.completed_at is not None):
        raise ValidationError(
            "completed_at", f"Task {task.short_id}: completedAt must be set exactly when completed."
        )
    if task.completed_at is not None and task.completed_at < task.created_at:
        raise ValidationError(
            "completed_at", f"Task {task.short_id}: completedAt is before createdAt."
        )


def validate_collection(tasks: Iterable[Task]) -> None:
    ids: set[UUID] = set()
    for task in tasks:
        validate_task(task)
        if task.id in ids:
            raise ValidationError("id", f"Duplicate task id {task.id}.")
        ids.add(task.id)
