# src/todo_cli/tasks/task_codec.py

"""
JSON codec for the task collection.

The document is a pretty-printed array of records with camelCase keys in a
fixed order, so the file stays hand-editable and diffs stay small. Optional
fields are omitted when empty. Unknown keys are ignored on decode.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from .errors import FormatError, ValidationError
from .task_models import Priority, Task, validate_collection

REQUIRED_FIELDS = ("id", "title", "createdAt")


def _format_instant(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _parse_instant(raw: Any, key: str, index: int) -> datetime:
    if not isinstance(raw, str):
        raise FormatError(f"Record {index}: '{key}' must be a string.")
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        raise FormatError(f"Record {index}: '{key}' is not an ISO-8601 instant: {raw!r}.") from None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_date(raw: Any, index: int) -> date:
    if not isinstance(raw, str):
        raise FormatError(f"Record {index}: 'dueDate' must be a string.")
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise FormatError(f"Record {index}: 'dueDate' is not an ISO-8601 date: {raw!r}.") from None


def task_to_record(task: Task) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": str(task.id),
        "title": task.title,
    }
    if task.description is not None:
        record["description"] = task.description
    record["createdAt"] = _format_instant(task.created_at)
    if task.due_date is not None:
        record["dueDate"] = task.due_date.isoformat()
    record["isCompleted"] = task.completed
    if task.completed_at is not None:
        record["completedAt"] = _format_instant(task.completed_at)
    record["priority"] = task.priority.value
    record["tags"] = list(task.tags)
    return record


def record_to_task(record: Any, index: int = 0) -> Task:
    if not isinstance(record, dict):
        raise FormatError(f"Record {index} is not a JSON object.")

    for key in REQUIRED_FIELDS:
        if key not in record:
            raise FormatError(f"Record {index} is missing required field '{key}'.")

    raw_id = record["id"]
    if not isinstance(raw_id, str):
        raise FormatError(f"Record {index}: 'id' must be a string.")
    try:
        task_id = UUID(raw_id)
    except ValueError:
        raise FormatError(f"Record {index}: 'id' is not a valid identifier: {raw_id!r}.") from None

    title = record["title"]
    if not isinstance(title, str):
        raise FormatError(f"Record {index}: 'title' must be a string.")

    description = record.get("description")
    if description is not None and not isinstance(description, str):
        raise FormatError(f"Record {index}: 'description' must be a string.")

    created_at = _parse_instant(record["createdAt"], "createdAt", index)

    raw_due = record.get("dueDate")
    due_date = _parse_date(raw_due, index) if raw_due is not None else None

    completed = record.get("isCompleted", False)
    if not isinstance(completed, bool):
        raise FormatError(f"Record {index}: 'isCompleted' must be a boolean.")

    raw_completed_at = record.get("completedAt")
    completed_at = (
        _parse_instant(raw_completed_at, "completedAt", index)
        if raw_completed_at is not None
        else None
    )

    raw_priority = record.get("priority", Priority.MEDIUM.value)
    if not isinstance(raw_priority, str):
        raise FormatError(f"Record {index}: 'priority' must be a string.")
    try:
        priority = Priority.parse(raw_priority)
    except ValidationError as exc:
        raise FormatError(f"Record {index}: {exc.message}") from None

    tags = record.get("tags")
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise FormatError(f"Record {index}: 'tags' must be a list of strings.")

    return Task(
        id=task_id,
        title=title,
        created_at=created_at,
        description=description,
        due_date=due_date,
        completed=completed,
        completed_at=completed_at,
        priority=priority,
        tags=list(tags),
    )


def encode(tasks: Iterable[Task]) -> bytes:
    payload = [task_to_record(t) for t in tasks]
    return (json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


def decode(data: bytes) -> list[Task]:
    """Parse and validate a tasks document. Raises FormatError on any structural problem."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FormatError(f"Tasks file is not valid UTF-8: {exc.reason}.") from None

    if not text.strip():
        return []

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(
            f"Tasks file is not valid JSON (line {exc.lineno}, column {exc.colno})."
        ) from None

    if not isinstance(payload, list):
        raise FormatError("Tasks file must contain a JSON array of tasks.")

    tasks = [record_to_task(record, i) for i, record in enumerate(payload)]
    try:
        validate_collection(tasks)
    except ValidationError as exc:
        raise FormatError(f"Tasks file failed validation: {exc.message}") from None
    return tasks
