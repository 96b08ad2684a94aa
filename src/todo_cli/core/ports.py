# src/todo_cli/core/ports.py

"""
Ports (interfaces) used by the lifecycle service.

The service depends on Protocols instead of concrete implementations, so the
JSON file repository can be swapped for an in-memory fake in tests.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task
    from ..tasks.task_store import LoadResult


class TaskRepo(Protocol):
    def load(self) -> LoadResult: ...
    def save(self, tasks: list[Task]) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        ...

    def today(self) -> date:
        """Current calendar date in the user's local time zone."""
        ...
