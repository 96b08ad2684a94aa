# tests/conftest.py

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from pathlib import Path

import pytest

from todo_cli.tasks.task_models import Priority, Task
from todo_cli.tasks.task_service import TaskService
from todo_cli.tasks.task_store import JsonTaskRepository

from .fakes import FakeClock, InMemoryTaskRepo


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tasks_path(tmp_path: Path) -> Path:
    return tmp_path / "store" / "tasks.json"


@pytest.fixture()
def repo(tasks_path: Path) -> JsonTaskRepository:
    """Real JSON repository in a per-test tmp dir."""
    return JsonTaskRepository(tasks_path)


@pytest.fixture()
def service(repo: JsonTaskRepository, clock: FakeClock) -> TaskService:
    return TaskService(repo, clock)


@pytest.fixture()
def memory_repo() -> InMemoryTaskRepo:
    return InMemoryTaskRepo()


@pytest.fixture()
def make_task():
    """Factory for Task records with increasing created_at."""
    counter = {"n": 0}

    def _make(**overrides) -> Task:
        counter["n"] += 1
        values = dict(
            id=uuid.uuid4(),
            title=f"Task {counter['n']}",
            created_at=datetime(2026, 3, 1, 9, 0, counter["n"] % 60, tzinfo=UTC),
            priority=Priority.MEDIUM,
        )
        values.update(overrides)
        return Task(**values)

    return _make
