# tests/test_task_service.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from todo_cli.tasks.errors import (
    AlreadyCompleteError,
    AmbiguousIdError,
    TaskNotFoundError,
    TooShortIdError,
    ValidationError,
)
from todo_cli.tasks.task_models import Priority, TaskChanges
from todo_cli.tasks.task_query import SortKey, StatusFilter, TaskFilter
from todo_cli.tasks.task_service import TaskService
from todo_cli.tasks.task_store import RepositoryState


def test_add_then_list(service: TaskService, clock) -> None:
    added = service.add("Buy milk")

    tasks = service.list(TaskFilter(status=StatusFilter.ALL))

    assert len(tasks) == 1
    assert tasks[0].title == "Buy milk"
    assert tasks[0].priority is Priority.MEDIUM
    assert tasks[0].tags == []
    assert tasks[0].id == added.id
    assert tasks[0].created_at == clock.now()
    assert tasks[0].completed is False


def test_add_normalizes_fields(service: TaskService, clock) -> None:
    task = service.add(
        "  Write report  ",
        description="   ",
        due_date=clock.today(),
        priority="HIGH",
        tags=["Work", "work", " q1 "],
    )
    assert task.title == "Write report"
    assert task.description is None
    assert task.priority is Priority.HIGH
    assert task.tags == ["work", "q1"]


def test_add_with_past_due_date_is_rejected_and_disk_unchanged(service: TaskService, clock, repo) -> None:
    service.add("Existing")
    before = repo.path.read_bytes()

    with pytest.raises(ValidationError) as exc_info:
        service.add("X", due_date=clock.today() - timedelta(days=1))

    assert exc_info.value.field == "due_date"
    assert repo.path.read_bytes() == before


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"title": ""}, "title"),
        ({"title": "   "}, "title"),
        ({"title": "x" * 201}, "title"),
        ({"title": "ok", "description": "d" * 1001}, "description"),
        ({"title": "ok", "tags": [f"t{i}" for i in range(11)]}, "tags"),
        ({"title": "ok", "tags": ["has space"]}, "tags"),
        ({"title": "ok", "tags": ["x" * 21]}, "tags"),
        ({"title": "ok", "priority": "urgent"}, "priority"),
    ],
)
def test_add_validation(memory_repo, clock, kwargs, field) -> None:
    service = TaskService(memory_repo, clock)
    with pytest.raises(ValidationError) as exc_info:
        service.add(**kwargs)
    assert exc_info.value.field == field
    assert memory_repo.save_calls == 0


def test_title_limit_counts_code_points(memory_repo, clock) -> None:
    service = TaskService(memory_repo, clock)
    assert service.add("é" * 200).title == "é" * 200


def test_complete_sets_completed_at_and_is_one_way(service: TaskService, clock) -> None:
    task = service.add("Ship it")
    clock.advance(timedelta(hours=2))

    done = service.complete(task.short_id)
    assert done.completed is True
    assert done.completed_at == clock.now()
    assert done.completion_duration() == timedelta(hours=2)

    clock.advance(timedelta(hours=1))
    with pytest.raises(AlreadyCompleteError):
        service.complete(task.short_id)

    assert service.get(task.short_id).completed_at == done.completed_at


def test_update_applies_only_supplied_fields(service: TaskService, clock) -> None:
    task = service.add("Old", description="keep me", priority=Priority.LOW, tags=["a"])

    updated = service.update(task.short_id, TaskChanges(title="New", priority=Priority.HIGH))

    assert updated.title == "New"
    assert updated.priority is Priority.HIGH
    assert updated.description == "keep me"
    assert updated.tags == ["a"]
    assert updated.created_at == task.created_at
    assert service.get(task.short_id) == updated


def test_update_can_clear_optional_fields(service: TaskService, clock) -> None:
    task = service.add("T", description="d", due_date=clock.today())

    updated = service.update(task.short_id, TaskChanges(description=None, due_date=None))

    assert updated.description is None
    assert updated.due_date is None


def test_tag_add_and_remove_are_idempotent(service: TaskService) -> None:
    task = service.add("T", tags=["work"])

    same = service.update(task.short_id, TaskChanges(add_tags=["work", "WORK"]))
    assert same.tags == ["work"]

    same = service.update(task.short_id, TaskChanges(remove_tags=["missing"]))
    assert same.tags == ["work"]

    both = service.update(task.short_id, TaskChanges(add_tags=["home"], remove_tags=["work"]))
    assert both.tags == ["home"]


def test_update_rejects_immutable_fields(service: TaskService) -> None:
    task = service.add("T")
    for key in ("id", "created_at", "completed_at"):
        with pytest.raises(ValidationError) as exc_info:
            service.update(task.short_id, {key: "whatever"})
        assert exc_info.value.field == key


def test_update_from_mapping(service: TaskService) -> None:
    task = service.add("T")
    updated = service.update(task.short_id, {"title": "Mapped", "add_tags": ["x"]})
    assert updated.title == "Mapped"
    assert updated.tags == ["x"]


def test_update_from_mapping_accepts_iso_due_date(service: TaskService) -> None:
    task = service.add("T")
    updated = service.update(task.short_id, {"due_date": "2027-01-01"})
    assert updated.due_date == date(2027, 1, 1)


@pytest.mark.parametrize("bad", ["next week", 20270101])
def test_update_from_mapping_rejects_bad_due_date(service: TaskService, bad) -> None:
    task = service.add("T")
    with pytest.raises(ValidationError) as exc_info:
        service.update(task.short_id, {"due_date": bad})
    assert exc_info.value.field == "due_date"


def test_update_with_no_changes_is_rejected(service: TaskService) -> None:
    task = service.add("T")
    with pytest.raises(ValidationError):
        service.update(task.short_id, TaskChanges())


def test_failed_update_leaves_task_unchanged(service: TaskService, clock, repo) -> None:
    task = service.add("T", tags=[f"t{i}" for i in range(10)])
    before = repo.path.read_bytes()

    with pytest.raises(ValidationError):
        service.update(task.short_id, TaskChanges(title="New", add_tags=["one-too-many"]))
    with pytest.raises(ValidationError):
        service.update(task.short_id, TaskChanges(due_date=clock.today() - timedelta(days=3)))

    assert repo.path.read_bytes() == before


def test_past_due_date_is_not_revalidated_on_unrelated_update(service: TaskService, clock) -> None:
    task = service.add("T", due_date=clock.today())
    clock.advance(timedelta(days=5))

    updated = service.update(task.short_id, TaskChanges(title="Renamed"))

    assert updated.due_date == task.due_date


def test_delete_returns_removed_task(service: TaskService) -> None:
    keep = service.add("keep")
    gone = service.add("gone")

    removed = service.delete(str(gone.id))

    assert removed.id == gone.id
    assert [t.id for t in service.list()] == [keep.id]
    with pytest.raises(TaskNotFoundError):
        service.get(str(gone.id))


def test_identifier_errors_surface_from_service(service: TaskService) -> None:
    service.add("T")
    with pytest.raises(TooShortIdError):
        service.complete("abc")
    with pytest.raises(TaskNotFoundError):
        service.delete("zzzz")


def test_ambiguous_prefix_through_service(memory_repo, clock, make_task) -> None:
    from uuid import UUID

    memory_repo.saved = [
        make_task(id=UUID("12345678-0000-4000-8000-000000000001"), title="one"),
        make_task(id=UUID("12345678-0000-4000-8000-000000000002"), title="two"),
    ]
    service = TaskService(memory_repo, clock)

    with pytest.raises(AmbiguousIdError) as exc_info:
        service.get("1234")
    assert sorted(title for _, title in exc_info.value.matches) == ["one", "two"]
    assert service.get("12345678-0000-4000-8000-000000000002").title == "two"


def test_list_sorts_and_returns_copies(service: TaskService) -> None:
    service.add("M", priority=Priority.MEDIUM)
    service.add("H", priority=Priority.HIGH)
    service.add("L", priority=Priority.LOW)

    tasks = service.list(sort=SortKey.PRIORITY)
    assert [t.title for t in tasks] == ["H", "M", "L"]

    tasks[0].title = "mutated"
    assert service.list(sort=SortKey.PRIORITY)[0].title == "H"


def test_list_does_not_save(memory_repo, clock) -> None:
    service = TaskService(memory_repo, clock)
    service.add("T")
    calls = memory_repo.save_calls
    service.list()
    service.get(service.list()[0].short_id)
    assert memory_repo.save_calls == calls


def test_recovery_is_signalled_through_last_load(service: TaskService, repo, clock) -> None:
    service.add("first")
    clock.advance(timedelta(minutes=1))
    service.add("second")
    clock.advance(timedelta(minutes=1))
    repo.path.write_bytes(b"\x00corrupt")

    tasks = service.list()

    assert [t.title for t in tasks] == ["first"]
    assert service.last_load is not None and service.last_load.recovered
    assert repo.state is RepositoryState.RECOVERED

    service.add("third")
    assert repo.state is RepositoryState.LOADED
    assert [t.title for t in service.list()] == ["first", "third"]
    assert service.last_load.recovered is False
