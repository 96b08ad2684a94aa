# tests/test_task_resolver.py

from __future__ import annotations

from uuid import UUID

import pytest

from todo_cli.tasks.errors import AmbiguousIdError, TaskNotFoundError, TooShortIdError
from todo_cli.tasks.task_resolver import resolve


@pytest.fixture()
def tasks(make_task):
    return [
        make_task(id=UUID("abcd1234-0000-4000-8000-000000000001"), title="first"),
        make_task(id=UUID("abcd5678-0000-4000-8000-000000000002"), title="second"),
        make_task(id=UUID("ef012345-0000-4000-8000-000000000003"), title="third"),
    ]


def test_unique_prefix_resolves(tasks) -> None:
    assert resolve(tasks, "abcd1").title == "first"
    assert resolve(tasks, "ef01").title == "third"


def test_full_id_resolves(tasks) -> None:
    assert resolve(tasks, "abcd5678-0000-4000-8000-000000000002").title == "second"


def test_ambiguous_prefix_lists_exactly_the_matches(tasks) -> None:
    with pytest.raises(AmbiguousIdError) as exc_info:
        resolve(tasks, "abcd")

    assert [title for _, title in exc_info.value.matches] == ["first", "second"]
    assert {tid for tid, _ in exc_info.value.matches} == {tasks[0].id, tasks[1].id}


@pytest.mark.parametrize("text", ["", "a", "ab", "ef0"])
def test_short_prefix_is_too_short_regardless_of_matches(tasks, text: str) -> None:
    with pytest.raises(TooShortIdError):
        resolve(tasks, text)


def test_no_match_is_not_found(tasks) -> None:
    with pytest.raises(TaskNotFoundError):
        resolve(tasks, "9999")


def test_matching_is_case_sensitive(tasks) -> None:
    with pytest.raises(TaskNotFoundError):
        resolve(tasks, "ABCD1")


def test_resolve_on_empty_collection(tasks) -> None:
    with pytest.raises(TaskNotFoundError):
        resolve([], "abcd")
