# src/todo_cli/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root": it wires the JSON repository, the
system clock and the lifecycle service from one Settings object.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.clock import SystemClock
from ..core.ports import Clock
from ..tasks.task_service import TaskService
from ..tasks.task_store import JsonTaskRepository

logger = logging.getLogger(__name__)


def create_service(*, settings: Settings | None = None, clock: Clock | None = None) -> TaskService:
    """
    Build a TaskService backed by the tasks file from settings.

    Keeping settings injectable makes the CLI easy to test against a tmp dir.
    """
    if settings is None:
        settings = get_settings()

    repository = JsonTaskRepository(settings.tasks_file)
    logger.debug("Using tasks file %s", settings.tasks_file)
    return TaskService(repository, clock or SystemClock())
