# src/todo_cli/cli/commands.py

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import NoReturn

from ..tasks.errors import ValidationError
from ..tasks.task_models import Priority, Task, TaskChanges, coerce_due_date
from ..tasks.task_query import DUE_WITHIN_ALIASES, DueBucket, SortKey, StatusFilter, TaskFilter
from ..tasks.task_service import TaskService

logger = logging.getLogger(__name__)

CommandEmitter = Callable[[str], None]
Confirmer = Callable[[str], bool]


@dataclass(slots=True)
class CommandContext:
    service: TaskService
    emit: CommandEmitter
    confirm: Confirmer


CommandHandler = Callable[[CommandContext, argparse.Namespace], str]
ArgumentsBuilder = Callable[[argparse.ArgumentParser], None]


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors become ValidationError instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise ValidationError("arguments", f"{self.prog}: {message}")


class CommandRegistry:
    """Subcommand registry: name -> (handler, help, argument builder)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._arguments: dict[str, ArgumentsBuilder | None] = {}
        self._aliases: dict[str, list[str]] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        arguments: ArgumentsBuilder | None = None,
    ) -> None:
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        self._arguments[key] = arguments
        self._aliases[key] = [a.lower() for a in aliases or []]
        for alias in self._aliases[key]:
            self._handlers[alias] = handler

    def build_parser(self, prog: str = "todo") -> argparse.ArgumentParser:
        parser = _ArgumentParser(prog=prog, description="TODO CLI - a local task manager")
        sub = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
        for name, help_text in self._help.items():
            p = sub.add_parser(name, help=help_text, aliases=self._aliases[name])
            builder = self._arguments[name]
            if builder is not None:
                builder(p)
        return parser

    def handle(self, ctx: CommandContext, argv: Sequence[str], prog: str = "todo") -> str:
        """Parse argv and run the matching handler. Errors propagate to the caller."""
        args = self.build_parser(prog).parse_args(list(argv))
        handler = self._handlers[args.command.lower()]
        logger.debug("Running command %s", args.command)
        return handler(ctx, args)


registry = CommandRegistry()


# ---- argument parsing helpers ----


def parse_tags(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [t.strip() for t in raw.split(",") if t.strip()]


def parse_due_date(raw: str | None) -> date | None:
    return None if raw is None else coerce_due_date(raw)


def parse_due_filter(raw: str) -> tuple[DueBucket, int | None]:
    value = raw.strip().lower()
    if value in (DueBucket.OVERDUE, DueBucket.TODAY):
        return DueBucket(value), None
    if value in DUE_WITHIN_ALIASES:
        return DueBucket.WITHIN, DUE_WITHIN_ALIASES[value]
    if value.isdigit():
        return DueBucket.WITHIN, int(value)
    raise ValidationError(
        "due", f"Invalid due filter '{raw}'. Use overdue, today, week, month or a number of days."
    )


# ---- rendering ----


def format_duration(delta: timedelta) -> str:
    total = int(delta.total_seconds())
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_task_line(task: Task) -> str:
    mark = "x" if task.completed else " "
    parts = [f"{task.short_id}  [{mark}] {task.title}", f"({task.priority.value})"]
    if task.due_date is not None:
        parts.append(f"due {task.due_date.isoformat()}")
    if task.tags:
        parts.append(" ".join(f"#{t}" for t in task.tags))
    return "  ".join(parts)


def format_task_detail(task: Task) -> str:
    lines = [
        f"ID:          {task.id}",
        f"Title:       {task.title}",
        f"Description: {task.description or '(none)'}",
        f"Priority:    {task.priority.value}",
        f"Due:         {task.due_date.isoformat() if task.due_date else '(none)'}",
        f"Tags:        {', '.join(task.tags) if task.tags else '(none)'}",
        f"Created:     {task.created_at.astimezone():%Y-%m-%d %H:%M}",
    ]
    if task.completed and task.completed_at is not None:
        lines.append(f"Completed:   {task.completed_at.astimezone():%Y-%m-%d %H:%M}")
    else:
        lines.append("Completed:   no")
    return "\n".join(lines)


def _describe_changes(before: Task, after: Task) -> list[str]:
    def show(value: object) -> str:
        if value is None or value == []:
            return "(none)"
        if isinstance(value, list):
            return ", ".join(value)
        return str(value)

    out: list[str] = []
    for label, old, new in (
        ("Title", before.title, after.title),
        ("Description", before.description, after.description),
        ("Priority", before.priority.value, after.priority.value),
        ("Due date", before.due_date, after.due_date),
        ("Tags", before.tags, after.tags),
    ):
        if old != new:
            out.append(f"  {label}: {show(old)} -> {show(new)}")
    return out


# ---- handlers ----


def _add_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("title")
    p.add_argument("-d", "--description")
    p.add_argument("--due", help="Due date (YYYY-MM-DD)")
    p.add_argument("-p", "--priority", help="low, medium or high")
    p.add_argument("-t", "--tags", help="Comma-separated tags")


def cmd_add(ctx: CommandContext, args: argparse.Namespace) -> str:
    task = ctx.service.add(
        args.title,
        description=args.description,
        due_date=parse_due_date(args.due),
        priority=args.priority,
        tags=parse_tags(args.tags),
    )
    return f"Task added: {task.short_id}  {task.title}"


def _list_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-s", "--status", choices=[s.value for s in StatusFilter], default=StatusFilter.INCOMPLETE.value
    )
    p.add_argument("-p", "--priority")
    p.add_argument("-t", "--tags", help="Comma-separated tags (matches any)")
    p.add_argument("--due", help="overdue, today, week, month or a number of days")
    p.add_argument("--include-undated", action="store_true")
    p.add_argument("--sort", choices=[k.value for k in SortKey], default=SortKey.CREATED_AT.value)


def cmd_list(ctx: CommandContext, args: argparse.Namespace) -> str:
    due, within = parse_due_filter(args.due) if args.due else (None, None)
    task_filter = TaskFilter(
        status=StatusFilter(args.status),
        priority=Priority.parse(args.priority) if args.priority else None,
        tags=frozenset(parse_tags(args.tags) or []),
        due=due,
        due_within_days=within,
        include_undated=args.include_undated,
    )
    tasks = ctx.service.list(task_filter, SortKey(args.sort))
    if not tasks:
        return "No tasks found."
    return "\n".join(format_task_line(t) for t in tasks)


def _id_argument(p: argparse.ArgumentParser) -> None:
    p.add_argument("id", help="Task ID or unique prefix (at least 4 characters)")


def cmd_show(ctx: CommandContext, args: argparse.Namespace) -> str:
    return format_task_detail(ctx.service.get(args.id))


def cmd_complete(ctx: CommandContext, args: argparse.Namespace) -> str:
    task = ctx.service.complete(args.id)
    took = task.completion_duration()
    suffix = f" (took {format_duration(took)})" if took is not None else ""
    return f"Completed: {task.short_id}  {task.title}{suffix}"


def _update_arguments(p: argparse.ArgumentParser) -> None:
    _id_argument(p)
    p.add_argument("--title")
    p.add_argument("--description", help="New description ('' to clear)")
    p.add_argument("-p", "--priority")
    p.add_argument("--due", help="YYYY-MM-DD or 'none' to clear")
    p.add_argument("--add-tags", help="Comma-separated tags to add")
    p.add_argument("--remove-tags", help="Comma-separated tags to remove")


def cmd_update(ctx: CommandContext, args: argparse.Namespace) -> str:
    changes = TaskChanges()
    if args.title is not None:
        changes.title = args.title
    if args.description is not None:
        changes.description = args.description or None
    if args.priority is not None:
        changes.priority = args.priority
    if args.due is not None:
        changes.due_date = None if args.due.strip().lower() == "none" else parse_due_date(args.due)
    if args.add_tags is not None:
        changes.add_tags = parse_tags(args.add_tags)
    if args.remove_tags is not None:
        changes.remove_tags = parse_tags(args.remove_tags)

    before = ctx.service.get(args.id)
    after = ctx.service.update(str(before.id), changes)
    lines = [f"Task updated: {after.short_id}"]
    lines.extend(_describe_changes(before, after) or ["  (no visible changes)"])
    return "\n".join(lines)


def _delete_arguments(p: argparse.ArgumentParser) -> None:
    _id_argument(p)
    p.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")


def cmd_delete(ctx: CommandContext, args: argparse.Namespace) -> str:
    task = ctx.service.get(args.id)
    if not args.yes:
        ctx.emit(format_task_detail(task))
        if not ctx.confirm(f"Delete task {task.short_id}?"):
            return "Deletion cancelled."
    removed = ctx.service.delete(str(task.id))
    return f"Task deleted: {removed.short_id}  {removed.title}"


registry.register("add", cmd_add, "Add a new task.", arguments=_add_arguments)
registry.register("list", cmd_list, "List tasks with filtering and sorting.", aliases=["ls"], arguments=_list_arguments)
registry.register("show", cmd_show, "Show task details.", arguments=_id_argument)
registry.register("complete", cmd_complete, "Mark a task as complete.", aliases=["done"], arguments=_id_argument)
registry.register("update", cmd_update, "Update task properties.", arguments=_update_arguments)
registry.register("delete", cmd_delete, "Delete a task.", aliases=["rm"], arguments=_delete_arguments)
