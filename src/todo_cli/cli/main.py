# src/todo_cli/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the TaskService, runs one command and exits.
Every expected failure becomes a one-line message on stderr and exit code 1;
details and tracebacks go to the log file only.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from ..tasks.errors import AmbiguousIdError, TodoError
from .bootstrap import create_service
from .commands import CommandContext, registry

logger = logging.getLogger(__name__)


def _emit(text: str) -> None:
    print(text)


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _print_error(exc: TodoError) -> None:
    print(f"Error: {exc.message}", file=sys.stderr)
    if isinstance(exc, AmbiguousIdError):
        for task_id, title in exc.matches:
            print(f"  {task_id}  {title}", file=sys.stderr)


def run(
    argv: Sequence[str],
    *,
    settings: Settings | None = None,
    ctx: CommandContext | None = None,
) -> int:
    prog = settings.app_name if settings is not None else "todo"
    if ctx is None:
        try:
            service = create_service(settings=settings)
        except TodoError as exc:
            _print_error(exc)
            return 1
        ctx = CommandContext(service=service, emit=_emit, confirm=_confirm)

    try:
        output = registry.handle(ctx, argv, prog=prog)
    except TodoError as exc:
        logger.info("Command failed: %s", exc.message)
        _print_error(exc)
        return 1
    except Exception:
        logger.exception("Unexpected error while running %s", list(argv))
        print("Error: unexpected failure; see the log file for details.", file=sys.stderr)
        return 1

    last = ctx.service.last_load
    if last is not None and last.recovered and last.warning:
        print(f"Warning: {last.warning}", file=sys.stderr)

    if output:
        ctx.emit(output)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()

    # choose console log level from settings.log_level
    console_level = getattr(logging, settings.log_level, logging.ERROR)
    file_ok = setup_logging(
        log_dir=settings.log_dir if settings.log_to_file else None,
        console_level=console_level,
    )
    if not file_ok:
        print(
            f"Warning: cannot write log files to {settings.log_dir}; file logging is disabled.",
            file=sys.stderr,
        )

    return run(sys.argv[1:] if argv is None else argv, settings=settings)


if __name__ == "__main__":
    raise SystemExit(main())
