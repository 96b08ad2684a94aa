# src/todo_cli/tasks/task_store.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from . import task_codec
from .atomic_file import AtomicFileWriter, backup_path_for
from .errors import FormatError, StorageIOError, UnrecoverableStoreError, ValidationError
from .task_models import Task, validate_collection

logger = logging.getLogger(__name__)


class RepositoryState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    RECOVERED = "recovered"  # primary was corrupt; content came from the backup


@dataclass(slots=True)
class LoadResult:
    tasks: list[Task] = field(default_factory=list)
    recovered: bool = False
    warning: str | None = None


class JsonTaskRepository:
    """
    JSON file task repository.

    The whole collection is read and rewritten on every operation; at the
    supported scale (~10k records) this stays in the low milliseconds.

    Corruption handling:
    - primary fails to decode -> fall back to `<file>.bak`
    - the corrupt primary is kept until the next explicit save
    - both fail -> UnrecoverableStoreError

    No file locking: two processes saving concurrently is last-write-wins.
    """

    def __init__(self, path: str | Path, writer: AtomicFileWriter | None = None) -> None:
        self._path = Path(path)
        self._backup_path = backup_path_for(self._path)
        self._writer = writer or AtomicFileWriter()
        self._state = RepositoryState.UNINITIALIZED
        try:
            self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create task directory %s", self._path.parent, exc_info=True)
            raise StorageIOError(f"Cannot create task directory {self._path.parent}.") from exc
        logger.info("TaskRepository ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._backup_path

    @property
    def state(self) -> RepositoryState:
        return self._state

    # ---- low-level helpers ----

    def _read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("Failed to read %s", path, exc_info=True)
            raise StorageIOError(f"Cannot read tasks file {path}.") from exc

    def _load_backup(self, primary_error: FormatError) -> LoadResult:
        if not self._backup_path.exists():
            raise UnrecoverableStoreError(
                f"Tasks file {self._path} is corrupted and no backup exists."
            ) from primary_error

        try:
            tasks = task_codec.decode(self._read_bytes(self._backup_path))
        except FormatError as exc:
            logger.warning("Backup %s is corrupted too: %s", self._backup_path, exc.message)
            raise UnrecoverableStoreError(
                f"Tasks file {self._path} and its backup are both corrupted."
            ) from exc

        self._state = RepositoryState.RECOVERED
        warning = (
            f"Tasks file was corrupted; loaded {len(tasks)} task(s) from backup "
            f"{self._backup_path.name}. It will be repaired on the next save."
        )
        logger.warning("%s (%s)", warning, primary_error.message)
        return LoadResult(tasks=tasks, recovered=True, warning=warning)

    # ---- public API ----

    def load(self) -> LoadResult:
        if not self._path.exists():
            self._state = RepositoryState.LOADED
            logger.debug("No tasks file at %s; starting empty", self._path)
            return LoadResult()

        try:
            tasks = task_codec.decode(self._read_bytes(self._path))
        except FormatError as exc:
            logger.warning("Tasks file %s failed to decode: %s", self._path, exc.message)
            return self._load_backup(exc)

        self._state = RepositoryState.LOADED
        logger.debug("Loaded %d task(s) from %s", len(tasks), self._path)
        return LoadResult(tasks=tasks)

    def save(self, tasks: list[Task]) -> None:
        try:
            validate_collection(tasks)
        except ValidationError:
            logger.warning("Refusing to save an invalid task collection", exc_info=True)
            raise

        data = task_codec.encode(tasks)
        # A corrupt primary must not replace the good backup.
        keep_backup = self._state is RepositoryState.RECOVERED
        try:
            self._writer.write(self._path, data, backup=not keep_backup)
        except OSError as exc:
            logger.warning("Failed to write %s", self._path, exc_info=True)
            raise StorageIOError(f"Cannot write tasks file {self._path}.") from exc

        self._state = RepositoryState.LOADED
        logger.debug("Saved %d task(s) to %s", len(tasks), self._path)
