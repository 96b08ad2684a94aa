# src/todo_cli/tasks/atomic_file.py

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"
FILE_MODE = 0o600


def backup_path_for(path: str | Path) -> Path:
    path = Path(path)
    return path.with_name(path.name + BACKUP_SUFFIX)


class AtomicFileWriter:
    """
    Temp-file-then-rename writer with one rotating backup.

    The target is always either the old complete content or the new complete
    content. The temp file lives in the target's directory so the rename stays
    on one filesystem. The parent directory must already exist.
    """

    def write(self, path: str | Path, data: bytes, *, backup: bool = True) -> None:
        path = Path(path)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            if backup and path.exists():
                bak = backup_path_for(path)
                shutil.copyfile(path, bak)
                self._restrict(bak)

            os.replace(tmp_path, path)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise

        self._restrict(path)
        logger.debug("Wrote %d bytes to %s (backup=%s)", len(data), path, backup)

    @staticmethod
    def _restrict(path: Path) -> None:
        # Best-effort: not every platform honours POSIX modes.
        with contextlib.suppress(OSError):
            os.chmod(path, FILE_MODE)
