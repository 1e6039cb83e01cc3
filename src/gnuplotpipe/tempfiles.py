from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, TextIO

from .config import MAX_TMP_FILES
from .errors import CleanupError, GnuplotIOError, ResourceExhausted

logger = logging.getLogger(__name__)

TMP_PREFIX = "gnuploti"


class TempFileManager:
    """Registry of the data files one session hands to gnuplot.

    Files are never deleted implicitly; ``remove_all`` is the only cleanup path.
    Not thread-safe: a manager belongs to the thread that owns its session.
    """

    def __init__(self, tmp_dir: str | Path | None = None, max_files: int | None = None) -> None:
        self.tmp_dir = str(tmp_dir) if tmp_dir is not None else tempfile.gettempdir()
        self.max_files = MAX_TMP_FILES if max_files is None else int(max_files)
        if self.max_files < 2:
            raise ValueError("max_files must be >= 2")
        self._paths: list[Path] = []
        self._count = 0

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    @property
    def count(self) -> int:
        return self._count

    def __len__(self) -> int:
        return len(self._paths)

    def create(self) -> tuple[Path, TextIO]:
        if self._count >= self.max_files - 1:
            raise ResourceExhausted(
                f"Maximum number of temporary files reached ({self.max_files}): "
                "cannot open more files."
            )
        try:
            fd, name = tempfile.mkstemp(prefix=TMP_PREFIX, dir=self.tmp_dir)
        except OSError as exc:
            raise GnuplotIOError("Cannot create temporary file", context=str(exc)) from exc
        path = Path(name)
        try:
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except OSError as exc:
            os.close(fd)
            raise GnuplotIOError(
                f'Cannot open temporary file "{path}" for writing.', context=str(exc)
            ) from exc
        self._paths.append(path)
        self._count += 1
        logger.debug("Created temporary file %s (%d tracked)", path, self._count)
        return path, handle

    def write_rows(self, rows: Iterable[str]) -> Path:
        """Create a file holding one line per row and return its path."""
        path, handle = self.create()
        try:
            with handle:
                for row in rows:
                    handle.write(row)
                    handle.write("\n")
        except OSError as exc:
            raise GnuplotIOError(
                f"Failed to write data to the temporary file: {path}", context=str(exc)
            ) from exc
        return path

    def remove_all(self) -> None:
        if not self._paths:
            return
        failed: list[Path] = []
        removed = 0
        for path in self._paths:
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("Temporary file %s was already gone", path)
                removed += 1
            except OSError as exc:
                logger.warning("Cannot remove temporary file %s: %s", path, exc)
                failed.append(path)
            else:
                logger.debug("Removed temporary file %s", path)
                removed += 1
        self._paths = failed
        self._count -= removed
        if failed:
            raise CleanupError(str(failed[0]), tuple(str(p) for p in failed))
