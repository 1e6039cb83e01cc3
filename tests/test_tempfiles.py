import os
from pathlib import Path

import pytest

from gnuplotpipe.config import MAX_TMP_FILES
from gnuplotpipe.errors import CleanupError, GnuplotIOError, ResourceExhausted
from gnuplotpipe.tempfiles import TempFileManager


def _write_one(manager: TempFileManager, text: str = "1") -> Path:
    return manager.write_rows([text])


@pytest.mark.skipif(os.name == "nt", reason="POSIX ceiling")
def test_default_ceiling_on_posix() -> None:
    assert MAX_TMP_FILES == 64
    assert TempFileManager().max_files == 64


def test_ceiling_allows_one_below_limit_then_fails_without_creating(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path, max_files=5)
    for _ in range(4):
        _write_one(manager)
    assert len(list(tmp_path.iterdir())) == 4

    with pytest.raises(ResourceExhausted, match="Maximum number of temporary files"):
        manager.create()
    assert len(list(tmp_path.iterdir())) == 4
    assert manager.count == 4


def test_write_rows_writes_one_line_per_row(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path)
    path = manager.write_rows(["1 4", "2 5", "3 6"])
    assert path.parent == tmp_path
    assert path.name.startswith("gnuploti")
    assert path.read_text(encoding="utf-8").splitlines() == ["1 4", "2 5", "3 6"]
    assert manager.paths == (path,)


def test_remove_all_deletes_every_file_and_is_idempotent(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path)
    paths = [_write_one(manager, str(i)) for i in range(3)]
    manager.remove_all()
    assert not any(p.exists() for p in paths)
    assert manager.count == 0
    assert len(manager) == 0
    manager.remove_all()
    assert manager.count == 0


def test_remove_all_counts_missing_files_as_removed(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path)
    path = _write_one(manager)
    path.unlink()
    manager.remove_all()
    assert manager.count == 0


def test_remove_all_continues_past_failures(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path)
    first = _write_one(manager)
    stuck = _write_one(manager)
    last = _write_one(manager)
    stuck.unlink()
    stuck.mkdir()

    with pytest.raises(CleanupError) as info:
        manager.remove_all()
    assert info.value.path == str(stuck)
    assert info.value.paths == (str(stuck),)
    assert not first.exists()
    assert not last.exists()
    assert manager.paths == (stuck,)
    assert manager.count == 1


def test_counter_is_released_after_cleanup(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path, max_files=3)
    _write_one(manager)
    _write_one(manager)
    with pytest.raises(ResourceExhausted):
        manager.create()
    manager.remove_all()
    _write_one(manager)
    assert manager.count == 1


def test_write_failure_keeps_partial_file_registered(tmp_path: Path) -> None:
    manager = TempFileManager(tmp_path)

    def rows():
        yield "1 2"
        raise OSError("No space left on device")

    with pytest.raises(GnuplotIOError, match="Failed to write data"):
        manager.write_rows(rows())
    (path,) = manager.paths
    assert path.read_text(encoding="utf-8").splitlines() == ["1 2"]
    assert manager.count == 1
