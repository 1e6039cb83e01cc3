from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from gnuplotpipe.config import GnuplotConfig


@dataclass
class FakeGnuplot:
    bin_dir: Path
    log: Path
    data_dir: Path
    config: GnuplotConfig

    def lines(self) -> list[str]:
        return self.log.read_text(encoding="utf-8").splitlines()


def make_fake_gnuplot(tmp_path: Path, exit_code: int = 0) -> FakeGnuplot:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    data_dir = tmp_path / "data"
    data_dir.mkdir(exist_ok=True)
    log = tmp_path / "gnuplot.log"
    script = bin_dir / "gnuplot"
    script.write_text(f'#!/bin/sh\ncat > "{log}"\nexit {exit_code}\n', encoding="utf-8")
    script.chmod(0o755)
    config = GnuplotConfig(
        gnuplot_path=str(bin_dir),
        gnuplot_filename="gnuplot",
        terminal="dumb",
        tmp_dir=str(data_dir),
    )
    return FakeGnuplot(bin_dir=bin_dir, log=log, data_dir=data_dir, config=config)


@pytest.fixture
def fake_gnuplot(tmp_path: Path) -> FakeGnuplot:
    return make_fake_gnuplot(tmp_path)


@pytest.fixture
def fake_gnuplot_factory(tmp_path: Path):
    def _make(exit_code: int = 0) -> FakeGnuplot:
        return make_fake_gnuplot(tmp_path, exit_code=exit_code)

    return _make
