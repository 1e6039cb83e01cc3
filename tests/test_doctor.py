import os
from pathlib import Path

import pytest

from gnuplotpipe.config import GnuplotConfig
from gnuplotpipe.doctor import run_doctor


@pytest.mark.skipif(os.name == "nt", reason="fake gnuplot is a POSIX shell script")
def test_doctor_passes_with_reachable_gnuplot(fake_gnuplot) -> None:
    report = run_doctor(fake_gnuplot.config)
    assert not report.has_failures
    assert {c.name for c in report.checks} == {"gnuplot_executable", "terminal", "tmp_dir"}
    assert "Doctor summary: PASS" in report.render()


def test_doctor_reports_missing_gnuplot(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("PATH", str(tmp_path))
    config = GnuplotConfig(
        gnuplot_path=str(tmp_path / "missing"),
        gnuplot_filename="gnuplot-not-installed",
        terminal="dumb",
        tmp_dir=str(tmp_path / "no-such-dir"),
    )
    report = run_doctor(config)
    assert report.has_failures
    statuses = {c.name: c.status for c in report.checks}
    assert statuses == {"gnuplot_executable": "FAIL", "terminal": "PASS", "tmp_dir": "FAIL"}
    text = report.render()
    assert "[FAIL] gnuplot_executable" in text
    assert "fix: Install gnuplot" in text
    assert text.endswith("Doctor summary: FAIL")
