from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import (
    IS_MACOS,
    IS_WINDOWS,
    MAX_TMP_FILES,
    GnuplotConfig,
    default_config,
    display_available,
    find_gnuplot,
)
from .errors import LaunchError


@dataclass
class DoctorCheck:
    name: str
    status: str  # PASS | WARN | FAIL
    message: str
    fix: str | None = None


@dataclass
class DoctorReport:
    checks: list[DoctorCheck]

    @property
    def has_failures(self) -> bool:
        return any(check.status == "FAIL" for check in self.checks)

    def render(self) -> str:
        lines = []
        for check in self.checks:
            line = f"[{check.status}] {check.name}: {check.message}"
            lines.append(line)
            if check.fix:
                lines.append(f"  fix: {check.fix}")
        summary = "FAIL" if self.has_failures else "PASS"
        lines.append(f"\nDoctor summary: {summary}")
        return "\n".join(lines)


def _check_executable(config: GnuplotConfig) -> DoctorCheck:
    try:
        path = find_gnuplot(config)
    except LaunchError as exc:
        return DoctorCheck(
            name="gnuplot_executable",
            status="FAIL",
            message=str(exc),
            fix="Install gnuplot, add it to PATH, or set GNUPLOT_PATH to its directory.",
        )
    return DoctorCheck(name="gnuplot_executable", status="PASS", message=str(path))


def _check_terminal(config: GnuplotConfig) -> DoctorCheck:
    terminal = config.terminal
    if IS_WINDOWS or IS_MACOS or "x11" not in terminal:
        return DoctorCheck(name="terminal", status="PASS", message=f"terminal={terminal}")
    if display_available():
        return DoctorCheck(
            name="terminal",
            status="PASS",
            message=f"terminal={terminal} DISPLAY={os.environ.get('DISPLAY')}",
        )
    return DoctorCheck(
        name="terminal",
        status="WARN",
        message=f"terminal={terminal} but DISPLAY is not set; sessions will refuse to start.",
        fix="Set GNUPLOT_TERMINAL to a file terminal such as pngcairo or dumb.",
    )


def _check_tmp_dir(config: GnuplotConfig) -> DoctorCheck:
    tmp_dir = Path(config.resolved_tmp_dir())
    if not tmp_dir.is_dir():
        return DoctorCheck(
            name="tmp_dir",
            status="FAIL",
            message=f"{tmp_dir} does not exist.",
            fix="Create the directory or point GNUPLOT_TMPDIR elsewhere.",
        )
    if not os.access(tmp_dir, os.W_OK):
        return DoctorCheck(
            name="tmp_dir",
            status="FAIL",
            message=f"{tmp_dir} is not writable.",
            fix="Point GNUPLOT_TMPDIR at a writable directory.",
        )
    return DoctorCheck(
        name="tmp_dir",
        status="PASS",
        message=f"{tmp_dir} (up to {MAX_TMP_FILES - 1} data files per session)",
    )


def run_doctor(config: GnuplotConfig | None = None) -> DoctorReport:
    cfg = config if config is not None else default_config()
    return DoctorReport(
        checks=[
            _check_executable(cfg),
            _check_terminal(cfg),
            _check_tmp_dir(cfg),
        ]
    )
