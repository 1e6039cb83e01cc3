from __future__ import annotations

import os
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .errors import LaunchError

IS_WINDOWS = os.name == "nt"
IS_MACOS = sys.platform == "darwin"

# Windows caps the number of simultaneously usable temporary names far lower.
MAX_TMP_FILES = 27 if IS_WINDOWS else 64


def _default_gnuplot_path() -> str:
    return "C:/program files/gnuplot/bin/" if IS_WINDOWS else "/usr/local/bin/"


def _default_gnuplot_filename() -> str:
    return "pgnuplot.exe" if IS_WINDOWS else "gnuplot"


def _default_terminal() -> str:
    if IS_WINDOWS:
        return "windows"
    if IS_MACOS:
        return "aqua"
    return "x11"


def _env_flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class GnuplotConfig:
    gnuplot_path: str = field(default_factory=_default_gnuplot_path)
    gnuplot_filename: str = field(default_factory=_default_gnuplot_filename)
    terminal: str = field(default_factory=_default_terminal)
    tmp_dir: str | None = None
    persist: bool = False

    @classmethod
    def from_env(cls) -> "GnuplotConfig":
        cfg = cls()
        cfg.gnuplot_path = os.environ.get("GNUPLOT_PATH", cfg.gnuplot_path)
        cfg.gnuplot_filename = os.environ.get("GNUPLOT_FILENAME", cfg.gnuplot_filename)
        cfg.terminal = os.environ.get("GNUPLOT_TERMINAL", cfg.terminal)
        cfg.tmp_dir = os.environ.get("GNUPLOT_TMPDIR") or None
        cfg.persist = _env_flag(os.environ.get("GNUPLOT_PERSIST"))
        return cfg

    @property
    def configured_executable(self) -> Path:
        return Path(self.gnuplot_path) / self.gnuplot_filename

    def resolved_tmp_dir(self) -> str:
        return self.tmp_dir if self.tmp_dir else tempfile.gettempdir()


_DEFAULT_CONFIG: GnuplotConfig | None = None


def default_config() -> GnuplotConfig:
    """Process-wide configuration shared by sessions created without an explicit config."""
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None:
        _DEFAULT_CONFIG = GnuplotConfig.from_env()
    return _DEFAULT_CONFIG


def reset_default_config() -> None:
    global _DEFAULT_CONFIG
    _DEFAULT_CONFIG = None


def is_executable(path: str | Path) -> bool:
    p = Path(path)
    if not p.is_file():
        return False
    if IS_WINDOWS:
        return True
    return os.access(p, os.X_OK)


def find_gnuplot(config: GnuplotConfig | None = None) -> Path:
    """Locate the gnuplot executable.

    The configured directory is tried first, then every entry of ``PATH``.
    """
    cfg = config if config is not None else default_config()
    if cfg.gnuplot_path and is_executable(cfg.configured_executable):
        return cfg.configured_executable

    search_path = os.environ.get("PATH")
    if search_path is None:
        raise LaunchError("Path is not set")

    found = shutil.which(cfg.gnuplot_filename, path=search_path)
    if found and is_executable(found):
        return Path(found)
    raise LaunchError(
        f"Can't find gnuplot neither in PATH nor in \"{cfg.gnuplot_path}\"",
        context=f"PATH entries scanned: {len(search_path.split(os.pathsep))}",
    )


def display_available() -> bool:
    return bool(os.environ.get("DISPLAY"))


def check_terminal(terminal: str) -> None:
    if IS_WINDOWS or IS_MACOS:
        return
    if "x11" in terminal and not display_available():
        raise LaunchError("Can't find DISPLAY variable", context=f"terminal={terminal}")


def set_gnuplot_path(path: str | Path, config: GnuplotConfig | None = None) -> bool:
    cfg = config if config is not None else default_config()
    if is_executable(Path(path) / cfg.gnuplot_filename):
        cfg.gnuplot_path = str(path)
        return True
    cfg.gnuplot_path = ""
    return False


def set_terminal_std(terminal: str, config: GnuplotConfig | None = None) -> None:
    cfg = config if config is not None else default_config()
    check_terminal(terminal)
    cfg.terminal = terminal
