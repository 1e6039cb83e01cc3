"""gnuplotpipe package."""

from .config import GnuplotConfig, default_config, find_gnuplot, set_gnuplot_path, set_terminal_std
from .errors import (
    CleanupError,
    GnuplotError,
    GnuplotIOError,
    LaunchError,
    ResourceExhausted,
    ValidationError,
)
from .formatting import PlotKind
from .session import Gnuplot
from .styles import ContourParam, ContourSettings, ContourType, PlotStyle, SmoothStyle
from .tempfiles import TempFileManager

__all__ = [
    "CleanupError",
    "ContourParam",
    "ContourSettings",
    "ContourType",
    "Gnuplot",
    "GnuplotConfig",
    "GnuplotError",
    "GnuplotIOError",
    "LaunchError",
    "PlotKind",
    "PlotStyle",
    "ResourceExhausted",
    "SmoothStyle",
    "TempFileManager",
    "ValidationError",
    "default_config",
    "find_gnuplot",
    "set_gnuplot_path",
    "set_terminal_std",
]

__version__ = "0.1.0"
