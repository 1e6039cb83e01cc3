from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PlotStyle(str, Enum):
    NONE = "none"
    LINES = "lines"
    POINTS = "points"
    LINES_POINTS = "linespoints"
    IMPULSES = "impulses"
    DOTS = "dots"
    STEPS = "steps"
    FSTEPS = "fsteps"
    HISTEPS = "histeps"
    BOXES = "boxes"
    FILLED_CURVES = "filledcurves"
    HISTOGRAMS = "histograms"

    @property
    def keyword(self) -> str:
        # gnuplot has no "none" style; points is its default.
        return "points" if self is PlotStyle.NONE else self.value


class SmoothStyle(str, Enum):
    NONE = "none"
    UNIQUE = "unique"
    FREQUENCY = "frequency"
    CSPLINES = "csplines"
    ACSPLINES = "acsplines"
    BEZIER = "bezier"
    SBEZIER = "sbezier"

    @property
    def keyword(self) -> str:
        return "" if self is SmoothStyle.NONE else self.value


class ContourType(str, Enum):
    NONE = "none"
    BASE = "base"
    SURFACE = "surface"
    BOTH = "both"


class ContourParam(str, Enum):
    LEVELS = "levels"
    INCREMENT = "increment"
    DISCRETE = "discrete"


@dataclass
class ContourSettings:
    type: ContourType = ContourType.NONE
    param: ContourParam = ContourParam.LEVELS
    levels: int = 10
    discrete_levels: list[float] = field(default_factory=list)
    increment_start: float = 0.0
    increment_step: float = 0.1
    increment_end: float = 1.0


def parse_plot_style(value: str | PlotStyle) -> PlotStyle:
    if isinstance(value, PlotStyle):
        return value
    key = str(value).strip().lower().replace("_", "")
    for style in PlotStyle:
        if key in {style.value, style.name.lower().replace("_", "")}:
            return style
    raise ValueError(f"Unsupported plot style: {value}")


def parse_smooth_style(value: str | SmoothStyle) -> SmoothStyle:
    if isinstance(value, SmoothStyle):
        return value
    try:
        return SmoothStyle(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported smooth style: {value}") from None
