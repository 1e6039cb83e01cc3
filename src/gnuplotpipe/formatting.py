"""Builders for gnuplot command lines.

Every function here is pure: it turns typed inputs into command text and never
touches the pipe or the filesystem.
"""

from __future__ import annotations

from enum import Enum
from numbers import Integral
from typing import Iterable, Sequence

from .styles import ContourParam, ContourSettings, ContourType, PlotStyle, SmoothStyle


class PlotKind(str, Enum):
    PLOT = "plot"
    SPLOT = "splot"
    REPLOT = "replot"


def fmt_number(value: float) -> str:
    if isinstance(value, Integral):
        return str(int(value))
    # Six significant digits, no trailing zeros: the default C stream conversion.
    return format(float(value), "g")


def classify_command(cmdstr: str) -> PlotKind | None:
    if "replot" in cmdstr:
        return PlotKind.REPLOT
    if "splot" in cmdstr:
        return PlotKind.SPLOT
    if "plot" in cmdstr:
        return PlotKind.PLOT
    return None


def leading_verb(*, three_d: bool, nplots: int, two_dim: bool) -> PlotKind:
    same_dimension = (not two_dim) if three_d else two_dim
    if nplots > 0 and same_dimension:
        return PlotKind.REPLOT
    return PlotKind.SPLOT if three_d else PlotKind.PLOT


def title_clause(title: str) -> str:
    return "notitle" if not title else f'title "{title}"'


def style_clause(style: PlotStyle, smooth: SmoothStyle = SmoothStyle.NONE) -> str:
    if smooth is not SmoothStyle.NONE:
        return f"smooth {smooth.keyword}"
    return f"with {style.keyword}"


def line_width_clause(line_width: float) -> str:
    return f"lw {fmt_number(line_width)}" if line_width > 0 else ""


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def column_spec(columns: Sequence[int]) -> str:
    if not columns:
        raise ValueError("At least one column selector is required.")
    for column in columns:
        if int(column) < 1:
            raise ValueError(f"Column selectors are 1-based, got {column}")
    return ":".join(str(int(c)) for c in columns)


def data_row(*values: float) -> str:
    return " ".join(fmt_number(v) for v in values)


def file_plot_command(
    verb: PlotKind,
    filename: str,
    columns: Sequence[int],
    *,
    title: str = "",
    style: PlotStyle = PlotStyle.NONE,
    smooth: SmoothStyle = SmoothStyle.NONE,
    line_width: float = 0.0,
) -> str:
    return _join(
        verb.value,
        f'"{filename}"',
        "using",
        column_spec(columns),
        title_clause(title),
        style_clause(style, smooth),
        line_width_clause(line_width),
    )


def surface_plot_command(
    verb: PlotKind,
    filename: str,
    columns: Sequence[int],
    *,
    title: str = "",
    style: PlotStyle = PlotStyle.NONE,
    line_width: float = 0.0,
) -> str:
    # splot data is always drawn with a style; smoothing only applies to 2D.
    return file_plot_command(
        verb, filename, columns, title=title, style=style, line_width=line_width
    )


def errorbar_plot_command(
    verb: PlotKind,
    filename: str,
    columns: Sequence[int],
    *,
    title: str = "",
) -> str:
    return _join(
        verb.value,
        f'"{filename}"',
        "using",
        column_spec(columns),
        "with errorbars",
        title_clause(title),
    )


def inline_series_command(
    verb: PlotKind,
    series: Sequence[Sequence[float]],
    titles: Sequence[str] = (),
    *,
    style: PlotStyle = PlotStyle.NONE,
    smooth: SmoothStyle = SmoothStyle.NONE,
    line_width: float = 0.0,
) -> str:
    """Build a multi-series command whose data follows inline, one ``e`` per block."""
    clauses = []
    for k in range(len(series)):
        title = titles[k] if k < len(titles) else ""
        clauses.append(
            _join(
                "'-' using 1",
                title_clause(title),
                style_clause(style, smooth),
                line_width_clause(line_width),
            )
        )
    lines = [f"{verb.value} " + ", ".join(clauses)]
    for values in series:
        lines.extend(fmt_number(v) for v in values)
        lines.append("e")
    return "\n".join(lines)


def slope_command(
    verb: PlotKind,
    a: float,
    b: float,
    *,
    title: str = "",
    style: PlotStyle = PlotStyle.NONE,
    line_width: float = 0.0,
) -> str:
    expression = f"{fmt_number(a)} * x + {fmt_number(b)}"
    label = title if title else f"f(x) = {expression}"
    return _join(
        verb.value,
        expression,
        title_clause(label),
        style_clause(style),
        line_width_clause(line_width),
    )


def equation_command(
    verb: PlotKind,
    equation: str,
    *,
    title: str = "",
    style: PlotStyle = PlotStyle.NONE,
    line_width: float = 0.0,
) -> str:
    return _join(
        verb.value,
        equation,
        title_clause(title),
        style_clause(style),
        line_width_clause(line_width),
    )


def equation3d_command(
    verb: PlotKind,
    equation: str,
    *,
    title: str = "",
    style: PlotStyle = PlotStyle.NONE,
    line_width: float = 0.0,
) -> str:
    label = title if title else f"f(x,y) = {equation}"
    return _join(
        verb.value,
        equation,
        title_clause(label),
        style_clause(style),
        line_width_clause(line_width),
    )


def image_command(verb: PlotKind, filename: str, *, title: str = "") -> str:
    return _join(verb.value, f'"{filename}"', "with image", title_clause(title))


def range_command(axis: str, lower: float, upper: float) -> str:
    return f"set {axis}range[{fmt_number(lower)}:{fmt_number(upper)}]"


def contour_commands(settings: ContourSettings) -> list[str]:
    if settings.type is ContourType.NONE:
        return ["unset contour"]
    commands = [f"set contour {settings.type.value}"]
    if settings.param is ContourParam.LEVELS:
        commands.append(f"set cntrparam levels {int(settings.levels)}")
    elif settings.param is ContourParam.INCREMENT:
        triple = (settings.increment_start, settings.increment_step, settings.increment_end)
        commands.append("set cntrparam increment " + ",".join(fmt_number(v) for v in triple))
    else:
        commands.append(_discrete_levels_command(settings.discrete_levels))
    return commands


def _discrete_levels_command(levels: Iterable[float]) -> str:
    values = ", ".join(fmt_number(v) for v in levels)
    return f"set cntrparam level discrete {values}".rstrip()
