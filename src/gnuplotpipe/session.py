from __future__ import annotations

import logging
import operator
import os
import subprocess
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from .config import GnuplotConfig, check_terminal, default_config, find_gnuplot
from .errors import GnuplotIOError, LaunchError, ValidationError
from .formatting import (
    PlotKind,
    classify_command,
    contour_commands,
    data_row,
    equation3d_command,
    equation_command,
    errorbar_plot_command,
    file_plot_command,
    fmt_number,
    image_command,
    inline_series_command,
    leading_verb,
    range_command,
    slope_command,
    surface_plot_command,
)
from .styles import (
    ContourParam,
    ContourSettings,
    ContourType,
    PlotStyle,
    SmoothStyle,
    parse_plot_style,
    parse_smooth_style,
)
from .tempfiles import TempFileManager

logger = logging.getLogger(__name__)


def _as_vector(values: Any, name: str) -> np.ndarray:
    # Integer input keeps its dtype so it is written exactly rather than through %g.
    try:
        arr = np.asarray(values)
        if arr.dtype.kind not in "iu":
            arr = arr.astype(float)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a sequence of numbers.", context=str(exc)) from exc
    if arr.ndim != 1:
        raise ValidationError(f"{name} must be one-dimensional, got shape {arr.shape}.")
    if arr.size == 0:
        raise ValidationError(f"Input vector {name} is empty. Cannot plot data.")
    return arr


def _require_equal_lengths(**vectors: np.ndarray) -> None:
    lengths = {name: int(v.size) for name, v in vectors.items()}
    if len(set(lengths.values())) != 1:
        detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
        raise ValidationError("Length of the vectors differs.", context=detail)


def _require_text(value: str, name: str) -> str:
    if not str(value).strip():
        raise ValidationError(f"{name} must not be empty.")
    return str(value)


class Gnuplot:
    """One gnuplot child process fed through a write-only pipe.

    The session never reads from gnuplot. It keeps just enough state (2D/3D mode
    and the number of plots since the last reset) to choose between ``plot``,
    ``splot`` and ``replot``. A session belongs to a single thread.
    """

    def __init__(
        self,
        style: PlotStyle | str = PlotStyle.NONE,
        *,
        config: GnuplotConfig | None = None,
    ) -> None:
        self.config = config if config is not None else default_config()
        self.valid = False
        self.two_dim = False
        self.nplots = 0
        self.line_width = 0.0
        self.plot_style = PlotStyle.NONE
        self.smooth_style = SmoothStyle.NONE
        self.contour = ContourSettings()
        self.tmpfiles = TempFileManager(self.config.resolved_tmp_dir())
        self._process: subprocess.Popen[str] | None = None
        self._closed = False
        self._open()
        self.set_style(style)

    @classmethod
    def with_data(
        cls,
        x: Sequence[float],
        y: Sequence[float] | None = None,
        z: Sequence[float] | None = None,
        *,
        title: str = "",
        style: PlotStyle | str = PlotStyle.NONE,
        labels: tuple[str, str, str] = ("x", "y", "z"),
        config: GnuplotConfig | None = None,
    ) -> "Gnuplot":
        """Open a session and immediately plot ``x``, ``x/y`` or ``x/y/z``."""
        if z is not None and y is None:
            raise ValidationError("z data requires y data.")
        session = cls(style, config=config)
        try:
            session.set_xlabel(labels[0]).set_ylabel(labels[1])
            if y is None:
                session.plot_x(x, title)
            elif z is None:
                session.plot_xy(x, y, title)
            else:
                session.set_zlabel(labels[2])
                session.plot_xyz(x, y, z, title)
        except Exception:
            session.close()
            raise
        return session

    # -- lifecycle ---------------------------------------------------------

    def _open(self) -> None:
        check_terminal(self.config.terminal)
        executable = find_gnuplot(self.config)
        args = [str(executable)]
        if self.config.persist:
            args.append("-persist")
        try:
            self._process = subprocess.Popen(
                args,
                stdin=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:
            raise LaunchError("Couldn't open connection to gnuplot", context=str(exc)) from exc
        if self._process.stdin is None:
            raise LaunchError("Couldn't open connection to gnuplot")
        logger.debug("Started %s (pid %s)", executable, self._process.pid)

        self.nplots = 0
        self.two_dim = False
        self.valid = True
        self.plot_style = PlotStyle.NONE
        self.smooth_style = SmoothStyle.NONE
        self.showonscreen()

    def close(self) -> None:
        """Close the pipe and wait for gnuplot to exit. Runs at most once; never raises."""
        if self._closed:
            return
        self._closed = True
        self.valid = False
        process = self._process
        if process is None:
            return
        try:
            if process.stdin is not None:
                process.stdin.close()
        except OSError as exc:
            logger.warning("Problem closing communication to gnuplot: %s", exc)
        try:
            returncode = process.wait()
        except OSError as exc:
            logger.warning("Problem waiting for gnuplot to exit: %s", exc)
            return
        if returncode != 0:
            logger.warning("gnuplot exited with status %d", returncode)

    def __enter__(self) -> "Gnuplot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_closed", True):
            return
        self.close()

    def is_valid(self) -> bool:
        return self.valid

    # -- pipe --------------------------------------------------------------

    def _write(self, cmdstr: str) -> None:
        process = self._process
        if not self.valid or process is None or process.stdin is None:
            raise GnuplotIOError("gnuplot session is not open.", context=cmdstr[:80])
        try:
            process.stdin.write(cmdstr + "\n")
            process.stdin.flush()
        except (OSError, ValueError) as exc:
            raise GnuplotIOError("Failed to send command to gnuplot.", context=str(exc)) from exc
        logger.debug("gnuplot << %s", cmdstr)

    def _track(self, kind: PlotKind | None) -> None:
        if kind is None or kind is PlotKind.REPLOT:
            return
        self.two_dim = kind is PlotKind.PLOT
        self.nplots += 1

    def send_cmd(self, cmdstr: str, kind: PlotKind | None = None) -> "Gnuplot":
        """Send one raw command.

        Without ``kind`` the command text is classified by substring: ``replot``
        leaves the state alone, then ``splot`` selects 3D, then ``plot`` selects 2D.
        Pass ``kind`` when the text could mislead that check (e.g. a quoted title).
        """
        self._write(cmdstr)
        self._track(kind if kind is not None else classify_command(cmdstr))
        return self

    def __lshift__(self, cmdstr: str) -> "Gnuplot":
        return self.send_cmd(cmdstr)

    def _verb(self, three_d: bool) -> PlotKind:
        return leading_verb(three_d=three_d, nplots=self.nplots, two_dim=self.two_dim)

    def _send_plot(self, cmdstr: str, verb: PlotKind) -> "Gnuplot":
        self._write(cmdstr)
        self._track(verb)
        return self

    # -- terminal / output -------------------------------------------------

    def showonscreen(self) -> "Gnuplot":
        self._write("set output")
        self._write(f"set terminal {self.config.terminal}")
        return self

    def savetofigure(self, filename: str | Path, terminal: str = "ps") -> "Gnuplot":
        self._write(f"set terminal {terminal}")
        self._write(f'set output "{filename}"')
        return self

    # -- style state -------------------------------------------------------

    def set_style(self, style: PlotStyle | str) -> "Gnuplot":
        self.plot_style = parse_plot_style(style)
        return self

    def set_smooth(self, style: SmoothStyle | str = SmoothStyle.CSPLINES) -> "Gnuplot":
        self.smooth_style = parse_smooth_style(style)
        return self

    def set_line_width(self, width: float) -> "Gnuplot":
        if width > 0:
            self.line_width = float(width)
        return self

    def set_pointsize(self, pointsize: float = 1.0) -> "Gnuplot":
        self._write(f"set pointsize {fmt_number(pointsize)}")
        return self

    # -- toggles -----------------------------------------------------------

    def set_grid(self) -> "Gnuplot":
        self._write("set grid")
        return self

    def unset_grid(self) -> "Gnuplot":
        self._write("unset grid")
        return self

    def set_multiplot(self) -> "Gnuplot":
        self._write("set multiplot")
        return self

    def unset_multiplot(self) -> "Gnuplot":
        self._write("unset multiplot")
        return self

    def set_samples(self, samples: int = 100) -> "Gnuplot":
        self._write(f"set samples {int(samples)}")
        return self

    def set_isosamples(self, isolines: int = 10) -> "Gnuplot":
        self._write(f"set isosamples {int(isolines)}")
        return self

    def set_hidden3d(self) -> "Gnuplot":
        self._write("set hidden3d")
        return self

    def unset_hidden3d(self) -> "Gnuplot":
        self._write("unset hidden3d")
        return self

    def set_surface(self) -> "Gnuplot":
        self._write("set surface")
        return self

    def unset_surface(self) -> "Gnuplot":
        self._write("unset surface")
        return self

    def unset_contour(self) -> "Gnuplot":
        self._write("unset contour")
        return self

    # -- contour -----------------------------------------------------------

    def set_contour_type(self, contour_type: ContourType | str) -> "Gnuplot":
        self.contour.type = ContourType(contour_type)
        return self

    def set_contour_param(self, param: ContourParam | str) -> "Gnuplot":
        self.contour.param = ContourParam(param)
        return self

    def set_contour_levels(self, levels: int) -> "Gnuplot":
        if levels > 0:
            self.contour.levels = int(levels)
        return self

    def set_contour_increment(self, start: float, step: float, end: float) -> "Gnuplot":
        self.contour.increment_start = float(start)
        self.contour.increment_step = float(step)
        self.contour.increment_end = float(end)
        return self

    def set_contour_discrete_levels(self, levels: Sequence[float]) -> "Gnuplot":
        self.contour.discrete_levels = [float(v) for v in levels]
        return self

    def apply_contour_settings(self) -> "Gnuplot":
        for cmdstr in contour_commands(self.contour):
            self._write(cmdstr)
        return self

    # -- legend, titles, labels --------------------------------------------

    def set_legend(self, position: str = "default") -> "Gnuplot":
        self._write(f"set key {position}")
        return self

    def unset_legend(self) -> "Gnuplot":
        self._write("unset key")
        return self

    def set_title(self, title: str = "") -> "Gnuplot":
        self._write(f'set title "{title}"')
        return self

    def unset_title(self) -> "Gnuplot":
        return self.set_title()

    def set_xlabel(self, label: str = "x") -> "Gnuplot":
        self._write(f'set xlabel "{label}"')
        return self

    def set_ylabel(self, label: str = "y") -> "Gnuplot":
        self._write(f'set ylabel "{label}"')
        return self

    def set_zlabel(self, label: str = "z") -> "Gnuplot":
        self._write(f'set zlabel "{label}"')
        return self

    # -- axes --------------------------------------------------------------

    def set_xrange(self, lower: float, upper: float) -> "Gnuplot":
        self._write(range_command("x", lower, upper))
        return self

    def set_yrange(self, lower: float, upper: float) -> "Gnuplot":
        self._write(range_command("y", lower, upper))
        return self

    def set_zrange(self, lower: float, upper: float) -> "Gnuplot":
        self._write(range_command("z", lower, upper))
        return self

    def set_cbrange(self, lower: float, upper: float) -> "Gnuplot":
        self._write(range_command("cb", lower, upper))
        return self

    def _autoscale(self, axis: str) -> "Gnuplot":
        self._write(f"set {axis}range restore")
        self._write(f"set autoscale {axis}")
        return self

    def set_xautoscale(self) -> "Gnuplot":
        return self._autoscale("x")

    def set_yautoscale(self) -> "Gnuplot":
        return self._autoscale("y")

    def set_zautoscale(self) -> "Gnuplot":
        return self._autoscale("z")

    def set_xlogscale(self, base: float = 10) -> "Gnuplot":
        self._write(f"set logscale x {fmt_number(base)}")
        return self

    def set_ylogscale(self, base: float = 10) -> "Gnuplot":
        self._write(f"set logscale y {fmt_number(base)}")
        return self

    def set_zlogscale(self, base: float = 10) -> "Gnuplot":
        self._write(f"set logscale z {fmt_number(base)}")
        return self

    def unset_xlogscale(self) -> "Gnuplot":
        self._write("unset logscale x")
        return self

    def unset_ylogscale(self) -> "Gnuplot":
        self._write("unset logscale y")
        return self

    def unset_zlogscale(self) -> "Gnuplot":
        self._write("unset logscale z")
        return self

    # -- file-based plots --------------------------------------------------

    def _file_ready(self, filename: str | Path) -> bool:
        path = Path(filename)
        if not path.exists():
            logger.warning('File "%s" does not exist.', path)
            return False
        if not os.access(path, os.R_OK):
            logger.warning('No read permission for file "%s".', path)
            return False
        return True

    def plotfile_x(self, filename: str | Path, column: int = 1, title: str = "") -> "Gnuplot":
        if not self._file_ready(filename):
            return self
        verb = self._verb(three_d=False)
        cmdstr = file_plot_command(
            verb,
            str(filename),
            (column,),
            title=title,
            style=self.plot_style,
            smooth=self.smooth_style,
            line_width=self.line_width,
        )
        return self._send_plot(cmdstr, verb)

    def plotfile_xy(
        self,
        filename: str | Path,
        column_x: int = 1,
        column_y: int = 2,
        title: str = "",
    ) -> "Gnuplot":
        if not self._file_ready(filename):
            return self
        verb = self._verb(three_d=False)
        cmdstr = file_plot_command(
            verb,
            str(filename),
            (column_x, column_y),
            title=title,
            style=self.plot_style,
            smooth=self.smooth_style,
            line_width=self.line_width,
        )
        return self._send_plot(cmdstr, verb)

    def plotfile_xy_err(
        self,
        filename: str | Path,
        column_x: int = 1,
        column_y: int = 2,
        column_dy: int = 3,
        title: str = "",
    ) -> "Gnuplot":
        if not self._file_ready(filename):
            return self
        verb = self._verb(three_d=False)
        cmdstr = errorbar_plot_command(
            verb, str(filename), (column_x, column_y, column_dy), title=title
        )
        return self._send_plot(cmdstr, verb)

    def plotfile_xyz(
        self,
        filename: str | Path,
        column_x: int = 1,
        column_y: int = 2,
        column_z: int = 3,
        title: str = "",
    ) -> "Gnuplot":
        if not self._file_ready(filename):
            return self
        verb = self._verb(three_d=True)
        cmdstr = surface_plot_command(
            verb,
            str(filename),
            (column_x, column_y, column_z),
            title=title,
            style=self.plot_style,
            line_width=self.line_width,
        )
        return self._send_plot(cmdstr, verb)

    # -- data plots --------------------------------------------------------

    def plot_x(self, x: Sequence[float], title: str = "") -> "Gnuplot":
        xs = _as_vector(x, "x")
        path = self.tmpfiles.write_rows(fmt_number(v) for v in xs)
        return self.plotfile_x(path, 1, title)

    def plot_series(
        self,
        series: Sequence[Sequence[float]],
        titles: Sequence[str] = (),
    ) -> "Gnuplot":
        """Plot several single-column series in one command with inline data blocks."""
        if len(series) == 0:
            raise ValidationError("No series given. Cannot plot data.")
        vectors = [_as_vector(values, f"series[{k}]") for k, values in enumerate(series)]
        verb = self._verb(three_d=False)
        cmdstr = inline_series_command(
            verb,
            vectors,
            [titles] if isinstance(titles, str) else list(titles),
            style=self.plot_style,
            smooth=self.smooth_style,
            line_width=self.line_width,
        )
        return self._send_plot(cmdstr, verb)

    def plot_xy(self, x: Sequence[float], y: Sequence[float], title: str = "") -> "Gnuplot":
        xs = _as_vector(x, "x")
        ys = _as_vector(y, "y")
        _require_equal_lengths(x=xs, y=ys)
        path = self.tmpfiles.write_rows(data_row(a, b) for a, b in zip(xs, ys))
        return self.plotfile_xy(path, 1, 2, title)

    def plot_xy_err(
        self,
        x: Sequence[float],
        y: Sequence[float],
        dy: Sequence[float],
        title: str = "",
    ) -> "Gnuplot":
        xs = _as_vector(x, "x")
        ys = _as_vector(y, "y")
        dys = _as_vector(dy, "dy")
        _require_equal_lengths(x=xs, y=ys, dy=dys)
        path = self.tmpfiles.write_rows(data_row(a, b, e) for a, b, e in zip(xs, ys, dys))
        return self.plotfile_xy_err(path, 1, 2, 3, title)

    def plot_xyz(
        self,
        x: Sequence[float],
        y: Sequence[float],
        z: Sequence[float],
        title: str = "",
    ) -> "Gnuplot":
        xs = _as_vector(x, "x")
        ys = _as_vector(y, "y")
        zs = _as_vector(z, "z")
        _require_equal_lengths(x=xs, y=ys, z=zs)
        path = self.tmpfiles.write_rows(data_row(a, b, c) for a, b, c in zip(xs, ys, zs))
        return self.plotfile_xyz(path, 1, 2, 3, title)

    def plot_3d_grid(
        self,
        x: Sequence[float],
        y: Sequence[float],
        z: Any,
        title: str = "",
    ) -> "Gnuplot":
        """Plot ``z[i][j]`` over the grid ``x[i], y[j]``; rows are grouped by ``x``."""
        xs = _as_vector(x, "x")
        ys = _as_vector(y, "y")
        try:
            grid = np.asarray(z, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValidationError("z must be a rectangular grid of numbers.", context=str(exc)) from exc
        if grid.size == 0:
            raise ValidationError("Input grid z is empty. Cannot plot data.")
        if grid.ndim != 2 or grid.shape != (xs.size, ys.size):
            raise ValidationError(
                "Dimensions of z must match x and y sizes.",
                context=f"z shape={grid.shape}, len(x)={xs.size}, len(y)={ys.size}",
            )

        def _rows():
            for i in range(xs.size):
                for j in range(ys.size):
                    yield data_row(xs[i], ys[j], grid[i, j])
                yield ""

        path = self.tmpfiles.write_rows(_rows())
        return self.plotfile_xyz(path, 1, 2, 3, title)

    def plot_image(
        self,
        pixels: Any,
        width: int | None = None,
        height: int | None = None,
        title: str = "",
    ) -> "Gnuplot":
        """Plot a grayscale image given row-major pixel values.

        ``pixels`` is either a 2D ``(height, width)`` array or a flat buffer with
        explicit ``width`` and ``height``.
        """
        try:
            buf = np.asarray(pixels, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValidationError("pixels must be numeric.", context=str(exc)) from exc
        if buf.size == 0:
            raise ValidationError("Image buffer is empty. Cannot plot data.")
        if buf.ndim == 2:
            height = buf.shape[0] if height is None else height
            width = buf.shape[1] if width is None else width
        if width is None or height is None:
            raise ValidationError("width and height are required for a flat pixel buffer.")
        try:
            width = operator.index(width)
            height = operator.index(height)
        except TypeError as exc:
            raise ValidationError("width and height must be integers.", context=str(exc)) from exc
        if width <= 0 or height <= 0 or buf.size != width * height:
            raise ValidationError(
                "Image buffer size does not match width * height.",
                context=f"size={buf.size}, width={width}, height={height}",
            )
        flat = buf.ravel()

        def _rows():
            index = 0
            for row in range(height):
                for col in range(width):
                    yield data_row(col, row, flat[index])
                    index += 1

        path = self.tmpfiles.write_rows(_rows())
        if not self._file_ready(path):
            return self
        verb = self._verb(three_d=False)
        return self._send_plot(image_command(verb, str(path), title=title), verb)

    # -- expression plots --------------------------------------------------

    def plot_slope(self, a: float, b: float, title: str = "") -> "Gnuplot":
        verb = self._verb(three_d=False)
        cmdstr = slope_command(
            verb, a, b, title=title, style=self.plot_style, line_width=self.line_width
        )
        return self._send_plot(cmdstr, verb)

    def plot_equation(self, equation: str, title: str = "") -> "Gnuplot":
        equation = _require_text(equation, "equation")
        verb = self._verb(three_d=False)
        cmdstr = equation_command(
            verb, equation, title=title, style=self.plot_style, line_width=self.line_width
        )
        return self._send_plot(cmdstr, verb)

    def plot_equation3d(self, equation: str, title: str = "") -> "Gnuplot":
        equation = _require_text(equation, "equation")
        verb = self._verb(three_d=True)
        cmdstr = equation3d_command(
            verb, equation, title=title, style=self.plot_style, line_width=self.line_width
        )
        return self._send_plot(cmdstr, verb)

    # -- state resets ------------------------------------------------------

    def replot(self) -> "Gnuplot":
        if self.nplots > 0:
            self._send_plot("replot", PlotKind.REPLOT)
        return self

    def reset_plot(self) -> "Gnuplot":
        """Forget earlier plots so the next one starts a fresh figure."""
        self.nplots = 0
        return self

    def reset_all(self) -> "Gnuplot":
        self.nplots = 0
        self._write("reset")
        self._write("clear")
        self.plot_style = PlotStyle.NONE
        self.smooth_style = SmoothStyle.NONE
        return self.showonscreen()

    def remove_tmpfiles(self) -> None:
        self.tmpfiles.remove_all()
