from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import GnuplotConfig
from .errors import CleanupError
from .styles import PlotStyle, SmoothStyle

logger = logging.getLogger(__name__)


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--gnuplot-path", default=None, metavar="DIR")
    parser.add_argument("--terminal", default=None, help="Terminal used with --output (default png).")
    parser.add_argument("--output", default=None, metavar="PATH", help="Write the figure to a file.")
    parser.add_argument("--persist", action="store_true", help="Keep the plot window open.")
    parser.add_argument("--title", default="", help="Series title (empty renders notitle).")
    parser.add_argument("--style", choices=[s.value for s in PlotStyle], default=PlotStyle.NONE.value)
    parser.add_argument("--line-width", type=float, default=0.0)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gnuplotpipe",
        description="gnuplotpipe: drive gnuplot through a pipe with temporary data files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Log every command sent to gnuplot.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # doctor
    doctor = subparsers.add_parser("doctor", help="Check that gnuplot can be launched.")
    doctor.add_argument("--gnuplot-path", default=None, metavar="DIR")

    # plot
    plot = subparsers.add_parser("plot", help="Plot columns of a whitespace-separated data file.")
    plot.add_argument("data", metavar="FILE")
    plot.add_argument("--columns", default=None, metavar="1:2[:3]")
    plot.add_argument("--errorbars", action="store_true", help="Treat a third column as y errors.")
    plot.add_argument("--smooth", choices=[s.value for s in SmoothStyle], default=None)
    plot.add_argument("--xlabel", default="x")
    plot.add_argument("--ylabel", default="y")
    plot.add_argument("--zlabel", default="z")
    plot.add_argument("--keep-tmpfiles", action="store_true")
    _add_session_arguments(plot)

    # equation
    equation = subparsers.add_parser("equation", help="Plot a gnuplot expression such as sin(x).")
    equation.add_argument("expression")
    equation.add_argument("--3d", dest="three_d", action="store_true", help="Use splot, f(x,y).")
    _add_session_arguments(equation)
    return parser


def _config_from_args(args: argparse.Namespace) -> GnuplotConfig:
    cfg = GnuplotConfig.from_env()
    if args.gnuplot_path:
        cfg.gnuplot_path = str(args.gnuplot_path)
    if getattr(args, "persist", False):
        cfg.persist = True
    if getattr(args, "output", None):
        cfg.terminal = args.terminal or "png"
    elif getattr(args, "terminal", None):
        cfg.terminal = args.terminal
    return cfg


def _cmd_doctor(args: argparse.Namespace) -> int:
    from .doctor import run_doctor

    report = run_doctor(_config_from_args(args))
    print(report.render())
    return 1 if report.has_failures else 0


def _cmd_plot(args: argparse.Namespace) -> int:
    from .io import parse_columns, read_table, select_columns
    from .session import Gnuplot

    frame = read_table(args.data)
    if args.columns:
        columns = parse_columns(args.columns)
    else:
        columns = list(range(1, min(int(frame.shape[1]), 3) + 1))
    if len(columns) > 3:
        raise ValueError("At most three columns can be plotted.")
    if args.errorbars and len(columns) != 3:
        raise ValueError("--errorbars needs exactly three columns.")
    vectors = select_columns(frame, columns)

    session = Gnuplot(args.style, config=_config_from_args(args))
    try:
        if args.output:
            session.savetofigure(args.output, session.config.terminal)
        if args.smooth:
            session.set_smooth(args.smooth)
        session.set_line_width(args.line_width)
        session.set_xlabel(args.xlabel).set_ylabel(args.ylabel)
        if len(vectors) == 1:
            session.plot_x(vectors[0], args.title)
        elif len(vectors) == 2:
            session.plot_xy(vectors[0], vectors[1], args.title)
        elif args.errorbars:
            session.plot_xy_err(vectors[0], vectors[1], vectors[2], args.title)
        else:
            session.set_zlabel(args.zlabel)
            session.plot_xyz(vectors[0], vectors[1], vectors[2], args.title)
    except Exception:
        session.close()
        if not args.keep_tmpfiles:
            try:
                session.remove_tmpfiles()
            except CleanupError as exc:
                logger.warning("%s", exc)
        raise
    session.close()
    if not args.keep_tmpfiles:
        session.remove_tmpfiles()

    print(f"Plotted {len(vectors[0])} rows from {args.data} (columns {':'.join(map(str, columns))}).")
    if args.output:
        print(f"Figure output: {args.output}")
    return 0


def _cmd_equation(args: argparse.Namespace) -> int:
    from .session import Gnuplot

    with Gnuplot(args.style, config=_config_from_args(args)) as session:
        if args.output:
            session.savetofigure(args.output, session.config.terminal)
        session.set_line_width(args.line_width)
        if args.three_d:
            session.plot_equation3d(args.expression, args.title)
        else:
            session.plot_equation(args.expression, args.title)
    if args.output:
        print(f"Figure output: {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.command == "doctor":
            return _cmd_doctor(args)
        if args.command == "plot":
            return _cmd_plot(args)
        if args.command == "equation":
            return _cmd_equation(args)
    except Exception as exc:  # pragma: no cover
        parser.exit(status=2, message=f"error: {exc}\n")
    parser.exit(status=2, message="error: unknown command\n")
    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
