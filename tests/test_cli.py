import os
from pathlib import Path

import pytest

from gnuplotpipe.cli import main
from gnuplotpipe.errors import CleanupError
from gnuplotpipe.session import Gnuplot

pytestmark = pytest.mark.skipif(os.name == "nt", reason="fake gnuplot is a POSIX shell script")


@pytest.fixture
def cli_env(fake_gnuplot, monkeypatch):
    monkeypatch.setenv("GNUPLOT_PATH", str(fake_gnuplot.bin_dir))
    monkeypatch.setenv("GNUPLOT_TERMINAL", "dumb")
    monkeypatch.setenv("GNUPLOT_TMPDIR", str(fake_gnuplot.data_dir))
    return fake_gnuplot


def test_cli_doctor(cli_env, capsys) -> None:
    assert main(["doctor"]) == 0
    out = capsys.readouterr().out
    assert "[PASS] gnuplot_executable" in out


def test_cli_plot_writes_figure_commands_and_cleans_up(cli_env, tmp_path: Path, capsys) -> None:
    data = tmp_path / "xy.dat"
    data.write_text("1 4\n2 5\n3 6\n", encoding="utf-8")
    out_png = tmp_path / "fig.png"
    assert (
        main(
            [
                "plot",
                str(data),
                "--columns",
                "1:2",
                "--style",
                "lines",
                "--title",
                "demo",
                "--output",
                str(out_png),
                "--terminal",
                "png",
            ]
        )
        == 0
    )
    lines = cli_env.lines()
    assert lines[:2] == ["set output", "set terminal png"]
    assert f'set output "{out_png}"' in lines
    assert lines[-1].startswith('plot "')
    assert lines[-1].endswith('using 1:2 title "demo" with lines')
    assert list(cli_env.data_dir.iterdir()) == []
    assert "Plotted 3 rows" in capsys.readouterr().out


def test_cli_plot_keeps_tmpfiles_on_request(cli_env, tmp_path: Path) -> None:
    data = tmp_path / "x.dat"
    data.write_text("1\n2\n", encoding="utf-8")
    assert main(["plot", str(data), "--keep-tmpfiles"]) == 0
    assert len(list(cli_env.data_dir.iterdir())) == 1
    assert cli_env.lines()[-1].endswith("using 1 notitle with points")


def test_cli_equation_3d(cli_env) -> None:
    assert main(["equation", "x**2+y**2", "--3d", "--style", "lines"]) == 0
    assert cli_env.lines()[-1] == 'splot x**2+y**2 title "f(x,y) = x**2+y**2" with lines'


def test_cli_reports_errors_with_exit_status_2(cli_env, tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as info:
        main(["plot", str(tmp_path / "missing.dat")])
    assert info.value.code == 2


def test_cli_plot_error_is_not_masked_by_cleanup_failure(
    cli_env, tmp_path: Path, monkeypatch, capsys
) -> None:
    data = tmp_path / "xy.dat"
    data.write_text("1 4\n2 5\n", encoding="utf-8")

    def fail_plot(self, *args, **kwargs):
        raise ValueError("plot went wrong")

    def fail_cleanup(self):
        raise CleanupError("/tmp/gnuplotiXXXX")

    monkeypatch.setattr(Gnuplot, "plot_xy", fail_plot)
    monkeypatch.setattr(Gnuplot, "remove_tmpfiles", fail_cleanup)
    with pytest.raises(SystemExit) as info:
        main(["plot", str(data)])
    assert info.value.code == 2
    err = capsys.readouterr().err
    assert "error: plot went wrong" in err
