from __future__ import annotations

import io

import pytest

from goexpr.runner import USAGE, define, main
from tests.support.harness import ParseError, run_program


def test_run_parses_and_evaluates() -> None:
    assert run_program("1 + 2").data.const.value == 3


def test_run_reports_parse_errors() -> None:
    with pytest.raises(ParseError):
        run_program("1 +")


def test_define_sees_earlier_bindings() -> None:
    args = {}
    define("x=40", args)
    define("y = x + 2", args)
    assert args["y"].data.const.value == 42


def test_define_rejects_malformed_text() -> None:
    with pytest.raises(SystemExit):
        define("=5", {})


CLI_SCENARIOS = [
    pytest.param(["-D", "x=40", "x + 2"], "42 (untyped int constant)", id="define-flag"),
    pytest.param(["-Dy=int64(1)", "y << 3"], "8 (int64 constant)", id="define-attached"),
    pytest.param(["-D", "a=2", "-D", "b=a * 3", "b"], "6 (untyped int constant)", id="define-chain"),
    pytest.param(["--pkg", "example.com/app", '"ok"'], '"ok" (untyped string constant)', id="pkg-flag"),
    pytest.param(["--pkg=other", "1 == 1"], "true (untyped bool constant)", id="pkg-attached"),
    pytest.param(["-v", "missing"], None, id="verbose-error"),
]


@pytest.mark.parametrize("argv, expected", CLI_SCENARIOS)
def test_main(argv, expected, capsys) -> None:
    code = main(argv)
    out, err = capsys.readouterr()
    if expected is None:
        assert code == 1
        assert err.startswith("error: ")
        return
    assert code == 0
    assert out == f"{expected}\n"


def test_main_reports_errors(capsys) -> None:
    assert main(["1 +"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert err.startswith("error: ")


def test_main_reports_evaluation_position(capsys) -> None:
    assert main(["1 + missing"]) == 1
    err = capsys.readouterr().err
    assert err == "error: undefined: missing (line 1, col 5)\n"


def test_main_prints_python_traceback_when_enabled(monkeypatch, capsys) -> None:
    monkeypatch.setenv("GOEXPR_DEBUG_PY_TRACE", "1")
    assert main(["missing"]) == 1
    err = capsys.readouterr().err
    assert "Traceback (most recent call last)" in err
    assert "error: undefined: missing" in err


def test_main_help(capsys) -> None:
    assert main(["-h"]) == 0
    assert capsys.readouterr().out == f"{USAGE}\n"


def test_main_reads_stdin(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("1 << 4\n"))
    assert main(["-"]) == 0
    assert capsys.readouterr().out == "16 (untyped int constant)\n"


def test_main_defaults_to_stdin(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO('"go" + "pher"'))
    assert main([]) == 0
    assert capsys.readouterr().out == '"gopher" (untyped string constant)\n'


def test_main_rejects_empty_stdin(monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert "No input provided on stdin" in str(exc_info.value)


def test_main_reads_file(tmp_path, capsys) -> None:
    path = tmp_path / "answer.goexpr"
    path.write_text("2 *\n\t21\n", encoding="utf-8")
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == "42 (untyped int constant)\n"


ARGV_ERRORS = [
    pytest.param(["-D", "bad", "1"], id="define-without-equals"),
    pytest.param(["-D"], id="define-missing-value"),
    pytest.param(["--pkg"], id="pkg-missing-value"),
    pytest.param(["1", "2"], id="extra-argument"),
]


@pytest.mark.parametrize("argv", ARGV_ERRORS)
def test_main_rejects_bad_arguments(argv, monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit):
        main(argv)
