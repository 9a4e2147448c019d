from __future__ import annotations

import os

import pytest

from goexpr.repl import ReplState, _is_open, _normalize, eval_line


@pytest.fixture
def state() -> ReplState:
    return ReplState()


def test_eval_line_prints_result(state, capsys) -> None:
    eval_line("1 + 2", state)
    assert capsys.readouterr().out == "3 (untyped int constant)\n"


def test_eval_line_reports_errors(state, capsys) -> None:
    eval_line("1 +", state)
    out, err = capsys.readouterr()
    assert out == ""
    assert err.startswith("Error: ")


def test_blank_line_is_ignored(state, capsys) -> None:
    eval_line("  \u200b ", state)
    assert capsys.readouterr() == ("", "")


def test_let_then_use(state, capsys) -> None:
    eval_line("/let x 40", state)
    eval_line("x + 2", state)
    assert capsys.readouterr().out == "x = 40 (untyped int constant)\n42 (untyped int constant)\n"


def test_let_sees_earlier_bindings(state, capsys) -> None:
    eval_line("/let xs []int{1, 2}", state)
    eval_line("/let n len(xs)", state)
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == "n = 2 (int)"


def test_let_usage(state, capsys) -> None:
    eval_line("/let 1x 2", state)
    assert capsys.readouterr().err == "Usage: /let name expr\n"
    assert state.args == {}


def test_let_error_keeps_environment(state, capsys) -> None:
    eval_line("/let x missing", state)
    assert "Error: undefined: missing" in capsys.readouterr().err
    assert "x" not in state.args


def test_env_listing(state, capsys) -> None:
    eval_line("/env", state)
    eval_line("/let b 1.5", state)
    eval_line("/let a int8(3)", state)
    capsys.readouterr()
    eval_line("/env", state)
    assert capsys.readouterr().out == (
        "a: 3 (constant of type int8)\n"
        "b: 1.5 (untyped float constant)\n"
    )


def test_env_empty(state, capsys) -> None:
    eval_line("/env", state)
    assert capsys.readouterr().out == "(no bindings)\n"


def test_unset(state, capsys) -> None:
    eval_line("/let x 1", state)
    eval_line("/unset x", state)
    eval_line("/unset x", state)
    out, err = capsys.readouterr()
    assert err == "Not bound: x\n"
    assert state.args == {}


def test_pkg_shows_and_sets(state, capsys) -> None:
    eval_line("/pkg", state)
    eval_line("/pkg example.com/app", state)
    assert capsys.readouterr().out == "Package path: main\nPackage path: example.com/app\n"
    assert state.pkg_path == "example.com/app"


def test_py_traceback_toggle(state, monkeypatch, capsys) -> None:
    monkeypatch.setenv("GOEXPR_DEBUG_PY_TRACE", "0")
    eval_line("/py-traceback on", state)
    assert os.environ["GOEXPR_DEBUG_PY_TRACE"] == "1"
    eval_line("/py-traceback", state)
    assert "GOEXPR_DEBUG_PY_TRACE" not in os.environ
    eval_line("/py-traceback maybe", state)
    out, err = capsys.readouterr()
    assert out == "Python traceback: on\nPython traceback: off\n"
    assert err == "Usage: /py-traceback [on|off]\n"


def test_traceback_printed_with_errors(state, monkeypatch, capsys) -> None:
    monkeypatch.setenv("GOEXPR_DEBUG_PY_TRACE", "1")
    eval_line("missing", state)
    err = capsys.readouterr().err
    assert err.startswith("Error: undefined: missing")
    assert "Python traceback:" in err


def test_reset(state, capsys) -> None:
    eval_line("/let x 1", state)
    eval_line("/pkg other", state)
    eval_line("/reset", state)
    assert capsys.readouterr().out.endswith("Environment reset.\n")
    assert state.args == {}
    assert state.pkg_path == "main"


def test_unknown_command(state, capsys) -> None:
    eval_line("/bogus", state)
    assert capsys.readouterr().err == "Unknown command: /bogus\n"


OPEN_SCENARIOS = [
    pytest.param("double(1,", True, id="open-call"),
    pytest.param("[]int{1,", True, id="open-literal"),
    pytest.param("m[", True, id="open-index"),
    pytest.param("double(1)", False, id="closed"),
    pytest.param("1)", False, id="extra-close"),
    pytest.param('"abc', False, id="lex-error"),
]


@pytest.mark.parametrize("text, expected", OPEN_SCENARIOS)
def test_is_open(text, expected) -> None:
    assert _is_open(text) is expected


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("1\u200b + 2\r") == "1 + 2"
