from __future__ import annotations

import pytest

from tests.support.harness import (
    AssertionFailedError,
    ImpossibleAssertionError,
    ParseError,
    TypeAssertOperandError,
    run_expr,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("e.(int)", ("text", "5 (int)"), None, id="concrete"),
    pytest.param("e.(int) + 1", ("text", "6 (int)"), None, id="asserted-value-is-usable"),
    pytest.param("errv.(MyErr)", ("text", '"disk" (main.MyErr)'), None, id="named-concrete"),
    pytest.param("errv.(interface{})", ("text", "disk (interface {})"), None, id="to-empty-interface"),
    pytest.param("errv.(error).Error()", ("text", '"boom: disk" (string)'), None, id="to-same-interface"),
    pytest.param(
        "e.(string)",
        ("message", "interface conversion: interface {} is int, not string"),
        AssertionFailedError,
        id="wrong-concrete",
    ),
    pytest.param(
        "enil.(int)",
        ("message", "interface conversion: interface {} is nil, not int"),
        AssertionFailedError,
        id="nil-to-concrete",
    ),
    pytest.param(
        "err.(error)",
        ("message", "interface conversion: interface is nil, not error"),
        AssertionFailedError,
        id="nil-to-interface",
    ),
    pytest.param(
        "e.(error)",
        ("message", "interface conversion: int is not error: missing method Error"),
        AssertionFailedError,
        id="missing-method",
    ),
    pytest.param(
        "errv.(Point)",
        ("message", "impossible type assertion: errv.(main.Point)"),
        ImpossibleAssertionError,
        id="impossible",
    ),
    pytest.param(
        "i.(int)",
        ("message", "invalid operation: i (value of type int) is not an interface"),
        TypeAssertOperandError,
        id="non-interface-operand",
    ),
    pytest.param(
        "(5).(int)",
        ("message", "is not an interface"),
        TypeAssertOperandError,
        id="constant-operand",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_type_assertions(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_type_switch_guard_is_rejected() -> None:
    with pytest.raises(ParseError) as exc_info:
        run_expr("e.(type)")
    assert "use of .(type) outside type switch" in str(exc_info.value)


def test_impossible_assertion_names_missing_method() -> None:
    with pytest.raises(ImpossibleAssertionError) as exc_info:
        run_expr("errv.(Point)")
    assert "main.Point does not implement error (missing method Error)" in str(exc_info.value)
