from __future__ import annotations

import pytest

from goexpr import (
    Datas,
    Expression,
    NotExprError,
    Package,
    Regular,
    TypeValue,
    UntypedConst,
    args_from_python,
    make_package,
)
from goexpr.expression import data_to_python
from goexpr.gotypes import int_t, int64_t, slice_of
from goexpr.values import GoValue, py_func


def test_parse_once_evaluate_many() -> None:
    expr = Expression.parse("x * 2")
    assert expr.eval_to_python({"x": 3}) == 6
    assert expr.eval_to_python({"x": 1.5}) == 3.0


def test_eval_to_python_constant() -> None:
    assert Expression.parse("1 << 10").eval_to_python() == 1024
    assert Expression.parse('"a" + "b"').eval_to_python() == "ab"
    assert Expression.parse("1 < 2").eval_to_python() is True
    assert Expression.parse("nil").eval_to_python() is None


def test_eval_to_python_type_returns_go_type() -> None:
    assert Expression.parse("[]int").eval_to_python() == slice_of(int_t)


def test_eval_to_data_keeps_constness() -> None:
    data = Expression.parse("2 + 3").eval_to_data()
    assert isinstance(data, UntypedConst)
    assert data_to_python(data) == 5


def test_eval_to_data_rejects_type() -> None:
    with pytest.raises(NotExprError) as exc_info:
        Expression.parse("int").eval_to_data()
    assert str(exc_info.value) == "int (type) is not an expression"


def test_eval_to_regular_uses_default_type() -> None:
    v = Expression.parse("2.5").eval_to_regular()
    assert isinstance(v, GoValue)
    assert str(v.type) == "float64"
    assert v.raw == 2.5


def test_eval_raw_returns_value_wrappers() -> None:
    expr = Expression.parse("v")
    value = expr.eval_raw({"v": GoValue(int64_t, 9)})
    assert isinstance(value, Datas)
    assert isinstance(value.data, Regular)
    assert value.data.value.type == int64_t


def test_python_callables_are_callable_from_expressions() -> None:
    add = py_func(lambda a, b: a + b, [int_t, int_t], [int_t], name="add")
    assert Expression.parse("add(2, 3) * 10").eval_to_python({"add": add}) == 50


def test_package_members() -> None:
    pkg = make_package("geo", {"Scale": 3})
    assert isinstance(pkg, Package)
    assert Expression.parse("geo.Scale + 1").eval_to_python({"geo": pkg}) == 4


def test_owning_package_path_reaches_type_names() -> None:
    expr = Expression.parse("x", pkg_path="example.com/app")
    assert expr.pkg_path == "example.com/app"


def test_args_from_python_wraps_each_kind() -> None:
    args = args_from_python({"T": int_t, "v": GoValue(int_t, 1)}, n=2)
    assert isinstance(args["T"], TypeValue)
    assert isinstance(args["v"], Datas)
    assert args["v"].data.value.raw == 1
    assert args["n"].data.value.type == int_t


def test_args_from_python_passes_values_through() -> None:
    value = TypeValue(int_t)
    assert args_from_python({"T": value})["T"] is value


def test_repr_shows_source() -> None:
    assert repr(Expression.parse("1 + 2")) == "Expression('1 + 2')"
