from __future__ import annotations

import pytest

from tests.support.harness import (
    CallError,
    CompositeLitError,
    ConversionError,
    NotTypeError,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("Point{1, 2}", ("text", "{1 2} (main.Point)"), None, id="struct-positional"),
    pytest.param("Point{Y: 7}", ("text", "{0 7} (main.Point)"), None, id="struct-keyed-partial"),
    pytest.param("Point{}", ("text", "{0 0} (main.Point)"), None, id="struct-empty"),
    pytest.param("struct{ A int }{1}", ("text", "{1} (struct { A int })"), None, id="anonymous-struct"),
    pytest.param(
        "Outer{Inner{4}}",
        ("text", "{{4}} (main.Outer)"),
        None,
        id="embedded-struct-positional",
    ),
    pytest.param("Outer{Inner: Inner{M: 2}}.M", ("text", "2 (int)"), None, id="promoted-field"),
    pytest.param(
        "Point{Z: 1}",
        ("message", "unknown field Z in struct literal of type main.Point"),
        CompositeLitError,
        id="struct-unknown-field",
    ),
    pytest.param(
        "Point{X: 1, X: 2}",
        ("message", "duplicate field name X in struct literal"),
        CompositeLitError,
        id="struct-duplicate-field",
    ),
    pytest.param(
        "Point{X: 1, 2}",
        ("message", "mixture of field:value and value elements in struct literal"),
        CompositeLitError,
        id="struct-mixed-elements",
    ),
    pytest.param(
        "Point{1}",
        ("message", "too few values in struct literal of type main.Point"),
        CompositeLitError,
        id="struct-too-few",
    ),
    pytest.param(
        "Point{1, 2, 3}",
        ("message", "too many values in struct literal of type main.Point"),
        CompositeLitError,
        id="struct-too-many",
    ),
    pytest.param(
        "Point{1 + 1: 2}",
        ("message", "invalid field name 1 + 1 in struct literal"),
        CompositeLitError,
        id="struct-expression-key",
    ),
    pytest.param(
        'Point{"a", 2}',
        ("message", "in struct literal"),
        ConversionError,
        id="struct-wrong-field-type",
    ),
    pytest.param("[]int{1, 2, 3}", ("text", "[1 2 3] ([]int)"), None, id="slice-literal"),
    pytest.param("[]int{2: 1, 3}", ("text", "[0 0 1 3] ([]int)"), None, id="slice-indexed"),
    pytest.param("[3]int{1}", ("text", "[1 0 0] ([3]int)"), None, id="array-padded"),
    pytest.param("[...]string{\"a\", \"b\"}", ("text", "[a b] ([2]string)"), None, id="open-array"),
    pytest.param("len([...]int{5: 1})", ("text", "6 (int constant)"), None, id="open-array-indexed"),
    pytest.param("[]int{2.0: 1}", ("text", "[0 0 1] ([]int)"), None, id="integral-float-index-key"),
    pytest.param(
        "[2]int{1, 2, 3}",
        ("message", "index 2 out of bounds [0:2]"),
        CompositeLitError,
        id="array-too-many",
    ),
    pytest.param(
        "[]int{0: 1, 0: 2}",
        ("message", "duplicate index 0 in array or slice literal"),
        CompositeLitError,
        id="duplicate-index",
    ),
    pytest.param(
        "[]int{i: 1}",
        ("message", "must be integer constant"),
        CompositeLitError,
        id="variable-index",
    ),
    pytest.param(
        "[]int{float64(1): 5}",
        ("message", "must be integer constant"),
        CompositeLitError,
        id="typed-float-index",
    ),
    pytest.param("[]int{int8(1): 5}", ("text", "[0 5] ([]int)"), None, id="typed-int-index"),
    pytest.param(
        "[]int{-1: 1}",
        ("message", "must be non-negative integer constant"),
        CompositeLitError,
        id="negative-index",
    ),
    pytest.param(
        'map[string]int{"a": 1, "b": 2}',
        ("text", "map[a:1 b:2] (map[string]int)"),
        None,
        id="map-literal",
    ),
    pytest.param(
        'map[string]int{"a": 1, "a": 2}',
        ("text", "map[a:2] (map[string]int)"),
        None,
        id="map-duplicate-key-overwrites",
    ),
    pytest.param(
        "map[int]string{2: \"b\", 1: \"a\"}",
        ("text", "map[1:a 2:b] (map[int]string)"),
        None,
        id="map-sorted-output",
    ),
    pytest.param(
        "map[string]int{1}",
        ("message", "missing key in map literal"),
        CompositeLitError,
        id="map-missing-key",
    ),
    pytest.param(
        "[]Point{{1, 2}, {X: 3}}",
        ("text", "[{1 2} {3 0}] ([]main.Point)"),
        None,
        id="elided-element-type",
    ),
    pytest.param(
        '*[]*Point{{1, 2}}[0]',
        ("text", "{1 2} (main.Point)"),
        None,
        id="elided-pointer-element",
    ),
    pytest.param(
        'map[string]Point{"o": {1, 2}}',
        ("text", "map[o:{1 2}] (map[string]main.Point)"),
        None,
        id="elided-map-value",
    ),
    pytest.param(
        "[][]int{{1}, {2, 3}}",
        ("text", "[[1] [2 3]] ([][]int)"),
        None,
        id="nested-elided",
    ),
    pytest.param(
        "int{1}",
        ("message", "invalid composite literal type int"),
        CompositeLitError,
        id="non-composite-type",
    ),
    pytest.param("i{1}", ("message", "i is not a type"), NotTypeError, id="value-as-type"),
    pytest.param(
        "len(map[string]int{})",
        ("text", "0 (int)"),
        None,
        id="empty-map-literal",
    ),
    pytest.param(
        "append([]int{}, s...)",
        ("text", "[0 1 2 3 4] ([]int)"),
        None,
        id="literal-as-call-argument",
    ),
    pytest.param(
        "append(Point{}, 1)",
        ("message", "is not a slice"),
        CallError,
        id="struct-literal-not-slice",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_composite_literals(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)
