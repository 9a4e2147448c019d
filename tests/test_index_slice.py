from __future__ import annotations

import pytest

from tests.support.harness import (
    ConversionError,
    IndexOpError,
    IndexOutOfRangeError,
    OperatorError,
    SliceBoundsError,
    SliceTypeError,
    run_runtime_case,
)

INDEX_SCENARIOS = [
    pytest.param("s[1]", ("text", "1 (int)"), None, id="slice-index"),
    pytest.param("s[2.0]", ("text", "2 (int)"), None, id="integral-float-index"),
    pytest.param("a[1]", ("text", "20 (int)"), None, id="array-index"),
    pytest.param("av[2]", ("text", "3 (int)"), None, id="array-value-index"),
    pytest.param("pa[0]", ("text", "7 (int)"), None, id="array-pointer-index"),
    pytest.param('m["a"]', ("text", "1 (int)"), None, id="map-index"),
    pytest.param('m["zz"]', ("text", "0 (int)"), None, id="map-missing-key"),
    pytest.param('nilmap["a"]', ("text", "0 (int)"), None, id="nil-map-index"),
    pytest.param("str[1]", ("text", "101 (uint8)"), None, id="string-index"),
    pytest.param('"hello"[1]', ("text", "101 (uint8)"), None, id="const-string-index"),
    pytest.param('"abc"[1] + 1', ("text", "99 (uint8)"), None, id="const-string-index-arithmetic"),
    pytest.param('int("abc"[1])', ("text", "98 (int)"), None, id="const-string-index-conversion"),
    pytest.param(
        "m[1]",
        ("message", "as string value in map index"),
        ConversionError,
        id="map-wrong-key",
    ),
    pytest.param(
        '"abc"[5]',
        ("message", "invalid argument: index 5 out of bounds [0:3]"),
        IndexOutOfRangeError,
        id="const-string-out-of-range",
    ),
    pytest.param(
        "s[5]",
        ("message", "runtime error: index out of range [5] with length 5"),
        IndexOutOfRangeError,
        id="slice-out-of-range",
    ),
    pytest.param(
        "s[i]",
        ("message", "index out of range [5] with length 5"),
        IndexOutOfRangeError,
        id="slice-out-of-range-variable",
    ),
    pytest.param(
        "nilslice[0]",
        ("message", "index out of range [0] with length 0"),
        IndexOutOfRangeError,
        id="nil-slice-index",
    ),
    pytest.param(
        "s[-1]",
        ("message", "index -1 (untyped int constant) must not be negative"),
        IndexOutOfRangeError,
        id="negative-index",
    ),
    pytest.param(
        "a[3]",
        ("message", "invalid argument: index 3 out of bounds [0:3]"),
        IndexOutOfRangeError,
        id="array-const-out-of-range",
    ),
    pytest.param("s[1.5]", ("message", "must be integer"), IndexOpError, id="fractional-index"),
    pytest.param(
        "s[f]",
        ("message", "index value of type float64 must be integer"),
        IndexOpError,
        id="float-index",
    ),
    pytest.param("i[0]", ("message", "cannot index value of type int"), IndexOpError, id="index-int"),
    pytest.param(
        "1[0]",
        ("message", "cannot index 1 (untyped int constant)"),
        IndexOpError,
        id="index-number-constant",
    ),
    pytest.param("*&a[1]", ("text", "20 (int)"), None, id="array-element-addressable"),
    pytest.param("*&s[1]", ("text", "1 (int)"), None, id="slice-element-addressable"),
    pytest.param("*&pv.X", ("text", "3 (int)"), None, id="field-of-variable-addressable"),
    pytest.param(
        "&av[1]",
        ("message", "cannot take address"),
        OperatorError,
        id="element-of-value-not-addressable",
    ),
    pytest.param(
        '&m["a"]',
        ("message", "cannot take address"),
        OperatorError,
        id="map-element-not-addressable",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", INDEX_SCENARIOS)
def test_index(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


SLICE_SCENARIOS = [
    pytest.param("s[1:3]", ("text", "[1 2] ([]int)"), None, id="slice"),
    pytest.param("s[:2]", ("text", "[0 1] ([]int)"), None, id="slice-no-low"),
    pytest.param("s[3:]", ("text", "[3 4] ([]int)"), None, id="slice-no-high"),
    pytest.param("s[1:3][0:4]", ("text", "[1 2 3 4] ([]int)"), None, id="reslice-up-to-cap"),
    pytest.param("cap(s[1:3:4])", ("text", "3 (int)"), None, id="three-index-cap"),
    pytest.param("nilslice[:] == nil", ("text", "true (untyped bool)"), None, id="nil-slice-stays-nil"),
    pytest.param("str[1:3]", ("text", '"el" (string)'), None, id="string-slice"),
    pytest.param('"hello"[1:3]', ("text", '"el" (string)'), None, id="const-string-slice"),
    pytest.param("a[1:]", ("text", "[20 30] ([]int)"), None, id="array-variable-slice"),
    pytest.param("pa[:2]", ("text", "[7 8] ([]int)"), None, id="array-pointer-slice"),
    pytest.param(
        "s[3:1]",
        ("message", "invalid slice indices: 1 < 3"),
        SliceBoundsError,
        id="const-indices-inverted",
    ),
    pytest.param(
        "s[1:4:3]",
        ("message", "invalid slice indices: 3 < 4"),
        SliceBoundsError,
        id="const-max-below-high",
    ),
    pytest.param(
        "s[:6]",
        ("message", "slice bounds out of range [:6] with capacity 5"),
        SliceBoundsError,
        id="high-beyond-cap",
    ),
    pytest.param(
        "s[i:zero]",
        ("message", "slice bounds out of range [5:0]"),
        SliceBoundsError,
        id="runtime-indices-inverted",
    ),
    pytest.param(
        "s[1:2:6]",
        ("message", "slice bounds out of range [::6] with capacity 5"),
        SliceBoundsError,
        id="max-beyond-cap",
    ),
    pytest.param(
        "str[1:2:3]",
        ("message", "3-index slice of string"),
        SliceTypeError,
        id="three-index-string",
    ),
    pytest.param(
        "av[1:]",
        ("message", "slice of unaddressable value"),
        SliceTypeError,
        id="unaddressable-array",
    ),
    pytest.param(
        "s[-1:]",
        ("message", "index -1 (untyped int constant) must not be negative"),
        IndexOutOfRangeError,
        id="negative-low",
    ),
    pytest.param("i[1:]", ("message", "cannot slice value of type int"), SliceTypeError, id="slice-int"),
    pytest.param("m[:]", ("message", "cannot slice"), SliceTypeError, id="slice-map"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SLICE_SCENARIOS)
def test_slice(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)
