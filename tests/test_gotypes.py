from __future__ import annotations

import pytest

from goexpr.gotypes import (
    ChanDir,
    Kind,
    StructField,
    TypeBuildError,
    add_method,
    any_t,
    array_of,
    bool_t,
    byte_t,
    chan_of,
    error_t,
    field_index,
    float64_t,
    func_of,
    int_t,
    int32_t,
    interface_of,
    map_of,
    named_type,
    ptr_to,
    rune_t,
    slice_of,
    string_t,
    struct_of,
    uint8_t,
)
from goexpr.values import GoValue

SPELLING_CASES = [
    pytest.param(slice_of(int_t), "[]int", id="slice"),
    pytest.param(array_of(3, string_t), "[3]string", id="array"),
    pytest.param(map_of(string_t, slice_of(int_t)), "map[string][]int", id="map"),
    pytest.param(ptr_to(array_of(3, int_t)), "*[3]int", id="pointer"),
    pytest.param(chan_of(ChanDir.BOTH, int_t), "chan int", id="chan"),
    pytest.param(chan_of(ChanDir.RECV, int_t), "<-chan int", id="chan-recv"),
    pytest.param(chan_of(ChanDir.SEND, int_t), "chan<- int", id="chan-send"),
    pytest.param(chan_of(ChanDir.BOTH, chan_of(ChanDir.RECV, int_t)), "chan (<-chan int)", id="chan-of-recv-chan"),
    pytest.param(chan_of(ChanDir.SEND, chan_of(ChanDir.RECV, int_t)), "chan<- <-chan int", id="send-chan-of-recv-chan"),
    pytest.param(func_of([int_t, slice_of(string_t)], [bool_t], True), "func(int, ...string) bool", id="func-variadic"),
    pytest.param(func_of([], [int_t, error_t]), "func() (int, error)", id="func-two-results"),
    pytest.param(func_of([], []), "func()", id="func-empty"),
    pytest.param(
        struct_of([StructField("X", int_t), StructField("Y", string_t, tag='json:"y"')]),
        'struct { X int; Y string "json:\\"y\\"" }',
        id="struct-with-tag",
    ),
    pytest.param(struct_of([]), "struct {}", id="struct-empty"),
    pytest.param(interface_of(), "interface {}", id="interface-empty"),
    pytest.param(
        interface_of([("String", func_of([], [string_t]))]),
        "interface { String() string }",
        id="interface-method",
    ),
    pytest.param(named_type("Point", struct_of([])), "main.Point", id="named-main"),
    pytest.param(named_type("Point", struct_of([]), "example.com/geo"), "geo.Point", id="named-package"),
    pytest.param(byte_t, "uint8", id="byte-alias"),
    pytest.param(rune_t, "int32", id="rune-alias"),
    pytest.param(error_t, "error", id="error"),
]


@pytest.mark.parametrize("t, expected", SPELLING_CASES)
def test_type_spelling(t, expected: str) -> None:
    assert str(t) == expected


def test_structural_identity() -> None:
    assert slice_of(int_t) == slice_of(int_t)
    assert hash(map_of(string_t, int_t)) == hash(map_of(string_t, int_t))
    assert array_of(3, int_t) != array_of(4, int_t)
    assert byte_t is uint8_t and rune_t is int32_t
    assert {slice_of(int_t): 1}[slice_of(int_t)] == 1


def test_named_types_are_distinct() -> None:
    a = named_type("A", int_t)
    b = named_type("A", int_t)
    assert a != b
    assert a == a
    assert a.underlying() is int_t
    assert a.kind == Kind.INT


def test_struct_identity_includes_tags_and_package() -> None:
    plain = struct_of([StructField("X", int_t)])
    tagged = struct_of([StructField("X", int_t, tag="t")])
    assert plain != tagged
    hidden_a = struct_of([StructField("x", int_t, "a")])
    hidden_b = struct_of([StructField("x", int_t, "b")])
    assert hidden_a != hidden_b


@pytest.mark.parametrize(
    "build",
    [
        pytest.param(lambda: map_of(slice_of(int_t), int_t), id="map-slice-key"),
        pytest.param(lambda: map_of(func_of([], []), int_t), id="map-func-key"),
        pytest.param(lambda: array_of(-1, int_t), id="negative-array"),
        pytest.param(lambda: func_of([int_t], [], variadic=True), id="variadic-non-slice"),
        pytest.param(
            lambda: struct_of([StructField("X", int_t), StructField("X", string_t)]),
            id="duplicate-field",
        ),
        pytest.param(
            lambda: struct_of([StructField("T", slice_of(int_t), embedded=True)]),
            id="embedded-unnamed",
        ),
        pytest.param(
            lambda: interface_of([("M", func_of([], [])), ("M", func_of([], []))]),
            id="duplicate-method",
        ),
        pytest.param(lambda: add_method(slice_of(int_t), "M", func_of([], []), print), id="method-on-unnamed"),
    ],
)
def test_type_build_errors(build) -> None:
    with pytest.raises(TypeBuildError):
        build()


def test_blank_fields_may_repeat() -> None:
    t = struct_of([StructField("_", int_t), StructField("_", int_t)])
    assert len(t.fields) == 2


def test_map_key_comparability() -> None:
    assert map_of(array_of(2, int_t), int_t).key == array_of(2, int_t)
    with pytest.raises(TypeBuildError):
        map_of(array_of(2, slice_of(int_t)), int_t)
    with pytest.raises(TypeBuildError):
        map_of(struct_of([StructField("S", slice_of(int_t))]), int_t)


def test_assignability() -> None:
    counter = named_type("Counter", int_t)
    ints = named_type("Ints", slice_of(int_t))

    assert not counter.assignable_to(int_t)
    assert not int_t.assignable_to(counter)
    assert slice_of(int_t).assignable_to(ints)
    assert ints.assignable_to(slice_of(int_t))
    assert int_t.assignable_to(any_t)
    assert chan_of(ChanDir.BOTH, int_t).assignable_to(chan_of(ChanDir.RECV, int_t))
    assert not chan_of(ChanDir.RECV, int_t).assignable_to(chan_of(ChanDir.BOTH, int_t))


def test_convertibility() -> None:
    counter = named_type("Counter", int_t)
    assert float64_t.convertible_to(int_t)
    assert counter.convertible_to(int_t)
    assert string_t.convertible_to(slice_of(byte_t))
    assert slice_of(rune_t).convertible_to(string_t)
    assert int_t.convertible_to(string_t)
    assert slice_of(int_t).convertible_to(array_of(3, int_t))
    assert not int_t.convertible_to(bool_t)
    assert not string_t.convertible_to(int_t)

    tagged = struct_of([StructField("X", int_t, tag="a")])
    untagged = struct_of([StructField("X", int_t)])
    assert tagged.convertible_to(untagged)
    assert ptr_to(tagged).convertible_to(ptr_to(untagged))


def _method(name: str):
    return lambda recv: [GoValue(string_t, name)]


def test_method_sets() -> None:
    t = named_type("T", struct_of([]))
    add_method(t, "Error", func_of([], [string_t]), _method("value"))
    add_method(t, "Reset", func_of([], []), _method("ptr"), pointer_receiver=True)

    assert t.method_by_name("Error") is not None
    assert t.method_by_name("Reset") is None
    assert ptr_to(t).method_by_name("Reset") is not None
    assert ptr_to(t).method_by_name("Error") is not None
    assert set(t.method_set()) == {"Error"}
    assert set(ptr_to(t).method_set()) == {"Error", "Reset"}

    assert t.implements(error_t)
    assert ptr_to(t).implements(error_t)
    assert not int_t.implements(error_t)
    assert int_t.missing_method(error_t) == "Error"


def test_pointer_receiver_satisfies_only_pointer() -> None:
    t = named_type("T", int_t)
    add_method(t, "Error", func_of([], [string_t]), _method("ptr"), pointer_receiver=True)
    assert not t.implements(error_t)
    assert ptr_to(t).implements(error_t)


def test_method_signature_must_match() -> None:
    t = named_type("T", int_t)
    add_method(t, "Error", func_of([], [int_t]), lambda recv: [GoValue(int_t, 0)])
    assert t.missing_method(error_t) == "Error"


def test_add_method_rejections() -> None:
    point = named_type("P", struct_of([StructField("X", int_t, "main")]))
    with pytest.raises(TypeBuildError):
        add_method(point, "X", func_of([], []), _method("x"))
    with pytest.raises(TypeBuildError):
        add_method(ptr_to(point), "M", func_of([], []), _method("m"))
    with pytest.raises(TypeBuildError):
        add_method(point, "M", int_t, _method("m"))


def test_promoted_field_may_share_method_name() -> None:
    inner = named_type("Inner", struct_of([StructField("M", int_t, "main")]))
    outer = named_type("Outer", struct_of([StructField("Inner", inner, "main", embedded=True)]))
    method = add_method(outer, "M", func_of([], []), _method("m"), pointer_receiver=True)
    assert outer.methods["M"] is method


def test_field_index() -> None:
    inner = named_type("Inner", struct_of([StructField("M", int_t, "main"), StructField("n", int_t, "main")]))
    outer = named_type(
        "Outer",
        struct_of([StructField("A", int_t, "main"), StructField("Inner", inner, "main", embedded=True)]),
    )
    assert field_index(outer, "A", "main") == [0]
    assert field_index(outer, "M", "main") == [1, 0]
    assert field_index(outer, "n", "main") == [1, 1]
    assert field_index(outer, "n", "other") is None
    assert field_index(outer, "Missing", "main") is None


def test_field_index_ambiguous_at_same_depth() -> None:
    a = named_type("A", struct_of([StructField("X", int_t, "main")]))
    b = named_type("B", struct_of([StructField("X", int_t, "main")]))
    both = struct_of([StructField("A", a, "main", embedded=True), StructField("B", b, "main", embedded=True)])
    assert field_index(both, "X", "main") is None

    shallow = struct_of(
        [StructField("X", string_t, "main"), StructField("A", a, "main", embedded=True)]
    )
    assert field_index(shallow, "X", "main") == [0]


def test_comparable() -> None:
    assert struct_of([StructField("X", int_t)]).comparable()
    assert not struct_of([StructField("S", slice_of(int_t))]).comparable()
    assert array_of(2, int_t).comparable()
    assert not func_of([], []).comparable()
    assert any_t.comparable()
