"""Composite literal builders: structs, arrays, slices and maps.

Element values are produced by a caller-supplied callback that receives the
element node and the type the element must have, so elided inner literals
(`[]Point{{1, 2}}`) can take their type from the enclosing literal.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .constants import int_val
from .conversions import assign
from .gotypes import GoType, Kind
from .tree import Node, is_token, node_text, tree_children, tree_label
from .values import GoValue, MapRaw, SliceRaw, hash_key, zero_raw
from .types import (
    Data,
    TypedConst,
    UntypedConst,
    CompositeLitError,
    ConversionError,
    RuntimePanic,
)
from .utils import describe_data
from .eval.common import attach_location

ElemFn = Callable[[Node, GoType], Data]
DataFn = Callable[[Node], Data]

def _is_key_value(node: Node) -> bool:
    return tree_label(node) == 'key_value'

def _assign_elem(d: Data, t: GoType, node: Node, where: str) -> GoValue:
    try:
        return assign(d, t, where)
    except ConversionError as e:
        raise attach_location(e, node)

def composite_value(t: GoType, elts: List[Node], pkg_path: str, elem_fn: ElemFn, data_fn: DataFn) -> GoValue:
    """T{elts...} for a struct, array, slice or map type."""
    k = t.underlying().kind

    if k == Kind.STRUCT:
        return composite_struct(t, elts, pkg_path, elem_fn)

    if k == Kind.ARRAY:
        entries, _ = collect_indexed(elts, data_fn, t.length)
        return composite_array_like(t, entries, 0, elem_fn)

    if k == Kind.SLICE:
        entries, length = collect_indexed(elts, data_fn)
        return composite_array_like(t, entries, length, elem_fn)

    if k == Kind.MAP:
        return composite_map(t, elts, elem_fn)

    raise CompositeLitError(f"invalid composite literal type {t}")

# ---------------- structs ----------------

def composite_struct(t: GoType, elts: List[Node], pkg_path: str, elem_fn: ElemFn) -> GoValue:
    if not elts:
        return GoValue(t, zero_raw(t))

    keyed = [_is_key_value(e) for e in elts]
    if all(keyed):
        return composite_struct_keys(t, elts, pkg_path, elem_fn)

    if any(keyed):
        first = elts[keyed.index(not keyed[0])]
        raise attach_location(
            CompositeLitError("mixture of field:value and value elements in struct literal"), first
        )

    return composite_struct_ordered(t, elts, pkg_path, elem_fn)

def composite_struct_keys(t: GoType, elts: List[Node], pkg_path: str, elem_fn: ElemFn) -> GoValue:
    fields = t.fields
    raw = zero_raw(t)
    seen = set()

    for elt in elts:
        key, val = tree_children(elt)

        if not (is_token(key) and key.type == 'IDENT'):
            raise attach_location(
                CompositeLitError(f"invalid field name {node_text(key)} in struct literal"), key
            )

        name = str(key.value)
        idx = next((i for i, f in enumerate(fields) if f.name == name), None)
        if idx is None:
            raise attach_location(
                CompositeLitError(f"unknown field {name} in struct literal of type {t}"), key
            )

        f = fields[idx]
        if not f.visible_from(pkg_path):
            raise attach_location(
                CompositeLitError(f"cannot refer to unexported field {name} in struct literal of type {t}"), key
            )

        if name in seen:
            raise attach_location(
                CompositeLitError(f"duplicate field name {name} in struct literal"), key
            )
        seen.add(name)

        raw[idx] = _assign_elem(elem_fn(val, f.type), f.type, val, "in struct literal").raw

    return GoValue(t, raw)

def composite_struct_ordered(t: GoType, elts: List[Node], pkg_path: str, elem_fn: ElemFn) -> GoValue:
    fields = t.fields

    if len(elts) > len(fields):
        raise attach_location(
            CompositeLitError(f"too many values in struct literal of type {t}"), elts[len(fields)]
        )
    if len(elts) < len(fields):
        raise CompositeLitError(f"too few values in struct literal of type {t}")

    raw = []
    for f, elt in zip(fields, elts):
        if not f.visible_from(pkg_path):
            raise attach_location(
                CompositeLitError(f"implicit assignment to unexported field {f.name} in struct literal of type {t}"),
                elt,
            )
        raw.append(_assign_elem(elem_fn(elt, f.type), f.type, elt, "in struct literal").raw)

    return GoValue(t, raw)

# ---------------- arrays and slices ----------------

def _const_index(d: Data, node: Node) -> int:
    n = None
    if isinstance(d, UntypedConst) and d.const.is_numeric:
        n = int_val(d.const)
    elif isinstance(d, TypedConst) and d.type.underlying().is_integer():
        n = int_val(d.const)

    if n is None:
        raise attach_location(
            CompositeLitError(f"index {describe_data(d)} must be integer constant"), node
        )
    if n < 0:
        raise attach_location(
            CompositeLitError(f"index {describe_data(d)} must be non-negative integer constant"), node
        )
    return n

def collect_indexed(elts: List[Node], data_fn: DataFn, bound: Optional[int] = None) -> Tuple[List[Tuple[int, Node]], int]:
    """Resolve each element's index; returns (index, value node) pairs and max index + 1."""
    entries: List[Tuple[int, Node]] = []
    seen = set()
    next_index = 0
    length = 0

    for elt in elts:
        if _is_key_value(elt):
            key, val = tree_children(elt)
            idx = _const_index(data_fn(key), key)
        else:
            val = elt
            idx = next_index

        if bound is not None and idx >= bound:
            raise attach_location(
                CompositeLitError(f"index {idx} out of bounds [0:{bound}]"), elt
            )
        if idx in seen:
            raise attach_location(
                CompositeLitError(f"duplicate index {idx} in array or slice literal"), elt
            )
        seen.add(idx)

        entries.append((idx, val))
        next_index = idx + 1
        length = max(length, next_index)

    return entries, length

def composite_array_like(t: GoType, entries: List[Tuple[int, Node]], length: int, elem_fn: ElemFn) -> GoValue:
    """Array (fixed length) or slice (sized `length`) from resolved entries."""
    et = t.elem

    if t.kind == Kind.ARRAY:
        items = zero_raw(t)
    else:
        items = [zero_raw(et) for _ in range(length)]

    for idx, val in entries:
        items[idx] = _assign_elem(elem_fn(val, et), et, val, "in array or slice literal").raw

    if t.kind == Kind.ARRAY:
        return GoValue(t, items)
    return GoValue(t, SliceRaw(items, 0, len(items), len(items)))

# ---------------- maps ----------------

def composite_map(t: GoType, elts: List[Node], elem_fn: ElemFn) -> GoValue:
    kt, et = t.key, t.elem
    raw = MapRaw()

    for elt in elts:
        if not _is_key_value(elt):
            raise attach_location(CompositeLitError("missing key in map literal"), elt)

        key, val = tree_children(elt)
        k = _assign_elem(elem_fn(key, kt), kt, key, "in map literal")

        if kt.kind == Kind.INTERFACE and k.raw is not None and not k.raw.type.comparable():
            raise attach_location(
                RuntimePanic(f"runtime error: hash of unhashable type {k.raw.type}"), key
            )

        v = _assign_elem(elem_fn(val, et), et, val, "in map literal")
        raw.entries[hash_key(kt, k.raw)] = [k.raw, v.raw]

    return GoValue(t, raw)
