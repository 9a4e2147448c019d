"""Index and slice expressions over evaluated operands."""
from __future__ import annotations

from typing import Optional, Tuple

from .constants import ConstKind, int_val, int_range
from .conversions import assign
from .gotypes import GoType, Kind, slice_of, string_t, uint8_t
from .values import (
    GoValue,
    SliceRaw,
    array_elem,
    bytes_string,
    copy_raw,
    deref,
    hash_key,
    slice_elem,
    string_bytes,
    zero_value,
)
from .types import (
    Data,
    Regular,
    TypedConst,
    UntypedConst,
    IndexOpError,
    IndexOutOfRangeError,
    RuntimePanic,
    SliceBoundsError,
    SliceTypeError,
)
from .utils import describe_data

_MAX_INT = int_range(64, True)[1]

# ---------------- index values ----------------

def get_index(idx: Data) -> Tuple[int, bool]:
    """Integer value of an index operand and whether it is constant."""
    match idx:
        case UntypedConst(const=c):
            n = int_val(c) if c.is_numeric else None
            if n is None:
                raise IndexOpError(f"invalid argument: index {describe_data(idx)} must be integer")
            if n > _MAX_INT:
                raise IndexOutOfRangeError(f"invalid argument: index {describe_data(idx)} overflows int")
            is_const = True
        case TypedConst(const=c, type=t):
            if not t.is_integer():
                raise IndexOpError(f"invalid argument: index {describe_data(idx)} must be integer")
            n = int_val(c)
            is_const = True
        case Regular(value=v):
            if not v.type.is_integer():
                raise IndexOpError(f"invalid argument: index {describe_data(idx)} must be integer")
            n = v.raw
            is_const = False
        case _:
            raise IndexOpError(f"invalid argument: index {describe_data(idx)} must be integer")

    if n < 0:
        if is_const:
            raise IndexOutOfRangeError(f"invalid argument: index {describe_data(idx)} must not be negative")
        raise IndexOutOfRangeError(f"runtime error: index out of range [{n}]")

    return n, is_const

def check_index(n: int, length: int, is_const: bool = False, static_length: bool = False) -> int:
    if n < length:
        return n
    if is_const and static_length:
        raise IndexOutOfRangeError(f"invalid argument: index {n} out of bounds [0:{length}]")
    raise IndexOutOfRangeError(f"runtime error: index out of range [{n}] with length {length}")

# ---------------- x[i] ----------------

def index_value(x: Data, idx: Data) -> Data:
    match x:
        case UntypedConst() | TypedConst():
            return Regular(index_constant(x, idx))
        case Regular(value=v):
            if v.kind == Kind.MAP:
                return Regular(index_map(v, idx))
            return Regular(index_other(v, idx))

    raise IndexOpError(f"invalid operation: cannot index {describe_data(x)}")

def index_constant(x: Data, idx: Data) -> GoValue:
    c = x.const
    if c.kind != ConstKind.STRING:
        raise IndexOpError(f"invalid operation: cannot index {describe_data(x)}")

    b = string_bytes(c.value)
    n, is_const = get_index(idx)
    check_index(n, len(b), is_const, static_length=True)
    return GoValue(uint8_t, b[n])

def index_map(m: GoValue, idx: Data) -> GoValue:
    """m[k]: the zero value of the element type when k is absent or m is nil."""
    mt = m.type
    key = assign(idx, mt.key, "in map index")

    if mt.key.kind == Kind.INTERFACE and key.raw is not None and not key.raw.type.comparable():
        raise RuntimePanic(f"runtime error: hash of unhashable type {key.raw.type}")

    raw = m.raw
    if raw is None:
        return zero_value(mt.elem)

    entry = raw.entries.get(hash_key(mt.key, key.raw))
    if entry is None:
        return zero_value(mt.elem)
    return GoValue(mt.elem, copy_raw(mt.elem, entry[1]))

def index_other(v: GoValue, idx: Data) -> GoValue:
    k = v.kind

    if k == Kind.STRING:
        b = string_bytes(v.raw)
        n, is_const = get_index(idx)
        check_index(n, len(b), is_const)
        return GoValue(uint8_t, b[n])

    if k == Kind.POINTER and v.type.elem.kind == Kind.ARRAY:
        n, is_const = get_index(idx)
        check_index(n, v.type.elem.length, is_const, static_length=True)
        return array_elem(deref(v), n)

    if k == Kind.ARRAY:
        n, is_const = get_index(idx)
        check_index(n, v.type.length, is_const, static_length=True)
        return array_elem(v, n)

    if k == Kind.SLICE:
        n, is_const = get_index(idx)
        raw = v.raw
        check_index(n, raw.length if raw is not None else 0, is_const)
        return slice_elem(v, n)

    raise IndexOpError(f"invalid operation: cannot index {describe_data(Regular(v))}")

# ---------------- x[low:high:max] ----------------

def slice_index(d: Optional[Data]) -> Optional[int]:
    if d is None:
        return None
    n, _ = get_index(d)
    return n

def slice2(length: int, cap: int, low: Optional[int], high: Optional[int]) -> Tuple[int, int]:
    """Resolve x[low:high] against len/cap; high may reach cap."""
    lo = 0 if low is None else low
    hi = length if high is None else high

    if hi > cap:
        raise SliceBoundsError(f"runtime error: slice bounds out of range [:{hi}] with capacity {cap}")
    if lo > hi:
        raise SliceBoundsError(f"runtime error: slice bounds out of range [{lo}:{hi}]")
    return lo, hi

def slice3(cap: int, low: Optional[int], high: Optional[int], max_: Optional[int]) -> Tuple[int, int, int]:
    """Resolve x[low:high:max]; high and max are required."""
    if high is None:
        raise SliceBoundsError("middle index required in 3-index slice")
    if max_ is None:
        raise SliceBoundsError("final index required in 3-index slice")

    lo = 0 if low is None else low

    if max_ > cap:
        raise SliceBoundsError(f"runtime error: slice bounds out of range [::{max_}] with capacity {cap}")
    if high > max_:
        raise SliceBoundsError(f"runtime error: slice bounds out of range [:{high}:{max_}]")
    if lo > high:
        raise SliceBoundsError(f"runtime error: slice bounds out of range [{lo}:{high}:]")
    return lo, high, max_

def _check_const_order(bounds) -> None:
    known = [b for b in bounds if b is not None]
    for a, b in zip(known, known[1:]):
        if a > b:
            raise SliceBoundsError(f"invalid slice indices: {b} < {a}")

def _slice_string(t: GoType, s: str, low, high, max_, three: bool) -> GoValue:
    if three:
        raise SliceTypeError("invalid operation: 3-index slice of string")
    b = string_bytes(s)
    lo, hi = slice2(len(b), len(b), low, high)
    return GoValue(t, bytes_string(b[lo:hi]))

def _slice_backing(st: GoType, array, offset: int, length: int, cap: int, low, high, max_, three: bool) -> GoValue:
    if three:
        lo, hi, mx = slice3(cap, low, high, max_)
    else:
        lo, hi = slice2(length, cap, low, high)
        mx = cap
    return GoValue(st, SliceRaw(array, offset + lo, hi - lo, mx - lo))

def slice_value(x: Data, low: Optional[Data], high: Optional[Data], max_: Optional[Data], three: bool) -> Data:
    lo, hi, mx = slice_index(low), slice_index(high), slice_index(max_)
    _check_const_order([
        b for b, d in ((lo, low), (hi, high), (mx, max_))
        if d is not None and not isinstance(d, Regular)
    ])

    match x:
        case UntypedConst(const=c) | TypedConst(const=c):
            if c.kind != ConstKind.STRING:
                raise SliceTypeError(f"cannot slice {describe_data(x)}")
            t = x.type if isinstance(x, TypedConst) else string_t
            return Regular(_slice_string(t, c.value, lo, hi, mx, three))

        case Regular(value=v):
            k = v.kind

            if k == Kind.STRING:
                return Regular(_slice_string(v.type, v.raw, lo, hi, mx, three))

            if k == Kind.POINTER and v.type.elem.kind == Kind.ARRAY:
                v = deref(v)
                k = Kind.ARRAY

            if k == Kind.ARRAY:
                if not v.addressable:
                    raise SliceTypeError(
                        f"invalid operation: {describe_data(Regular(v))} (slice of unaddressable value)"
                    )
                n = v.type.length
                return Regular(_slice_backing(slice_of(v.type.elem), v.raw, 0, n, n, lo, hi, mx, three))

            if k == Kind.SLICE:
                raw = v.raw
                if raw is None:
                    _slice_backing(v.type, [], 0, 0, 0, lo, hi, mx, three)
                    return Regular(GoValue(v.type, None))
                return Regular(_slice_backing(v.type, raw.array, raw.offset, raw.length, raw.cap, lo, hi, mx, three))

    raise SliceTypeError(f"cannot slice {describe_data(x)}")
