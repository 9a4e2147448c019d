"""Go's predeclared functions, registered via goexpr.runtime."""

from __future__ import annotations

import math
from typing import List, Optional

from .constants import (
    NUMERIC_KINDS,
    ConstKind,
    complex_val,
    float_val,
    int_val,
    make_complex,
    make_float,
    make_int,
    to_kind,
)
from .conversions import assign, materialize, represent, to_regular, typed_const
from .gotypes import (
    GoType,
    Kind,
    complex64_t,
    complex128_t,
    float32_t,
    float64_t,
    int_t,
)
from .ops import compare_op
from .runtime import register_builtin
from .values import (
    GoValue,
    MapRaw,
    SliceRaw,
    address_of,
    cap_of,
    copy_raw,
    hash_key,
    len_of,
    make_chan,
    new_var,
    string_bytes,
    zero_raw,
)
from .types import (
    Value,
    Data,
    Datas,
    TypeValue,
    Regular,
    TypedConst,
    UntypedConst,
    UntypedBool,
    NilData,
    CallError,
    ConversionError,
    RuntimePanic,
    data_type,
)
from .utils import describe, describe_data

# ---------------- argument helpers ----------------

def _nargs(name: str, args: List[Value], lo: int, hi: Optional[int] = None) -> None:
    n = len(args)
    if n < lo:
        raise CallError(f"not enough arguments for {name}() (expected {lo}, found {n})")
    if hi is not None and n > hi:
        raise CallError(f"too many arguments for {name}() (expected {hi}, found {n})")

def _data(name: str, v: Value) -> Data:
    if isinstance(v, Datas):
        return v.data
    raise CallError(f"invalid argument: {describe(v)} is not an expression in call to {name}")

def _type(name: str, v: Value) -> GoType:
    if isinstance(v, TypeValue):
        return v.type
    raise CallError(f"invalid argument: {describe(v)} is not a type in call to {name}")

def _size(name: str, d: Data, what: str) -> int:
    """Non-negative integer size argument of make."""
    match d:
        case UntypedConst(const=c) | TypedConst(const=c):
            n = int_val(c) if c.is_numeric else None
            if n is None or (isinstance(d, TypedConst) and not d.type.is_integer()):
                raise CallError(f"cannot convert {describe_data(d)} to type int in {name}")
            if n < 0:
                raise CallError(f"invalid argument: index {describe_data(d)} must not be negative")
            return n
        case Regular(value=v):
            if not v.type.is_integer():
                raise CallError(f"cannot convert {describe_data(d)} to type int in {name}")
            if v.raw < 0:
                raise RuntimePanic(f"runtime error: {name}: {what} out of range")
            return v.raw

    raise CallError(f"cannot convert {describe_data(d)} to type int in {name}")

def _invalid_arg(d: Data, name: str) -> CallError:
    return CallError(f"invalid argument: {describe_data(d)} for built-in {name}")

# ---------------- len / cap ----------------

def _static_length(v: GoValue) -> bool:
    return v.kind == Kind.ARRAY or (v.kind == Kind.POINTER and v.type.elem.kind == Kind.ARRAY)

@register_builtin("len")
def builtin_len(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("len", args, 1, 1)
    d = _data("len", args[0])

    match d:
        case UntypedConst(const=c) | TypedConst(const=c):
            if c.kind == ConstKind.STRING:
                return TypedConst(make_int(len(string_bytes(c.value))), int_t)
        case Regular(value=v):
            if _static_length(v):
                return TypedConst(make_int(len_of(v)), int_t)
            if v.kind in (Kind.STRING, Kind.SLICE, Kind.MAP, Kind.CHAN):
                return Regular(GoValue(int_t, len_of(v)))

    raise _invalid_arg(d, "len")

@register_builtin("cap")
def builtin_cap(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("cap", args, 1, 1)
    d = _data("cap", args[0])

    if isinstance(d, Regular):
        v = d.value
        if _static_length(v):
            return TypedConst(make_int(cap_of(v)), int_t)
        if v.kind in (Kind.SLICE, Kind.CHAN):
            return Regular(GoValue(int_t, cap_of(v)))

    raise _invalid_arg(d, "cap")

# ---------------- slices ----------------

def _grow_cap(old_cap: int, needed: int) -> int:
    if needed > 2 * old_cap:
        return needed
    if old_cap < 256:
        return 2 * old_cap

    new_cap = old_cap
    while new_cap < needed:
        new_cap += (new_cap + 3 * 256) >> 2
    return new_cap

def _extra_items(st: GoType, d: Data) -> List:
    """Elements of the `...` argument to append."""
    et = st.elem

    if isinstance(d, NilData):
        return []

    if et.kind == Kind.UINT8:
        if isinstance(d, (UntypedConst, TypedConst)) and d.const.kind == ConstKind.STRING:
            return list(string_bytes(d.const.value))
        if isinstance(d, Regular) and d.value.kind == Kind.STRING:
            return list(string_bytes(d.value.raw))

    if isinstance(d, Regular) and d.value.kind == Kind.SLICE and d.value.type.elem == et:
        raw = d.value.raw
        return [copy_raw(et, r) for r in raw.items()] if raw is not None else []

    raise CallError(f"cannot use {describe_data(d)} as {st} value in argument to append")

@register_builtin("append", ellipsis_ok=True)
def builtin_append(args: List[Value], ellipsis: bool) -> Data:
    _nargs("append", args, 1)
    first = _data("append", args[0])

    if not (isinstance(first, Regular) and first.value.kind == Kind.SLICE):
        if isinstance(first, NilData):
            raise CallError("invalid argument: first argument to append must be a typed slice; have untyped nil")
        raise CallError(f"invalid argument: {describe_data(first)} is not a slice")

    s = first.value
    st = s.type
    et = st.elem

    if ellipsis:
        _nargs("append", args, 2, 2)
        extra = _extra_items(st, _data("append", args[1]))
    else:
        extra = []
        for a in args[1:]:
            try:
                extra.append(assign(_data("append", a), et, "in argument to append").raw)
            except ConversionError as e:
                raise CallError(e.message) from None

    raw = s.raw
    if raw is None:
        raw = SliceRaw([], 0, 0, 0)

    if not extra:
        return Regular(GoValue(st, s.raw))

    needed = raw.length + len(extra)
    if needed <= raw.cap:
        for i, item in enumerate(extra):
            raw.array[raw.offset + raw.length + i] = item
        return Regular(GoValue(st, SliceRaw(raw.array, raw.offset, needed, raw.cap)))

    new_cap = _grow_cap(raw.cap, needed)
    array = [copy_raw(et, r) for r in raw.items()] + extra
    array += [zero_raw(et) for _ in range(new_cap - needed)]
    return Regular(GoValue(st, SliceRaw(array, 0, needed, new_cap)))

@register_builtin("copy")
def builtin_copy(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("copy", args, 2, 2)
    dst, src = _data("copy", args[0]), _data("copy", args[1])

    if not (isinstance(dst, Regular) and dst.value.kind == Kind.SLICE):
        raise CallError(f"invalid argument: copy expects slice arguments; found {describe_data(dst)} and {describe_data(src)}")

    dt = dst.value.type
    et = dt.elem

    if et.kind == Kind.UINT8 and isinstance(src, (UntypedConst, TypedConst)) and src.const.kind == ConstKind.STRING:
        items = list(string_bytes(src.const.value))
    elif et.kind == Kind.UINT8 and isinstance(src, Regular) and src.value.kind == Kind.STRING:
        items = list(string_bytes(src.value.raw))
    elif isinstance(src, Regular) and src.value.kind == Kind.SLICE:
        if src.value.type.elem != et:
            raise CallError(
                f"invalid argument: arguments to copy {describe_data(dst)} and {describe_data(src)} have different element types"
            )
        raw = src.value.raw
        items = [copy_raw(et, r) for r in raw.items()] if raw is not None else []
    else:
        raise CallError(f"invalid argument: copy expects slice arguments; found {describe_data(dst)} and {describe_data(src)}")

    draw = dst.value.raw
    n = min(len(items), draw.length if draw is not None else 0)
    for i in range(n):
        draw.array[draw.offset + i] = items[i]

    return Regular(GoValue(int_t, n))

# ---------------- maps ----------------

@register_builtin("delete")
def builtin_delete(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("delete", args, 2, 2)
    m, k = _data("delete", args[0]), _data("delete", args[1])

    if not (isinstance(m, Regular) and m.value.kind == Kind.MAP):
        raise CallError(f"invalid argument: {describe_data(m)} is not a map")

    mt = m.value.type
    try:
        key = assign(k, mt.key, "in argument to delete")
    except ConversionError as e:
        raise CallError(e.message) from None

    raw = m.value.raw
    if raw is not None:
        raw.entries.pop(hash_key(mt.key, key.raw), None)

    return NilData()

@register_builtin("clear")
def builtin_clear(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("clear", args, 1, 1)
    d = _data("clear", args[0])

    if isinstance(d, Regular):
        v = d.value
        if v.kind == Kind.MAP:
            if v.raw is not None:
                v.raw.entries.clear()
            return NilData()
        if v.kind == Kind.SLICE:
            raw = v.raw
            if raw is not None:
                for i in range(raw.length):
                    raw.array[raw.offset + i] = zero_raw(v.type.elem)
            return NilData()

    raise CallError(f"invalid argument: {describe_data(d)} must be a map or slice")

# ---------------- allocation ----------------

@register_builtin("make")
def builtin_make(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("make", args, 1)
    t = _type("make", args[0])
    k = t.kind
    sizes = [_data("make", a) for a in args[1:]]

    if k == Kind.SLICE:
        if not sizes:
            raise CallError(f"invalid operation: make({t}) expects 2 or 3 arguments; found 1")
        if len(sizes) > 2:
            raise CallError(f"invalid operation: make({t}, ...) expects 2 or 3 arguments; found {len(args)}")
        length = _size("makeslice", sizes[0], "len")
        cap = _size("makeslice", sizes[1], "cap") if len(sizes) == 2 else length
        if length > cap:
            if all(not isinstance(s, Regular) for s in sizes):
                raise CallError("invalid argument: length and capacity swapped")
            raise RuntimePanic("runtime error: makeslice: cap out of range")
        array = [zero_raw(t.elem) for _ in range(cap)]
        return Regular(GoValue(t, SliceRaw(array, 0, length, cap)))

    if k == Kind.MAP:
        if len(sizes) > 1:
            raise CallError(f"invalid operation: make({t}, ...) expects 1 or 2 arguments; found {len(args)}")
        if sizes:
            _size("makemap", sizes[0], "size")
        return Regular(GoValue(t, MapRaw()))

    if k == Kind.CHAN:
        if len(sizes) > 1:
            raise CallError(f"invalid operation: make({t}, ...) expects 1 or 2 arguments; found {len(args)}")
        cap = _size("makechan", sizes[0], "size") if sizes else 0
        return Regular(make_chan(t, cap))

    raise CallError(f"invalid argument: cannot make {t}; type must be slice, map, or channel")

@register_builtin("new")
def builtin_new(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("new", args, 1, 1)
    arg = args[0]

    if isinstance(arg, TypeValue):
        return Regular(address_of(new_var(arg.type)))

    # new(expr): pointer to a fresh variable holding the value
    v = to_regular(_data("new", arg))
    return Regular(address_of(new_var(v.type, copy_raw(v.type, v.raw))))

# ---------------- complex numbers ----------------

_FLOAT_FOR = {Kind.COMPLEX64: float32_t, Kind.COMPLEX128: float64_t}
_COMPLEX_FOR = {Kind.FLOAT32: complex64_t, Kind.FLOAT64: complex128_t}

@register_builtin("complex")
def builtin_complex(args: List[Value], _ellipsis: bool) -> Data:
    _nargs("complex", args, 2, 2)
    re, im = _data("complex", args[0]), _data("complex", args[1])

    if isinstance(re, UntypedConst) and isinstance(im, UntypedConst):
        fr, fi = float_val(re.const), float_val(im.const)
        if fr is None or fi is None:
            raise CallError(f"invalid argument: arguments have type untyped {re.const.kind} and untyped {im.const.kind}, expected floating-point")
        return UntypedConst(make_complex(fr, fi))

    ft = data_type(re) or data_type(im)
    if ft is None or not ft.is_float():
        raise CallError(f"invalid argument: arguments have type {_type_of(re)}, expected floating-point")

    try:
        if isinstance(re, UntypedConst):
            re = typed_const(re.const, ft)
        if isinstance(im, UntypedConst):
            im = typed_const(im.const, ft)
    except ConversionError as e:
        raise CallError(e.message) from None

    if data_type(re) != data_type(im):
        raise CallError(
            f"invalid operation: complex({describe_data(re)}, {describe_data(im)}) (mismatched types {data_type(re)} and {data_type(im)})"
        )

    ct = _COMPLEX_FOR.get(ft.kind, complex128_t)

    if isinstance(re, TypedConst) and isinstance(im, TypedConst):
        c = make_complex(float_val(re.const), float_val(im.const))
        rc = represent(c, ct)
        if rc is None:
            raise CallError(f"constant {describe_data(UntypedConst(c))} overflows {ct}")
        return TypedConst(rc, ct)

    r, i = to_regular(re), to_regular(im)
    return Regular(GoValue(ct, complex(r.raw, i.raw)))

def _type_of(d: Data) -> str:
    t = data_type(d)
    if t is not None:
        return str(t)
    if isinstance(d, UntypedConst):
        return f"untyped {d.const.kind}"
    return "untyped bool" if isinstance(d, UntypedBool) else "untyped nil"

def _complex_part(name: str, args: List[Value]) -> Data:
    _nargs(name, args, 1, 1)
    d = _data(name, args[0])
    pick = 0 if name == "real" else 1

    match d:
        case UntypedConst(const=c):
            z = complex_val(c) if c.is_numeric else None
            if z is not None:
                return UntypedConst(make_float(z[pick]))
        case TypedConst(const=c, type=t):
            if t.is_complex():
                ft = _FLOAT_FOR[t.kind]
                return TypedConst(represent(make_float(complex_val(c)[pick]), ft), ft)
        case Regular(value=v):
            if v.type.is_complex():
                z = v.raw
                return Regular(GoValue(_FLOAT_FOR[v.kind], z.imag if pick else z.real))

    raise CallError(f"invalid argument: {describe_data(d)} must be of complex type")

@register_builtin("real")
def builtin_real(args: List[Value], _ellipsis: bool) -> Data:
    return _complex_part("real", args)

@register_builtin("imag")
def builtin_imag(args: List[Value], _ellipsis: bool) -> Data:
    return _complex_part("imag", args)

# ---------------- min / max ----------------

def _truth(d: Data) -> bool:
    if isinstance(d, UntypedConst):
        return bool(d.const.value)
    return bool(d.value)

def _min_max(name: str, op: str, args: List[Value]) -> Data:
    _nargs(name, args, 1)
    datas = [_data(name, a) for a in args]

    typed = [d for d in datas if data_type(d) is not None]
    if typed:
        t = data_type(typed[0])
        for d in typed[1:]:
            if data_type(d) != t:
                raise CallError(
                    f"invalid argument: mismatched types {t} (previous argument) and {data_type(d)} (type of {describe_data(d)})"
                )
        if not t.is_ordered():
            raise CallError(f"invalid argument: {describe_data(typed[0])} cannot be ordered")
        try:
            datas = [typed_const(d.const, t) if isinstance(d, UntypedConst) else d for d in datas]
        except ConversionError as e:
            raise CallError(e.message) from None
        for d in datas:
            if isinstance(d, (UntypedBool, NilData)):
                raise CallError(f"invalid argument: {describe_data(d)} cannot be ordered")
    else:
        for d in datas:
            if not isinstance(d, UntypedConst) or d.const.kind in (ConstKind.BOOL, ConstKind.COMPLEX):
                raise CallError(f"invalid argument: {describe_data(d)} cannot be ordered")

    best = datas[0]
    for d in datas[1:]:
        if _truth(compare_op(d, op, best)):
            best = d

    if not typed and best.const.kind in NUMERIC_KINDS:
        # untyped operands: the result takes the largest kind among them
        promoted = to_kind(best.const, max(d.const.kind for d in datas))
        if promoted is not None:
            best = UntypedConst(promoted)

    if typed and any(isinstance(d, Regular) for d in datas):
        t = data_type(typed[0])
        if t.is_float():
            for d in datas:
                v = to_regular(d)
                if math.isnan(v.raw):
                    return Regular(GoValue(t, math.nan))
        if isinstance(best, TypedConst):
            return Regular(materialize(best.const, t))
        return Regular(best.value.copy())

    return best

@register_builtin("min")
def builtin_min(args: List[Value], _ellipsis: bool) -> Data:
    return _min_max("min", "<", args)

@register_builtin("max")
def builtin_max(args: List[Value], _ellipsis: bool) -> Data:
    return _min_max("max", ">", args)
