"""Implicit (assignment) and explicit (T(x)) conversions between Data and types."""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Optional

from .constants import (
    Const,
    ConstKind,
    complex_val,
    float_val,
    int_range,
    int_val,
    make_complex,
    make_float,
    make_int,
    make_string,
    round_fraction,
)
from .gotypes import (
    GoType,
    Kind,
    bool_t,
    complex128_t,
    float64_t,
    int32_t,
    int_t,
    string_t,
)
from .values import (
    GoValue,
    SliceRaw,
    box,
    bytes_string,
    copy_raw,
    round_complex,
    round_float,
    rune_string,
    string_bytes,
    string_runes,
    wrap_int,
)
from .types import (
    Data,
    Regular,
    TypedConst,
    UntypedConst,
    UntypedBool,
    NilData,
    ConversionError,
    RuntimePanic,
)
from .utils import describe_data

_DEFAULT_TYPES = {
    ConstKind.BOOL: bool_t,
    ConstKind.STRING: string_t,
    ConstKind.INT: int_t,
    ConstKind.RUNE: int32_t,
    ConstKind.FLOAT: float64_t,
    ConstKind.COMPLEX: complex128_t,
}

def default_type(c: Const) -> GoType:
    return _DEFAULT_TYPES[c.kind]

# ---------------- constants meet types ----------------

def represent(c: Const, t: GoType) -> Optional[Const]:
    """c as a value of basic type t (floats rounded); None when not representable."""
    if t.is_bool():
        return c if c.kind == ConstKind.BOOL else None

    if t.is_string():
        return c if c.kind == ConstKind.STRING else None

    if not c.is_numeric:
        return None

    if t.is_integer():
        n = int_val(c)
        if n is None:
            return None
        lo, hi = int_range(t.bits, not t.is_unsigned())
        return make_int(n) if lo <= n <= hi else None

    if t.is_float():
        f = float_val(c)
        if f is None:
            return None
        r = round_fraction(f, t.bits)
        return None if r is None else make_float(Fraction(r))

    if t.is_complex():
        z = complex_val(c)
        if z is None:
            return None
        part = 32 if t.kind == Kind.COMPLEX64 else 64
        re, im = round_fraction(z[0], part), round_fraction(z[1], part)
        if re is None or im is None:
            return None
        return make_complex(Fraction(re), Fraction(im))

    return None

def _why_not(c: Const, t: GoType) -> str:
    if c.is_numeric and t.is_numeric():
        if t.is_integer() and int_val(c) is None:
            return "truncated"
        return "overflows"
    return ""

def _represent_or_raise(c: Const, t: GoType, d: Data, verb: str, suffix: str = "") -> Const:
    rc = represent(c, t)
    if rc is not None:
        return rc

    if verb == "convert":
        head = f"cannot convert {describe_data(d)} to type {t}"
    else:
        head = f"cannot use {describe_data(d)} as {t} value{suffix}"

    reason = _why_not(c, t)
    raise ConversionError(f"{head} ({reason})" if reason else head)

def const_raw(c: Const, t: GoType):
    """Python raw value for a constant already representable in t."""
    if t.is_bool() or t.is_string():
        return c.value
    if t.is_integer():
        return int_val(c)
    if t.is_float():
        return round_float(t, float(float_val(c)))
    if t.is_complex():
        re, im = complex_val(c)
        return round_complex(t, complex(float(re), float(im)))
    raise ConversionError(f"constant of kind {c.kind} has no {t} representation")

def materialize(c: Const, t: GoType) -> GoValue:
    return GoValue(t, const_raw(c, t))

def typed_const(c: Const, t: GoType) -> TypedConst:
    """TypedConst with the representability invariant checked."""
    return TypedConst(_represent_or_raise(c, t, UntypedConst(c), "use"), t)

# ---------------- regular values ----------------

def _retype(v: GoValue, t: GoType) -> GoValue:
    if t.kind == Kind.INTERFACE:
        return box(v, t)
    return GoValue(t, copy_raw(v.type, v.raw))

def to_regular(d: Data) -> GoValue:
    """Data as a regular value, giving untyped data its default type."""
    match d:
        case Regular(value=v):
            return v
        case TypedConst(const=c, type=t):
            return materialize(c, t)
        case UntypedConst(const=c):
            t = default_type(c)
            return materialize(_represent_or_raise(c, t, d, "use"), t)
        case UntypedBool(value=b):
            return GoValue(bool_t, b)
        case NilData():
            raise ConversionError("use of untyped nil in assignment")

    raise ConversionError(f"unexpected data {d!r}")

def assign(d: Data, t: GoType, where: str = "") -> GoValue:
    """Implicit conversion of d to a value of type t (assignment rules)."""
    suffix = f" {where}" if where else ""

    match d:
        case Regular(value=v):
            if v.type.assignable_to(t):
                return _retype(v, t)
            raise ConversionError(f"cannot use {describe_data(d)} as {t} value{suffix}")

        case TypedConst(const=c, type=ct):
            if ct.assignable_to(t):
                return _retype(materialize(c, ct), t)
            raise ConversionError(f"cannot use {describe_data(d)} as {t} value{suffix}")

        case UntypedConst(const=c):
            if t.kind == Kind.INTERFACE:
                dt = default_type(c)
                if dt.implements(t):
                    return box(materialize(_represent_or_raise(c, dt, d, "use", suffix), dt), t)
                raise ConversionError(f"cannot use {describe_data(d)} as {t} value{suffix}")
            if t.is_basic():
                return materialize(_represent_or_raise(c, t, d, "use", suffix), t)
            raise ConversionError(f"cannot use {describe_data(d)} as {t} value{suffix}")

        case UntypedBool(value=b):
            if t.is_bool():
                return GoValue(t, b)
            if t.kind == Kind.INTERFACE and bool_t.implements(t):
                return box(GoValue(bool_t, b), t)
            raise ConversionError(f"cannot use {describe_data(d)} as {t} value{suffix}")

        case NilData():
            if t.is_nilable():
                return GoValue(t, None)
            raise ConversionError(f"cannot use nil as {t} value{suffix}")

    raise ConversionError(f"unexpected data {d!r}")

def assignable(d: Data, t: GoType) -> bool:
    try:
        assign(d, t)
    except ConversionError:
        return False
    return True

# ---------------- explicit conversion ----------------

def _const_category_ok(c: Const, t: GoType) -> bool:
    if t.is_bool():
        return c.kind == ConstKind.BOOL
    if t.is_string():
        return c.kind == ConstKind.STRING
    return c.is_numeric and t.is_numeric()

def convert(d: Data, t: GoType) -> Data:
    """T(x): constants stay constant when T is a basic type."""
    match d:
        case UntypedConst(const=c) | TypedConst(const=c):
            src_t = d.type if isinstance(d, TypedConst) else None
            if t.is_basic():
                if t.is_string() and int_val(c) is not None and c.kind in (ConstKind.INT, ConstKind.RUNE) and (src_t is None or src_t.is_integer()):
                    return TypedConst(make_string(rune_string(int_val(c))), t)
                if src_t is not None and not src_t.convertible_to(t):
                    raise ConversionError(f"cannot convert {describe_data(d)} to type {t}")
                if not _const_category_ok(c, t):
                    raise ConversionError(f"cannot convert {describe_data(d)} to type {t}")
                if src_t is not None and src_t.is_float() and t.is_integer() and int_val(c) is None:
                    raise ConversionError(f"cannot convert {describe_data(d)} to type {t} (truncated)")
                return TypedConst(_represent_or_raise(c, t, d, "convert"), t)
            return Regular(convert_value(to_regular(d), t))

        case UntypedBool(value=b):
            if t.is_bool():
                return Regular(GoValue(t, b))
            if t.kind == Kind.INTERFACE and bool_t.implements(t):
                return Regular(box(GoValue(bool_t, b), t))
            raise ConversionError(f"cannot convert {describe_data(d)} to type {t}")

        case NilData():
            if t.is_nilable():
                return Regular(GoValue(t, None))
            raise ConversionError(f"cannot convert nil to type {t}")

        case Regular(value=v):
            return Regular(convert_value(v, t))

    raise ConversionError(f"unexpected data {d!r}")

def _is_elem_kind(t: GoType, kind: Kind) -> bool:
    u = t.underlying()
    return u.kind == Kind.SLICE and u.elem.underlying().kind == kind

def convert_value(v: GoValue, t: GoType) -> GoValue:
    vt = v.type
    if vt.assignable_to(t):
        return _retype(v, t)

    vu, tu = vt.underlying(), t.underlying()
    raw = v.raw

    if tu.is_integer() and vu.is_integer():
        return GoValue(t, wrap_int(t, raw))

    if tu.is_integer() and vu.is_float():
        if math.isnan(raw) or math.isinf(raw):
            return GoValue(t, wrap_int(t, -(1 << 63)))
        return GoValue(t, wrap_int(t, int(raw)))

    if tu.is_float() and (vu.is_integer() or vu.is_float()):
        return GoValue(t, round_float(t, float(raw)))

    if tu.is_complex() and vu.is_complex():
        return GoValue(t, round_complex(t, complex(raw)))

    if tu.is_string():
        if vu.is_integer():
            return GoValue(t, rune_string(raw))
        if vu.is_string():
            return GoValue(t, raw)
        if _is_elem_kind(vt, Kind.UINT8):
            return GoValue(t, bytes_string(raw.items()) if raw is not None else '')
        if _is_elem_kind(vt, Kind.INT32):
            return GoValue(t, ''.join(rune_string(r) for r in raw.items()) if raw is not None else '')

    if vu.is_string() and _is_elem_kind(t, Kind.UINT8):
        items = list(string_bytes(raw))
        return GoValue(t, SliceRaw(items, 0, len(items), len(items)))

    if vu.is_string() and _is_elem_kind(t, Kind.INT32):
        items = string_runes(raw)
        return GoValue(t, SliceRaw(items, 0, len(items), len(items)))

    if vu.kind == Kind.SLICE and tu.kind == Kind.ARRAY and vu.elem == tu.elem:
        n = raw.length if raw is not None else 0
        if n < tu.length:
            raise RuntimePanic(
                f"runtime error: cannot convert slice with length {n} to array or pointer to array with length {tu.length}"
            )
        return GoValue(t, [copy_raw(tu.elem, r) for r in raw.items()[:tu.length]] if tu.length else [])

    if vt.convertible_to(t):
        return _retype(v, t)

    raise ConversionError(f"cannot convert {describe_data(Regular(v))} to type {t}")
