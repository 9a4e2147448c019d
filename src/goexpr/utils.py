from __future__ import annotations

import math
import os as _os
from decimal import Decimal
from typing import Any, List, Optional

from .constants import Const, ConstKind, format_const, go_quote, round_float32, to_python as const_to_python
from .gotypes import GoType, Kind
from .values import GoValue, Pointer, string_bytes
from .types import (
    Value,
    Data,
    Datas,
    TypeValue,
    Package,
    BuiltinFunc,
    Regular,
    TypedConst,
    UntypedConst,
    UntypedBool,
    NilData,
)

DEFAULT_PKG_PATH = "main"

_TRUTHY = ("1", "true", "yes", "on")


def debug_py_trace_enabled() -> bool:
    return _os.environ.get("GOEXPR_DEBUG_PY_TRACE", "").lower() in _TRUTHY


def default_pkg_path() -> str:
    return _os.environ.get("GOEXPR_PKG_PATH") or DEFAULT_PKG_PATH

# ---------------- descriptions for diagnostics ----------------

def const_kind_name(c: Const) -> str:
    return {
        ConstKind.BOOL: "bool",
        ConstKind.STRING: "string",
        ConstKind.INT: "int",
        ConstKind.RUNE: "rune",
        ConstKind.FLOAT: "float",
        ConstKind.COMPLEX: "complex",
    }[c.kind]

def describe_data(d: Data) -> str:
    match d:
        case UntypedConst(const=c):
            return f"{format_const(c)} (untyped {const_kind_name(c)} constant)"
        case TypedConst(const=c, type=t):
            return f"{format_const(c)} (constant of type {t})"
        case UntypedBool(value=b):
            return f"{'true' if b else 'false'} (untyped bool value)"
        case NilData():
            return "nil"
        case Regular(value=v):
            what = "variable" if v.addressable else "value"
            return f"{what} of type {v.type}"

    return repr(d)

def describe(value: Value) -> str:
    match value:
        case Datas(data=d):
            return describe_data(d)
        case TypeValue(type=t):
            return f"{t} (type)"
        case Package(name=name):
            return f"package {name}"
        case BuiltinFunc(name=name):
            return f"{name} (built-in function {name})"

    return repr(value)

def describe_type(value: Value) -> str:
    """Short type annotation printed next to a result: `5 (untyped int constant)`."""
    match value:
        case Datas(data=Regular(value=v)):
            return str(v.type)
        case Datas(data=TypedConst(type=t)):
            return f"{t} constant"
        case Datas(data=UntypedConst(const=c)):
            return f"untyped {const_kind_name(c)} constant"
        case Datas(data=UntypedBool()):
            return "untyped bool"
        case Datas(data=NilData()):
            return "untyped nil"
        case TypeValue():
            return "type"
        case Package():
            return "package"
        case BuiltinFunc():
            return "built-in function"

    return type(value).__name__

# ---------------- %v formatting ----------------

def format_float(x: float, bits: int = 64) -> str:
    """strconv.FormatFloat(x, 'g', -1, bits) as used by %v."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    if x == 0:
        return "-0" if math.copysign(1.0, x) < 0 else "0"

    if bits == 32:
        text = _shortest_float32(x)
    else:
        text = repr(x)

    sign, digits, exp = Decimal(text).as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exp += 1

    nd = len(digits)
    dp = nd + exp  # position of the decimal point relative to the digits
    eprec = 6
    if eprec > nd and nd >= dp:
        eprec = nd

    ds = ''.join(str(d) for d in digits)
    neg = '-' if sign else ''
    exp10 = dp - 1

    if exp10 < -4 or exp10 >= eprec:
        mant = ds[0] + ('.' + ds[1:] if nd > 1 else '')
        esign = '-' if exp10 < 0 else '+'
        return f"{neg}{mant}e{esign}{abs(exp10):02d}"

    if dp <= 0:
        return f"{neg}0.{'0' * -dp}{ds}"
    if dp >= nd:
        return f"{neg}{ds}{'0' * (dp - nd)}"
    return f"{neg}{ds[:dp]}.{ds[dp:]}"

def _shortest_float32(x: float) -> str:
    for prec in range(1, 10):
        text = f"{x:.{prec}g}"
        if round_float32(float(text)) == x:
            return text
    return repr(x)

def format_complex(z: complex, bits: int = 128) -> str:
    part = 32 if bits == 64 else 64
    re = format_float(z.real, part)
    im = format_float(z.imag, part)
    if not im.startswith(('-', '+')):
        im = '+' + im
    return f"({re}{im}i)"

def format_raw(t: GoType, raw: Any, depth: int = 0) -> str:
    k = t.kind

    if k == Kind.BOOL:
        return "true" if raw else "false"
    if t.is_integer():
        return str(raw)
    if t.is_float():
        return format_float(raw, t.bits)
    if t.is_complex():
        return format_complex(raw, 64 if k == Kind.COMPLEX64 else 128)
    if k == Kind.STRING:
        return raw
    if k == Kind.INTERFACE:
        return "<nil>" if raw is None else format_raw(raw.type, raw.raw, depth)
    if k == Kind.ARRAY:
        return "[" + " ".join(format_raw(t.elem, r, depth + 1) for r in raw) + "]"
    if k == Kind.SLICE:
        items = raw.items() if raw is not None else []
        return "[" + " ".join(format_raw(t.elem, r, depth + 1) for r in items) + "]"
    if k == Kind.STRUCT:
        return "{" + " ".join(format_raw(f.type, r, depth + 1) for f, r in zip(t.fields, raw)) + "}"
    if k == Kind.MAP:
        if raw is None:
            return "map[]"
        pairs = sorted(raw.entries.values(), key=lambda kv: _sort_key(t.key, kv[0]))
        body = " ".join(
            f"{format_raw(t.key, kr, depth + 1)}:{format_raw(t.elem, er, depth + 1)}" for kr, er in pairs
        )
        return f"map[{body}]"
    if raw is None:
        return "<nil>"
    if k == Kind.POINTER and depth == 0 and t.elem.kind in (Kind.ARRAY, Kind.SLICE, Kind.STRUCT, Kind.MAP):
        return "&" + format_raw(t.elem, raw.cell.get(), depth + 1)
    return _address(raw)

def _address(raw: Any) -> str:
    if isinstance(raw, Pointer):
        return f"0x{abs(hash(raw)) & 0xffffffffff:x}"
    return f"0x{id(raw) & 0xffffffffff:x}"

def _sort_key(t: GoType, raw: Any) -> tuple:
    if t.kind == Kind.INTERFACE:
        if raw is None:
            return (0, "")
        return (1, str(raw.type), _sort_key(raw.type, raw.raw))
    if t.is_string():
        return (1, string_bytes(raw))
    if t.is_numeric() and not t.is_complex():
        return (1, raw)
    if t.kind == Kind.BOOL:
        return (1, bool(raw))
    if t.kind in (Kind.ARRAY, Kind.STRUCT):
        return (1, format_raw(t, raw, 1))
    return (1, repr(raw))

def format_go_value(v: GoValue) -> str:
    return format_raw(v.type, v.raw)

def format_data(d: Data) -> str:
    match d:
        case Regular(value=v):
            return format_go_value(v)
        case TypedConst(const=c, type=t):
            return _format_typed_const(c, t)
        case UntypedConst(const=c):
            return _format_untyped_const(c)
        case UntypedBool(value=b):
            return "true" if b else "false"
        case NilData():
            return "<nil>"

    return repr(d)

def _format_untyped_const(c: Const) -> str:
    if c.kind == ConstKind.STRING:
        return c.value
    if c.kind == ConstKind.FLOAT:
        return format_float(const_to_python(c))
    if c.kind == ConstKind.COMPLEX:
        return format_complex(const_to_python(c))
    if c.kind == ConstKind.BOOL:
        return "true" if c.value else "false"
    return str(c.value)

def _format_typed_const(c: Const, t: GoType) -> str:
    if t.is_float():
        return format_float(const_to_python(c), t.bits)
    if t.is_complex():
        return format_complex(const_to_python(c), 64 if t.kind == Kind.COMPLEX64 else 128)
    return _format_untyped_const(c)

def format_value(value: Value) -> str:
    """Render a result the way Go's %v verb would."""
    match value:
        case Datas(data=d):
            return format_data(d)
        case TypeValue(type=t):
            return str(t)
        case Package(name=name):
            return f"package {name}"
        case BuiltinFunc(name=name):
            return name

    return repr(value)

def format_result(value: Value) -> str:
    """`value (type)` line printed by the CLI and REPL."""
    shown = format_value(value)
    if isinstance(value, Datas) and _is_string_data(value.data):
        shown = go_quote(shown)
    return f"{shown} ({describe_type(value)})"

def _is_string_data(d: Data) -> bool:
    if isinstance(d, UntypedConst):
        return d.const.kind == ConstKind.STRING
    if isinstance(d, TypedConst):
        return d.type.is_string()
    if isinstance(d, Regular):
        return d.value.type.is_string()
    return False

def split_define(text: str) -> Optional[List[str]]:
    """Split `name=expr` (CLI -D flag); None when malformed."""
    name, sep, expr = text.partition("=")
    name = name.strip()
    if not sep or not name.isidentifier() or not expr.strip():
        return None
    return [name, expr.strip()]
