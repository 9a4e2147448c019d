"""Operator engine: binary arithmetic, comparisons, shifts and unary operators on Data.

Combination rules:
- untyped op untyped   -> exact constant arithmetic
- typed op untyped     -> the untyped side is converted to the typed side's type
- typed const op const -> exact arithmetic, then checked against the type
- regular values       -> identical types required; ints wrap, floats follow IEEE
"""
from __future__ import annotations

import math
from typing import Optional

from .constants import (
    Const,
    ConstError,
    ConstKind,
    binary_op as const_binary,
    compare as const_compare,
    format_const,
    int_val,
    make_bool,
    make_int,
    shift as const_shift,
    unary_op as const_unary,
)
from .conversions import assign, default_type, materialize, represent, to_regular
from .gotypes import ChanDir, GoType, Kind
from .values import (
    GoValue,
    address_of,
    raw_equal,
    round_complex,
    round_float,
    string_bytes,
    wrap_int,
    zero_raw,
)
from .types import (
    Data,
    Regular,
    TypedConst,
    UntypedConst,
    UntypedBool,
    NilData,
    OperatorError,
    RuntimePanic,
    data_type,
)
from .utils import describe_data

COMPARISON_OPS = frozenset({'==', '!=', '<', '<=', '>', '>='})
SHIFT_OPS = frozenset({'<<', '>>'})

# large enough for any float64 mantissa
MAX_CONST_SHIFT = 1074

# ---------------- helpers ----------------

def _invalid(x: Data, op: str, y: Data, why: str) -> OperatorError:
    return OperatorError(f"invalid operation: {describe_data(x)} {op} {describe_data(y)} ({why})")

def _type_name(d: Data) -> str:
    t = data_type(d)
    if t is not None:
        return str(t)
    if isinstance(d, UntypedConst):
        return f"untyped {_const_kind_word(d.const)}"
    if isinstance(d, UntypedBool):
        return "untyped bool"
    return "untyped nil"

def _const_kind_word(c: Const) -> str:
    return str(c.kind)

def _op_defined(op: str, t: GoType) -> bool:
    u = t.underlying()
    if op == '+':
        return u.is_numeric() or u.is_string()
    if op in ('-', '*', '/'):
        return u.is_numeric()
    if op in ('%', '&', '|', '^', '&^'):
        return u.is_integer()
    if op in ('&&', '||'):
        return u.is_bool()
    return False

def _const_op_defined(op: str, c: Const) -> bool:
    if op == '+':
        return c.is_numeric or c.kind == ConstKind.STRING
    if op in ('-', '*', '/'):
        return c.is_numeric
    if op in ('%', '&', '|', '^', '&^'):
        return c.kind in (ConstKind.INT, ConstKind.RUNE)
    if op in ('&&', '||'):
        return c.kind == ConstKind.BOOL
    return False

def _category(c: Const) -> str:
    if c.kind == ConstKind.BOOL:
        return 'bool'
    if c.kind == ConstKind.STRING:
        return 'string'
    return 'numeric'

def _type_category(t: GoType) -> str:
    u = t.underlying()
    if u.is_bool():
        return 'bool'
    if u.is_string():
        return 'string'
    if u.is_numeric():
        return 'numeric'
    return 'other'

def _untyped_to(d: Data, t: GoType, x: Data, op: str, y: Data) -> Data:
    """Give an untyped operand the other operand's type."""
    match d:
        case UntypedConst(const=c):
            if t.is_interface():
                return Regular(assign(d, t))
            if _category(c) != _type_category(t):
                raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
            rc = represent(c, t)
            if rc is None:
                if t.is_integer() and int_val(c) is None:
                    raise OperatorError(f"{describe_data(d)} truncated to {t}")
                raise OperatorError(f"{describe_data(d)} overflows {t}")
            return TypedConst(rc, t)
        case UntypedBool(value=b):
            if t.underlying().is_bool():
                return Regular(GoValue(t, b))
            if t.is_interface():
                return Regular(assign(d, t))
        case NilData():
            if t.is_nilable():
                return Regular(GoValue(t, None))

    raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")

def _is_zero_const(d: Data) -> bool:
    if not isinstance(d, TypedConst):
        return False
    c = d.const
    if c.kind == ConstKind.COMPLEX:
        return c.value == (0, 0)
    return c.is_numeric and c.value == 0

def _const_error(e: ConstError, x: Data, op: str, y: Data) -> OperatorError:
    msg = str(e)
    if msg == "division by zero":
        return OperatorError("invalid operation: division by zero")
    return _invalid(x, op, y, msg)

# ---------------- binary ----------------

def binary_op(x: Data, op: str, y: Data) -> Data:
    if op in COMPARISON_OPS:
        return compare_op(x, op, y)
    if op in SHIFT_OPS:
        return shift_op(x, op, y)

    if isinstance(x, NilData) or isinstance(y, NilData):
        raise OperatorError(f"invalid operation: operator {op} not defined on nil")

    if isinstance(x, UntypedConst) and isinstance(y, UntypedConst):
        if _category(x.const) != _category(y.const):
            raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
        if not _const_op_defined(op, x.const):
            raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")
        if not _const_op_defined(op, y.const):
            raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(y)}")
        try:
            return UntypedConst(const_binary(x.const, op, y.const))
        except ConstError as e:
            raise _const_error(e, x, op, y) from None

    if isinstance(x, (UntypedConst, UntypedBool)) and isinstance(y, (UntypedConst, UntypedBool)):
        # untyped bool value mixed with an untyped bool constant
        bx, by = _untyped_bool(x), _untyped_bool(y)
        if bx is None or by is None:
            raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
        if op == '&&':
            return UntypedBool(bx and by)
        if op == '||':
            return UntypedBool(bx or by)
        raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")

    tx, ty = data_type(x), data_type(y)
    if tx is None:
        x = _untyped_to(x, ty, x, op, y)
        t = ty
    elif ty is None:
        y = _untyped_to(y, tx, x, op, y)
        t = tx
    elif tx != ty:
        raise _invalid(x, op, y, f"mismatched types {tx} and {ty}")
    else:
        t = tx

    if not _op_defined(op, t):
        raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")

    if op in ('/', '%') and _is_zero_const(y):
        raise OperatorError("invalid operation: division by zero")

    if isinstance(x, TypedConst) and isinstance(y, TypedConst):
        try:
            c = const_binary(x.const, op, y.const)
        except ConstError as e:
            raise _const_error(e, x, op, y) from None
        rc = represent(c, t)
        if rc is None:
            raise OperatorError(f"constant {format_const(c)} overflows {t}")
        return TypedConst(rc, t)

    a, b = to_regular(x), to_regular(y)
    return Regular(GoValue(t, arith(t, a.raw, op, b.raw)))

def _untyped_bool(d: Data) -> Optional[bool]:
    if isinstance(d, UntypedBool):
        return d.value
    if isinstance(d, UntypedConst) and d.const.kind == ConstKind.BOOL:
        return d.const.value
    return None

def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q

def _fdiv(a: float, b: float) -> float:
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)

def _cdiv(a: complex, b: complex) -> complex:
    if b != 0:
        return a / b
    return complex(_fdiv(a.real, b.real), _fdiv(a.imag, b.real))

def arith(t: GoType, a, op: str, b):
    """Raw arithmetic on two values of type t."""
    u = t.underlying()

    if u.is_bool():
        return (a and b) if op == '&&' else (a or b)

    if u.is_string():
        return a + b

    if u.is_integer():
        match op:
            case '+':
                r = a + b
            case '-':
                r = a - b
            case '*':
                r = a * b
            case '/':
                if b == 0:
                    raise RuntimePanic("runtime error: integer divide by zero")
                r = _trunc_div(a, b)
            case '%':
                if b == 0:
                    raise RuntimePanic("runtime error: integer divide by zero")
                r = a - b * _trunc_div(a, b)
            case '&':
                r = a & b
            case '|':
                r = a | b
            case '^':
                r = a ^ b
            case '&^':
                r = a & ~b
            case _:
                raise OperatorError(f"invalid operation: operator {op} not defined on {t}")
        return wrap_int(t, r)

    if u.is_float():
        match op:
            case '+':
                r = a + b
            case '-':
                r = a - b
            case '*':
                r = a * b
            case '/':
                r = _fdiv(a, b)
            case _:
                raise OperatorError(f"invalid operation: operator {op} not defined on {t}")
        return round_float(t, r)

    if u.is_complex():
        match op:
            case '+':
                r = a + b
            case '-':
                r = a - b
            case '*':
                r = a * b
            case '/':
                r = _cdiv(a, b)
            case _:
                raise OperatorError(f"invalid operation: operator {op} not defined on {t}")
        return round_complex(t, r)

    raise OperatorError(f"invalid operation: operator {op} not defined on {t}")

# ---------------- comparison ----------------

def compare_op(x: Data, op: str, y: Data) -> Data:
    if isinstance(x, UntypedConst) and isinstance(y, UntypedConst):
        if _category(x.const) != _category(y.const):
            raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
        try:
            return UntypedConst(make_bool(const_compare(x.const, op, y.const)))
        except ConstError as e:
            raise _const_error(e, x, op, y) from None

    if isinstance(x, NilData) and isinstance(y, NilData):
        raise OperatorError(f"invalid operation: nil {op} nil (operator {op} not defined on nil)")

    if isinstance(x, NilData) or isinstance(y, NilData):
        other = y if isinstance(x, NilData) else x
        ot = data_type(other)
        if ot is None or not ot.is_nilable():
            raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
        if op not in ('==', '!='):
            raise OperatorError(f"invalid operation: {describe_data(x)} {op} {describe_data(y)} (operator {op} not defined on nil)")
        is_nil = other.value.raw is None
        return UntypedBool(is_nil if op == '==' else not is_nil)

    if isinstance(x, (UntypedConst, UntypedBool)) and isinstance(y, (UntypedConst, UntypedBool)):
        bx, by = _untyped_bool(x), _untyped_bool(y)
        if bx is None or by is None:
            raise _invalid(x, op, y, f"mismatched types {_type_name(x)} and {_type_name(y)}")
        if op not in ('==', '!='):
            raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")
        return UntypedBool((bx == by) == (op == '=='))

    tx, ty = data_type(x), data_type(y)
    if tx is None:
        x = _untyped_to(x, ty, x, op, y)
        t = ty
    elif ty is None:
        y = _untyped_to(y, tx, x, op, y)
        t = tx
    elif tx != ty:
        if tx.is_interface() and ty.implements(tx):
            y = Regular(assign(y, tx))
            t = tx
        elif ty.is_interface() and tx.implements(ty):
            x = Regular(assign(x, ty))
            t = ty
        else:
            raise _invalid(x, op, y, f"mismatched types {tx} and {ty}")
    else:
        t = tx

    if op in ('==', '!='):
        if not t.comparable():
            u = t.underlying()
            if u.kind in (Kind.SLICE, Kind.MAP, Kind.FUNC):
                raise _invalid(x, op, y, f"{u.kind} can only be compared to nil")
            raise _invalid(x, op, y, f"{t} cannot be compared")
    elif not t.underlying().is_ordered():
        raise _invalid(x, op, y, f"operator {op} not defined on {describe_data(x)}")

    if isinstance(x, TypedConst) and isinstance(y, TypedConst):
        try:
            return UntypedConst(make_bool(const_compare(x.const, op, y.const)))
        except ConstError as e:
            raise _const_error(e, x, op, y) from None

    a, b = to_regular(x), to_regular(y)
    return UntypedBool(_compare_raw(t, a.raw, op, b.raw))

def _compare_raw(t: GoType, a, op: str, b) -> bool:
    if op == '==':
        return raw_equal(t, a, b)
    if op == '!=':
        return not raw_equal(t, a, b)

    if t.underlying().is_string():
        a, b = string_bytes(a), string_bytes(b)

    match op:
        case '<':
            return a < b
        case '<=':
            return a <= b
        case '>':
            return a > b
        case '>=':
            return a >= b

    raise OperatorError(f"invalid comparison operator {op}")

# ---------------- shifts ----------------

def _shift_count(x: Data, op: str, y: Data) -> tuple:
    """(count, is_constant) for the right operand of a shift."""
    match y:
        case UntypedConst(const=c):
            n = int_val(c) if c.is_numeric else None
            if n is None:
                raise OperatorError(f"invalid operation: shift count {describe_data(y)} must be integer")
            if n < 0:
                raise OperatorError(f"invalid operation: negative shift count {describe_data(y)}")
            if n >= 1 << 64:
                raise OperatorError(f"invalid operation: shift count {describe_data(y)} overflows uint")
            return n, True
        case TypedConst(const=c, type=t):
            if not t.underlying().is_integer():
                raise OperatorError(f"invalid operation: shift count type {t}, must be integer")
            n = int_val(c)
            if n < 0:
                raise OperatorError(f"invalid operation: negative shift count {describe_data(y)}")
            return n, True
        case Regular(value=v):
            if not v.type.underlying().is_integer():
                raise OperatorError(f"invalid operation: shift count type {v.type}, must be integer")
            return v.raw, False

    raise OperatorError(f"invalid operation: shift count {describe_data(y)} must be integer")

def _shift_raw(t: GoType, a: int, op: str, n: int) -> int:
    if n < 0:
        raise RuntimePanic("runtime error: negative shift amount")
    n = min(n, 128)
    return wrap_int(t, a << n if op == '<<' else a >> n)

def shift_op(x: Data, op: str, y: Data) -> Data:
    n, const_count = _shift_count(x, op, y)

    match x:
        case UntypedConst(const=c):
            if not c.is_numeric or int_val(c) is None:
                raise OperatorError(f"invalid operation: shifted operand {describe_data(x)} must be integer")
            if const_count:
                if op == '<<' and n > MAX_CONST_SHIFT:
                    raise OperatorError(f"invalid operation: invalid shift count {describe_data(y)}")
                rune = c.kind == ConstKind.RUNE
                return UntypedConst(const_shift(make_int(int_val(c), rune), op, n))
            # non-constant shift: the constant takes the type it would have alone
            t = default_type(c)
            if not t.is_integer():
                raise OperatorError(
                    f"invalid operation: shifted operand {format_const(c)} (type {t}) must be integer"
                )
            rc = represent(c, t)
            if rc is None:
                raise OperatorError(f"{describe_data(x)} overflows {t}")
            v = materialize(rc, t)
            return Regular(GoValue(t, _shift_raw(t, v.raw, op, n)))

        case TypedConst(const=c, type=t):
            if not t.underlying().is_integer():
                raise OperatorError(f"invalid operation: shifted operand {describe_data(x)} must be integer")
            if const_count:
                if op == '<<' and n > MAX_CONST_SHIFT:
                    raise OperatorError(f"invalid operation: invalid shift count {describe_data(y)}")
                r = const_shift(c, op, n)
                rc = represent(r, t)
                if rc is None:
                    raise OperatorError(f"constant {format_const(r)} overflows {t}")
                return TypedConst(rc, t)
            return Regular(GoValue(t, _shift_raw(t, int_val(c), op, n)))

        case Regular(value=v):
            if not v.type.underlying().is_integer():
                raise OperatorError(f"invalid operation: shifted operand {describe_data(x)} must be integer")
            return Regular(GoValue(v.type, _shift_raw(v.type, v.raw, op, n)))

    raise OperatorError(f"invalid operation: shifted operand {describe_data(x)} must be integer")

# ---------------- unary ----------------

def unary_op(op: str, x: Data) -> Data:
    if op == '<-':
        return receive(x)

    match x:
        case UntypedConst(const=c):
            try:
                return UntypedConst(const_unary(op, c))
            except ConstError:
                raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}") from None

        case TypedConst(const=c, type=t):
            if not _unary_defined(op, t):
                raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")
            try:
                r = const_unary(op, c, unsigned_bits=t.bits if t.is_unsigned() else 0)
            except ConstError:
                raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}") from None
            rc = represent(r, t)
            if rc is None:
                raise OperatorError(f"constant {format_const(r)} overflows {t}")
            return TypedConst(rc, t)

        case UntypedBool(value=b):
            if op == '!':
                return UntypedBool(not b)

        case Regular(value=v):
            t = v.type
            if not _unary_defined(op, t):
                raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")
            a = v.raw
            u = t.underlying()
            match op:
                case '+':
                    return Regular(v.copy())
                case '-':
                    if u.is_integer():
                        return Regular(GoValue(t, wrap_int(t, -a)))
                    return Regular(GoValue(t, -a))
                case '!':
                    return Regular(GoValue(t, not a))
                case '^':
                    return Regular(GoValue(t, wrap_int(t, ~a)))

    raise OperatorError(f"invalid operation: operator {op} not defined on {describe_data(x)}")

def _unary_defined(op: str, t: GoType) -> bool:
    u = t.underlying()
    if op in ('+', '-'):
        return u.is_numeric()
    if op == '!':
        return u.is_bool()
    if op == '^':
        return u.is_integer()
    return False

def address_of_data(x: Data) -> Data:
    if isinstance(x, Regular) and x.value.addressable:
        return Regular(address_of(x.value))
    raise OperatorError(f"invalid operation: cannot take address of {describe_data(x)}")

def receive(x: Data) -> Data:
    """Non-blocking receive from a buffered channel."""
    if not isinstance(x, Regular) or x.value.kind != Kind.CHAN:
        raise OperatorError(f"invalid operation: cannot receive from non-channel {describe_data(x)}")

    v = x.value
    if v.type.chan_dir == ChanDir.SEND:
        raise OperatorError(f"invalid operation: cannot receive from send-only channel {describe_data(x)}")

    ch = v.raw
    if ch is None:
        raise OperatorError("receive from nil channel would block")

    if ch.buffer:
        return Regular(GoValue(v.type.elem, ch.buffer.popleft()))

    if ch.closed:
        return Regular(GoValue(v.type.elem, zero_raw(v.type.elem)))

    raise OperatorError("receive would block: channel is empty")
