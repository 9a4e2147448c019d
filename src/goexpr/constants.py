"""Exact Go constants.

Untyped constant arithmetic is carried out exactly: integers as Python
ints, floats as Fractions and complex numbers as pairs of Fractions.
Representability in a concrete type is checked (and floats rounded) only
when a constant meets a type.
"""
from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import IntEnum
from fractions import Fraction
from typing import Any, Optional, Tuple

class ConstKind(IntEnum):
    # numeric kinds are ordered: the "larger" kind wins in mixed arithmetic
    BOOL = 0
    STRING = 1
    INT = 2
    RUNE = 3
    FLOAT = 4
    COMPLEX = 5

    def __str__(self) -> str:
        return self.name.lower()

NUMERIC_KINDS = (ConstKind.INT, ConstKind.RUNE, ConstKind.FLOAT, ConstKind.COMPLEX)


class ConstError(Exception):
    """Constant arithmetic failure (division by zero, invalid operand)."""


@dataclass(frozen=True)
class Const:
    kind: ConstKind
    value: Any

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_KINDS

    def __repr__(self) -> str:
        return f"Const({self.kind}, {format_const(self)})"


def make_bool(b: bool) -> Const:
    return Const(ConstKind.BOOL, bool(b))

def make_string(s: str) -> Const:
    return Const(ConstKind.STRING, s)

def make_int(n: int, rune: bool = False) -> Const:
    return Const(ConstKind.RUNE if rune else ConstKind.INT, int(n))

def make_float(f: Fraction | int | float) -> Const:
    return Const(ConstKind.FLOAT, Fraction(f))

def make_complex(re: Fraction | int | float, im: Fraction | int | float) -> Const:
    return Const(ConstKind.COMPLEX, (Fraction(re), Fraction(im)))

TRUE = make_bool(True)
FALSE = make_bool(False)

# ---------------- literals ----------------

_SIMPLE_ESCAPES = {
    'a': 0x07, 'b': 0x08, 'f': 0x0C, 'n': 0x0A,
    'r': 0x0D, 't': 0x09, 'v': 0x0B, '\\': 0x5C,
}

def _unquote_char(s: str, i: int, quote: str) -> Tuple[int, bool, int]:
    """Decode one (possibly escaped) character at s[i].

    Returns (value, is_byte, next_index). Byte escapes (\\x, octal) yield
    raw bytes; everything else yields a code point.
    """
    ch = s[i]
    if ch != '\\':
        return ord(ch), False, i + 1

    if i + 1 >= len(s):
        raise ValueError("escape sequence not terminated")

    c = s[i + 1]
    if c in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[c], False, i + 2
    if c == quote:
        return ord(c), False, i + 2

    if c == 'x':
        digits = s[i + 2:i + 4]
        if len(digits) != 2:
            raise ValueError("invalid \\x escape")
        return int(digits, 16), True, i + 4

    if c in '01234567':
        digits = s[i + 1:i + 4]
        if len(digits) != 3 or any(d not in '01234567' for d in digits):
            raise ValueError("invalid octal escape")
        v = int(digits, 8)
        if v > 255:
            raise ValueError("octal escape value > 255")
        return v, True, i + 4

    if c in 'uU':
        width = 4 if c == 'u' else 8
        digits = s[i + 2:i + 2 + width]
        if len(digits) != width:
            raise ValueError("invalid unicode escape")
        v = int(digits, 16)
        if v > 0x10FFFF or 0xD800 <= v < 0xE000:
            raise ValueError("escape sequence is invalid Unicode code point")
        return v, False, i + 2 + width

    raise ValueError("unknown escape sequence")

def unquote_string(text: str) -> str:
    """Interpreted or raw Go string literal to the Python string holding its bytes."""
    if len(text) < 2:
        raise ValueError("invalid string literal")

    if text[0] == '`' and text[-1] == '`':
        return text[1:-1].replace('\r', '')

    if text[0] != '"' or text[-1] != '"':
        raise ValueError("invalid string literal")

    body = text[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        if body[i] == '"' or body[i] == '\n':
            raise ValueError("invalid string literal")
        v, is_byte, i = _unquote_char(body, i, '"')
        if is_byte:
            out.append(v)
        else:
            out += chr(v).encode('utf-8', 'surrogatepass')

    return out.decode('utf-8', 'surrogateescape')

def unquote_rune(text: str) -> int:
    if len(text) < 3 or text[0] != "'" or text[-1] != "'":
        raise ValueError("invalid rune literal")

    body = text[1:-1]
    v, _, end = _unquote_char(body, 0, "'")
    if end != len(body):
        raise ValueError("more than one character in rune literal")
    return v

def _parse_int(text: str) -> int:
    text = text.replace('_', '')
    if len(text) > 1 and text[0] == '0' and text[1].isdigit():
        # legacy octal: 0755
        return int(text, 8)
    return int(text, 0)

def _parse_float(text: str) -> Fraction:
    text = text.replace('_', '')

    if text[:2].lower() == '0x':
        mant, sep, exp = text[2:].lower().partition('p')
        if not sep or not exp:
            raise ValueError("hexadecimal mantissa requires a 'p' exponent")
        int_part, _, frac_part = mant.partition('.')
        digits = int_part + frac_part
        if not digits:
            raise ValueError("hexadecimal literal has no digits")
        return Fraction(int(digits, 16), 16 ** len(frac_part)) * Fraction(2) ** int(exp)

    return Fraction(text)

def from_literal(kind: str, text: str) -> Optional[Const]:
    """Parse a basic literal of token type `kind`; None when malformed."""
    try:
        match kind:
            case 'INT':
                return make_int(_parse_int(text))
            case 'FLOAT':
                return make_float(_parse_float(text))
            case 'IMAG':
                if not text.endswith('i'):
                    return None
                body = text[:-1]
                plain = body.replace('_', '')
                if plain.isdigit():
                    # 0123i is decimal for backward compatibility
                    return make_complex(0, int(plain, 10))
                if plain[:2].lower() in ('0b', '0o') or (plain[:2].lower() == '0x' and 'p' not in plain.lower()):
                    return make_complex(0, _parse_int(body))
                return make_complex(0, _parse_float(body))
            case 'CHAR':
                return make_int(unquote_rune(text), rune=True)
            case 'STRING':
                return make_string(unquote_string(text))
    except (ValueError, ZeroDivisionError):
        return None

    return None

# ---------------- accessors ----------------

def int_val(c: Const) -> Optional[int]:
    """Exact integer value, if the constant holds one."""
    if c.kind in (ConstKind.INT, ConstKind.RUNE):
        return c.value
    if c.kind == ConstKind.FLOAT:
        return c.value.numerator if c.value.denominator == 1 else None
    if c.kind == ConstKind.COMPLEX:
        re, im = c.value
        if im == 0 and re.denominator == 1:
            return re.numerator
    return None

def float_val(c: Const) -> Optional[Fraction]:
    if c.kind in (ConstKind.INT, ConstKind.RUNE):
        return Fraction(c.value)
    if c.kind == ConstKind.FLOAT:
        return c.value
    if c.kind == ConstKind.COMPLEX and c.value[1] == 0:
        return c.value[0]
    return None

def complex_val(c: Const) -> Optional[Tuple[Fraction, Fraction]]:
    if c.kind == ConstKind.COMPLEX:
        return c.value
    f = float_val(c)
    return None if f is None else (f, Fraction(0))

def to_kind(c: Const, kind: ConstKind) -> Optional[Const]:
    """Re-express a numeric constant as `kind` without losing precision."""
    if c.kind == kind:
        return c
    if kind in (ConstKind.INT, ConstKind.RUNE):
        n = int_val(c)
        return None if n is None else make_int(n, rune=kind == ConstKind.RUNE)
    if kind == ConstKind.FLOAT:
        f = float_val(c)
        return None if f is None else make_float(f)
    if kind == ConstKind.COMPLEX:
        z = complex_val(c)
        return None if z is None else make_complex(*z)
    return None

def to_python(c: Const) -> Any:
    if c.kind == ConstKind.FLOAT:
        return _fraction_to_float(c.value)
    if c.kind == ConstKind.COMPLEX:
        return complex(_fraction_to_float(c.value[0]), _fraction_to_float(c.value[1]))
    return c.value

def _fraction_to_float(f: Fraction) -> float:
    try:
        return float(f)
    except OverflowError:
        return math.inf if f > 0 else -math.inf

# ---------------- arithmetic ----------------

def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q

def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)

def match_kinds(x: Const, y: Const) -> Tuple[Const, Const]:
    """Bring two numeric constants to the larger of their kinds."""
    kind = max(x.kind, y.kind)
    cx, cy = to_kind(x, kind), to_kind(y, kind)
    if cx is None or cy is None:
        raise ConstError(f"cannot combine {x.kind} and {y.kind} constants")
    return cx, cy

def binary_op(x: Const, op: str, y: Const) -> Const:
    """Exact arithmetic on two constants of compatible kinds; integer operands divide with truncation."""
    if op in ('&&', '||'):
        if x.kind != ConstKind.BOOL or y.kind != ConstKind.BOOL:
            raise ConstError(f"operator {op} not defined on {_kind_name(x, y)}")
        return make_bool(x.value and y.value if op == '&&' else x.value or y.value)

    if x.kind == ConstKind.STRING or y.kind == ConstKind.STRING:
        if x.kind != y.kind:
            raise ConstError("mismatched constant kinds")
        if op != '+':
            raise ConstError(f"operator {op} not defined on string")
        return make_string(x.value + y.value)

    if x.kind == ConstKind.BOOL or y.kind == ConstKind.BOOL:
        raise ConstError(f"operator {op} not defined on {_kind_name(x, y)}")

    x, y = match_kinds(x, y)
    kind = x.kind

    if kind in (ConstKind.INT, ConstKind.RUNE):
        a, b = x.value, y.value
        rune = kind == ConstKind.RUNE
        match op:
            case '+':
                return make_int(a + b, rune)
            case '-':
                return make_int(a - b, rune)
            case '*':
                return make_int(a * b, rune)
            case '/':
                if b == 0:
                    raise ConstError("division by zero")
                return make_int(_trunc_div(a, b), rune)
            case '%':
                if b == 0:
                    raise ConstError("division by zero")
                return make_int(_trunc_rem(a, b), rune)
            case '&':
                return make_int(a & b, rune)
            case '|':
                return make_int(a | b, rune)
            case '^':
                return make_int(a ^ b, rune)
            case '&^':
                return make_int(a & ~b, rune)

    if kind == ConstKind.FLOAT:
        a, b = x.value, y.value
        match op:
            case '+':
                return make_float(a + b)
            case '-':
                return make_float(a - b)
            case '*':
                return make_float(a * b)
            case '/':
                if b == 0:
                    raise ConstError("division by zero")
                return make_float(a / b)

    if kind == ConstKind.COMPLEX:
        (ar, ai), (br, bi) = x.value, y.value
        match op:
            case '+':
                return make_complex(ar + br, ai + bi)
            case '-':
                return make_complex(ar - br, ai - bi)
            case '*':
                return make_complex(ar * br - ai * bi, ar * bi + ai * br)
            case '/':
                denom = br * br + bi * bi
                if denom == 0:
                    raise ConstError("division by zero")
                return make_complex((ar * br + ai * bi) / denom, (ai * br - ar * bi) / denom)

    raise ConstError(f"operator {op} not defined on untyped {kind}")

def _kind_name(x: Const, y: Const) -> str:
    return str(x.kind) if x.kind == y.kind else f"{x.kind} and {y.kind}"

def compare(x: Const, op: str, y: Const) -> bool:
    if x.kind == ConstKind.BOOL or y.kind == ConstKind.BOOL:
        if x.kind != y.kind:
            raise ConstError("mismatched constant kinds")
        if op not in ('==', '!='):
            raise ConstError(f"operator {op} not defined on bool")
        return (x.value == y.value) == (op == '==')

    if x.kind == ConstKind.STRING or y.kind == ConstKind.STRING:
        if x.kind != y.kind:
            raise ConstError("mismatched constant kinds")
        a, b = x.value.encode('utf-8', 'surrogateescape'), y.value.encode('utf-8', 'surrogateescape')
    else:
        x, y = match_kinds(x, y)
        a, b = x.value, y.value
        if x.kind == ConstKind.COMPLEX:
            if op not in ('==', '!='):
                raise ConstError(f"operator {op} not defined on complex")

    match op:
        case '==':
            return a == b
        case '!=':
            return a != b
        case '<':
            return a < b
        case '<=':
            return a <= b
        case '>':
            return a > b
        case '>=':
            return a >= b

    raise ConstError(f"unknown comparison operator {op}")

def shift(x: Const, op: str, n: int) -> Const:
    v = int_val(x)
    if v is None:
        raise ConstError("shifted operand must be integer")
    rune = x.kind == ConstKind.RUNE
    return make_int(v << n if op == '<<' else v >> n, rune)

def unary_op(op: str, x: Const, unsigned_bits: int = 0) -> Const:
    """Unary operator; `unsigned_bits` gives the width for ^x on unsigned typed constants."""
    match op:
        case '+':
            if not x.is_numeric:
                raise ConstError(f"operator + not defined on {x.kind}")
            return x
        case '-':
            if x.kind in (ConstKind.INT, ConstKind.RUNE):
                return make_int(-x.value, x.kind == ConstKind.RUNE)
            if x.kind == ConstKind.FLOAT:
                return make_float(-x.value)
            if x.kind == ConstKind.COMPLEX:
                return make_complex(-x.value[0], -x.value[1])
            raise ConstError(f"operator - not defined on {x.kind}")
        case '!':
            if x.kind != ConstKind.BOOL:
                raise ConstError(f"operator ! not defined on {x.kind}")
            return make_bool(not x.value)
        case '^':
            v = int_val(x) if x.kind in (ConstKind.INT, ConstKind.RUNE) else None
            if v is None:
                raise ConstError(f"operator ^ not defined on {x.kind}")
            if unsigned_bits:
                return make_int(v ^ ((1 << unsigned_bits) - 1), x.kind == ConstKind.RUNE)
            return make_int(~v, x.kind == ConstKind.RUNE)

    raise ConstError(f"unknown unary operator {op}")

# ---------------- representation ----------------

FLOAT32_MAX = Fraction(struct.unpack('<f', b'\xff\xff\x7f\x7f')[0])
FLOAT64_MAX = Fraction(1.7976931348623157e308)

def round_float32(x: float) -> float:
    """Round a Python float to the nearest float32, overflowing to infinity."""
    if math.isnan(x) or math.isinf(x):
        return x
    try:
        return struct.unpack('<f', struct.pack('<f', x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)

def round_fraction(f: Fraction, bits: int) -> Optional[float]:
    """Round an exact value to float32/float64; None on overflow."""
    limit = FLOAT32_MAX if bits == 32 else FLOAT64_MAX
    if abs(f) > limit:
        # values that still round down to the max finite value are fine
        v = _fraction_to_float(f)
        if math.isinf(v):
            return None
        if bits == 32:
            v = round_float32(v)
        return None if math.isinf(v) else v

    v = float(f)
    if bits == 32:
        v = round_float32(v)
        if math.isinf(v):
            return None
    return v

def int_range(bits: int, signed: bool) -> Tuple[int, int]:
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1

def format_const(c: Const) -> str:
    """Go-source style rendering of an exact constant."""
    if c.kind == ConstKind.BOOL:
        return "true" if c.value else "false"
    if c.kind == ConstKind.STRING:
        return go_quote(c.value)
    if c.kind in (ConstKind.INT, ConstKind.RUNE):
        return str(c.value)
    if c.kind == ConstKind.FLOAT:
        return _format_fraction(c.value)
    re, im = c.value
    return f"({_format_fraction(re)} + {_format_fraction(im)}i)"

def _format_fraction(f: Fraction) -> str:
    if f.denominator == 1:
        return str(f.numerator)
    v = _fraction_to_float(f)
    return repr(v) if not math.isinf(v) else ("+Inf" if v > 0 else "-Inf")

def go_quote(s: str) -> str:
    """strconv.Quote over the bytes the string holds."""
    out = ['"']
    for ch in s:
        cp = ord(ch)
        if 0xDC80 <= cp <= 0xDCFF:
            out.append(f"\\x{cp - 0xDC00:02x}")
        elif ch == '"':
            out.append('\\"')
        elif ch == '\\':
            out.append('\\\\')
        elif ch == '\n':
            out.append('\\n')
        elif ch == '\t':
            out.append('\\t')
        elif ch == '\r':
            out.append('\\r')
        elif cp < 0x20 or cp == 0x7F:
            out.append(f"\\x{cp:02x}")
        elif not ch.isprintable():
            out.append(f"\\u{cp:04x}" if cp <= 0xFFFF else f"\\U{cp:08x}")
        else:
            out.append(ch)
    out.append('"')
    return ''.join(out)
