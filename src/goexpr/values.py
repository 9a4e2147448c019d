"""Runtime Go values.

A GoValue pairs a type with raw storage. Addressable values read and
write their raw storage through a cell, so element and field handles
observe later writes. Arrays and structs are Python lists and are copied
whenever a value is read out of its storage.
"""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .gotypes import (
    GoType,
    Kind,
    any_t,
    bool_t,
    complex128_t,
    float64_t,
    int_t,
    string_t,
    uint8_t,
    func_of,
    map_of,
    slice_of,
    ptr_to,
)
from .constants import round_float32

# ---------------- storage ----------------

class Cell:
    def get(self) -> Any:
        raise NotImplementedError

    def set(self, raw: Any) -> None:
        raise NotImplementedError

    def address(self) -> tuple:
        raise NotImplementedError


class VarCell(Cell):
    """A variable: storage that exists on its own."""
    __slots__ = ('value',)

    def __init__(self, value: Any = None):
        self.value = value

    def get(self) -> Any:
        return self.value

    def set(self, raw: Any) -> None:
        self.value = raw

    def address(self) -> tuple:
        return (id(self),)


class ItemCell(Cell):
    """Slot `index` of a backing list (array element, struct field, slice element)."""
    __slots__ = ('items', 'index')

    def __init__(self, items: List[Any], index: int):
        self.items = items
        self.index = index

    def get(self) -> Any:
        return self.items[self.index]

    def set(self, raw: Any) -> None:
        self.items[self.index] = raw

    def address(self) -> tuple:
        return (id(self.items), self.index)


class Pointer:
    """Non-nil pointer raw value; pointers are equal when they address the same storage."""
    __slots__ = ('cell',)

    def __init__(self, cell: Cell):
        self.cell = cell

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Pointer) and self.cell.address() == other.cell.address()

    def __hash__(self) -> int:
        return hash(self.cell.address())

    def __repr__(self) -> str:
        return f"Pointer(0x{abs(hash(self.cell.address())) & 0xffffffffffff:x})"


@dataclass
class SliceRaw:
    array: List[Any]
    offset: int
    length: int
    cap: int

    def items(self) -> List[Any]:
        return self.array[self.offset:self.offset + self.length]


@dataclass
class MapRaw:
    # hash key -> [key raw, elem raw]
    entries: Dict[Any, List[Any]] = field(default_factory=dict)


@dataclass
class FuncRaw:
    fn: Callable[..., Any]
    name: str = ''


@dataclass
class ChanRaw:
    cap: int = 0
    buffer: deque = field(default_factory=deque)
    closed: bool = False


class GoValue:
    __slots__ = ('type', '_raw', 'cell')

    def __init__(self, type: GoType, raw: Any = None, cell: Optional[Cell] = None):
        self.type = type
        self._raw = raw
        self.cell = cell

    @property
    def raw(self) -> Any:
        return self.cell.get() if self.cell is not None else self._raw

    @property
    def kind(self) -> Kind:
        return self.type.kind

    @property
    def addressable(self) -> bool:
        return self.cell is not None

    def set(self, raw: Any) -> None:
        if self.cell is None:
            raise ValueError("value is not addressable")
        self.cell.set(raw)

    def is_nil(self) -> bool:
        return self.type.is_nilable() and self.raw is None

    def copy(self) -> GoValue:
        """Non-addressable snapshot of the current value."""
        return GoValue(self.type, copy_raw(self.type, self.raw))

    def __repr__(self) -> str:
        return f"GoValue({self.type}, {self.raw!r})"

# ---------------- raw helpers ----------------

def zero_raw(t: GoType) -> Any:
    k = t.kind
    if k == Kind.BOOL:
        return False
    if t.is_integer():
        return 0
    if t.is_float():
        return 0.0
    if t.is_complex():
        return 0j
    if k == Kind.STRING:
        return ''
    if k == Kind.ARRAY:
        return [zero_raw(t.elem) for _ in range(t.length)]
    if k == Kind.STRUCT:
        return [zero_raw(f.type) for f in t.fields]
    return None

def zero_value(t: GoType) -> GoValue:
    return GoValue(t, zero_raw(t))

def copy_raw(t: GoType, raw: Any) -> Any:
    """Deep-copy the value parts of raw (arrays and structs); references stay shared."""
    k = t.kind
    if k == Kind.ARRAY:
        return [copy_raw(t.elem, r) for r in raw]
    if k == Kind.STRUCT:
        return [copy_raw(f.type, r) for f, r in zip(t.fields, raw)]
    return raw

def wrap_int(t: GoType, n: int) -> int:
    """Two's complement wraparound to t's width."""
    bits = t.bits
    n &= (1 << bits) - 1
    if not t.is_unsigned() and n >> (bits - 1):
        n -= 1 << bits
    return n

def round_float(t: GoType, x: float) -> float:
    return round_float32(x) if t.kind == Kind.FLOAT32 else x

def round_complex(t: GoType, z: complex) -> complex:
    if t.kind == Kind.COMPLEX64:
        return complex(round_float32(z.real), round_float32(z.imag))
    return z

def string_bytes(s: str) -> bytes:
    return s.encode('utf-8', 'surrogateescape')

def bytes_string(b: bytes | bytearray | Sequence[int]) -> str:
    return bytes(b).decode('utf-8', 'surrogateescape')

def string_runes(s: str) -> List[int]:
    """Code points of s, decoding invalid UTF-8 bytes as U+FFFD."""
    return [ord(ch) for ch in string_bytes(s).decode('utf-8', 'replace')]

def rune_string(code: int) -> str:
    if code < 0 or code > 0x10FFFF or 0xD800 <= code < 0xE000:
        return '�'
    return chr(code)

def hash_key(t: GoType, raw: Any) -> Any:
    """Hashable identity of a comparable raw value, used for map keys."""
    k = t.kind
    if k == Kind.ARRAY:
        return tuple(hash_key(t.elem, r) for r in raw)
    if k == Kind.STRUCT:
        return tuple(hash_key(f.type, r) for f, r in zip(t.fields, raw))
    if k == Kind.INTERFACE:
        if raw is None:
            return None
        return (raw.type, hash_key(raw.type, raw.raw))
    if k == Kind.CHAN:
        return id(raw) if raw is not None else None
    if t.is_float() and isinstance(raw, float) and math.isnan(raw):
        # NaN keys never match each other
        return object()
    return raw

def raw_equal(t: GoType, a: Any, b: Any) -> bool:
    """Go == on two raw values of type t (t must be comparable)."""
    k = t.kind
    if k == Kind.ARRAY:
        return all(raw_equal(t.elem, x, y) for x, y in zip(a, b))
    if k == Kind.STRUCT:
        return all(raw_equal(f.type, x, y) for f, x, y in zip(t.fields, a, b))
    if k == Kind.INTERFACE:
        if a is None or b is None:
            return a is None and b is None
        if a.type != b.type:
            return False
        if not a.type.comparable():
            from .types import RuntimePanic
            raise RuntimePanic(f"runtime error: comparing uncomparable type {a.type}")
        return raw_equal(a.type, a.raw, b.raw)
    if k == Kind.CHAN:
        return a is b
    if k in (Kind.SLICE, Kind.MAP, Kind.FUNC):
        return a is None and b is None
    return a == b

# ---------------- element access ----------------

def deref(v: GoValue) -> GoValue:
    """Pointee of a non-nil pointer, addressable."""
    p = v.raw
    if p is None:
        from .types import RuntimePanic
        raise RuntimePanic("runtime error: invalid memory address or nil pointer dereference")
    return GoValue(v.type.elem, cell=p.cell)

def struct_field(v: GoValue, index: int) -> GoValue:
    ft = v.type.fields[index].type
    if v.addressable:
        return GoValue(ft, cell=ItemCell(v.raw, index))
    return GoValue(ft, copy_raw(ft, v.raw[index]))

def field_by_path(v: GoValue, path: Sequence[int]) -> GoValue:
    """Follow an index path through embedded structs (and embedded pointers)."""
    for depth, i in enumerate(path):
        if depth:
            if v.kind == Kind.POINTER:
                v = deref(v)
        v = struct_field(v, i)
    return v

def array_elem(v: GoValue, i: int) -> GoValue:
    et = v.type.elem
    if v.addressable:
        return GoValue(et, cell=ItemCell(v.raw, i))
    return GoValue(et, copy_raw(et, v.raw[i]))

def slice_elem(v: GoValue, i: int) -> GoValue:
    raw: SliceRaw = v.raw
    return GoValue(v.type.elem, cell=ItemCell(raw.array, raw.offset + i))

def address_of(v: GoValue) -> GoValue:
    if v.cell is None:
        raise ValueError("value is not addressable")
    return GoValue(ptr_to(v.type), Pointer(v.cell))

def new_var(t: GoType, raw: Any = None) -> GoValue:
    """Fresh addressable variable of type t (zero value unless raw is given)."""
    return GoValue(t, cell=VarCell(zero_raw(t) if raw is None else raw))

def value_of(t: GoType, raw: Any) -> GoValue:
    return GoValue(t, raw)

def box(v: GoValue, iface: GoType = any_t) -> GoValue:
    """Store a concrete value (or re-box an interface value) in an interface."""
    if v.kind == Kind.INTERFACE:
        return GoValue(iface, v.raw)
    return GoValue(iface, v.copy())

def len_of(v: GoValue) -> int:
    k = v.kind
    raw = v.raw
    if k == Kind.STRING:
        return len(string_bytes(raw))
    if k == Kind.ARRAY:
        return v.type.length
    if k == Kind.POINTER and v.type.elem.kind == Kind.ARRAY:
        return v.type.elem.length
    if raw is None:
        return 0
    if k == Kind.SLICE:
        return raw.length
    if k == Kind.MAP:
        return len(raw.entries)
    if k == Kind.CHAN:
        return len(raw.buffer)
    raise TypeError(f"len of {v.type}")

def cap_of(v: GoValue) -> int:
    k = v.kind
    raw = v.raw
    if k == Kind.ARRAY:
        return v.type.length
    if k == Kind.POINTER and v.type.elem.kind == Kind.ARRAY:
        return v.type.elem.length
    if raw is None:
        return 0
    if k == Kind.SLICE:
        return raw.cap
    if k == Kind.CHAN:
        return raw.cap
    raise TypeError(f"cap of {v.type}")

def make_slice(t: GoType, items: List[Any], cap: Optional[int] = None) -> GoValue:
    cap = len(items) if cap is None else cap
    array = list(items) + [zero_raw(t.elem) for _ in range(cap - len(items))]
    return GoValue(t, SliceRaw(array, 0, len(items), cap))

def make_chan(t: GoType, cap: int = 0) -> GoValue:
    return GoValue(t, ChanRaw(cap=cap))

def make_func(t: GoType, fn: Callable[..., Any], name: str = '') -> GoValue:
    """Func value; fn takes GoValue arguments and returns a list of GoValue results."""
    return GoValue(t, FuncRaw(fn, name))

# ---------------- Python interop ----------------

def infer_type(obj: Any) -> GoType:
    if isinstance(obj, GoValue):
        return obj.type
    if isinstance(obj, bool):
        return bool_t
    if isinstance(obj, int):
        return int_t
    if isinstance(obj, float):
        return float64_t
    if isinstance(obj, complex):
        return complex128_t
    if isinstance(obj, str):
        return string_t
    if isinstance(obj, (bytes, bytearray)):
        return slice_of(uint8_t)
    if isinstance(obj, (list, tuple)):
        elem_types = {infer_type(x) for x in obj}
        return slice_of(elem_types.pop() if len(elem_types) == 1 else any_t)
    if isinstance(obj, dict):
        key_types = {infer_type(k) for k in obj}
        elem_types = {infer_type(x) for x in obj.values()}
        kt = key_types.pop() if len(key_types) == 1 else any_t
        et = elem_types.pop() if len(elem_types) == 1 else any_t
        return map_of(kt, et)
    raise TypeError(f"cannot infer a Go type for {type(obj).__name__}")

def from_python(obj: Any, t: Optional[GoType] = None) -> GoValue:
    """Build a GoValue from plain Python data, inferring the type when t is None."""
    if isinstance(obj, GoValue):
        if t is None or obj.type == t:
            return obj
        if t.kind == Kind.INTERFACE:
            return box(obj, t)
        raise TypeError(f"cannot use value of type {obj.type} as {t}")

    if t is None:
        t = infer_type(obj)

    return GoValue(t, _raw_from_python(obj, t))

def _raw_from_python(obj: Any, t: GoType) -> Any:
    if isinstance(obj, GoValue):
        if t.kind == Kind.INTERFACE:
            return obj.copy() if obj.kind != Kind.INTERFACE else obj.raw
        return copy_raw(t, obj.raw)

    k = t.kind
    if obj is None:
        if t.is_nilable():
            return None
        raise TypeError(f"cannot use None as {t}")

    if k == Kind.BOOL:
        return bool(obj)
    if t.is_integer():
        return wrap_int(t, int(obj))
    if t.is_float():
        return round_float(t, float(obj))
    if t.is_complex():
        return round_complex(t, complex(obj))
    if k == Kind.STRING:
        return bytes_string(obj) if isinstance(obj, (bytes, bytearray)) else str(obj)
    if k == Kind.INTERFACE:
        return from_python(obj)
    if k == Kind.ARRAY:
        items = list(obj)
        if len(items) > t.length:
            raise TypeError(f"too many elements for {t}")
        return [_raw_from_python(x, t.elem) for x in items] + [zero_raw(t.elem) for _ in range(t.length - len(items))]
    if k == Kind.SLICE:
        items = [_raw_from_python(x, t.elem) for x in obj]
        return SliceRaw(items, 0, len(items), len(items))
    if k == Kind.MAP:
        raw = MapRaw()
        for key, elem in obj.items():
            kr = _raw_from_python(key, t.key)
            raw.entries[hash_key(t.key, kr)] = [kr, _raw_from_python(elem, t.elem)]
        return raw
    if k == Kind.STRUCT:
        if isinstance(obj, dict):
            return [
                _raw_from_python(obj[f.name], f.type) if f.name in obj else zero_raw(f.type)
                for f in t.fields
            ]
        return [_raw_from_python(x, f.type) for f, x in zip(t.fields, obj)]
    if k == Kind.POINTER:
        return Pointer(VarCell(_raw_from_python(obj, t.elem)))
    if k == Kind.FUNC and callable(obj):
        return FuncRaw(_wrap_py_callable(obj, t), getattr(obj, '__name__', ''))
    if k == Kind.CHAN:
        return ChanRaw(cap=len(obj), buffer=deque(_raw_from_python(x, t.elem) for x in obj))
    raise TypeError(f"cannot convert {type(obj).__name__} to {t}")

def to_python(v: GoValue) -> Any:
    """Plain Python view of a GoValue (copies; pointers are followed)."""
    return _raw_to_python(v.type, v.raw)

def _raw_to_python(t: GoType, raw: Any) -> Any:
    k = t.kind
    if k == Kind.BOOL or t.is_numeric() or k == Kind.STRING:
        return raw
    if k == Kind.INTERFACE:
        return None if raw is None else to_python(raw)
    if raw is None:
        return None
    if k == Kind.ARRAY:
        return [_raw_to_python(t.elem, r) for r in raw]
    if k == Kind.SLICE:
        return [_raw_to_python(t.elem, r) for r in raw.items()]
    if k == Kind.MAP:
        out = {}
        for kr, er in raw.entries.values():
            key = _raw_to_python(t.key, kr)
            if isinstance(key, (list, dict)):
                key = repr(key)
            out[key] = _raw_to_python(t.elem, er)
        return out
    if k == Kind.STRUCT:
        return {f.name: _raw_to_python(f.type, r) for f, r in zip(t.fields, raw)}
    if k == Kind.POINTER:
        return _raw_to_python(t.elem, raw.cell.get())
    if k == Kind.FUNC:
        return _go_callable(t, raw)
    if k == Kind.CHAN:
        return [_raw_to_python(t.elem, r) for r in raw.buffer]
    return raw

def _wrap_py_callable(fn: Callable[..., Any], t: GoType) -> Callable[..., List[GoValue]]:
    def call(*args: GoValue) -> List[GoValue]:
        result = fn(*[to_python(a) for a in args])
        if not t.results:
            return []
        if len(t.results) == 1:
            return [from_python(result, t.results[0])]
        return [from_python(r, rt) for r, rt in zip(result, t.results)]

    return call

def _go_callable(t: GoType, raw: FuncRaw) -> Callable[..., Any]:
    def call(*args: Any) -> Any:
        params = list(t.params)
        if t.variadic:
            fixed = params[:-1]
            go_args = [from_python(a, p) for a, p in zip(args, fixed)]
            go_args.append(from_python(list(args[len(fixed):]), params[-1]))
        else:
            go_args = [from_python(a, p) for a, p in zip(args, params)]
        results = raw.fn(*go_args)
        out = [to_python(r) for r in results]
        if len(out) == 1:
            return out[0]
        return tuple(out) if out else None

    call.__name__ = raw.name or 'func'
    return call

def py_func(fn: Callable[..., Any], params: Sequence[GoType], results: Sequence[GoType] = (), variadic: bool = False, name: str = '') -> GoValue:
    """Wrap a plain Python function as a Go func value.

    Arguments reach fn as Python values (to_python); its return value is
    converted back to the declared result types.
    """
    t = func_of(params, results, variadic)
    return GoValue(t, FuncRaw(_wrap_py_callable(fn, t), name or getattr(fn, '__name__', '')))

