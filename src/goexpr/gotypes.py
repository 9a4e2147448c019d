"""Runtime Go type descriptors.

Named types compare by identity; unnamed (type-literal) types compare
structurally. Builders raise TypeBuildError for types Go would reject;
the evaluator turns that into a positioned TypeConstructionError.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple


class Kind(Enum):
    BOOL = 'bool'
    INT = 'int'
    INT8 = 'int8'
    INT16 = 'int16'
    INT32 = 'int32'
    INT64 = 'int64'
    UINT = 'uint'
    UINT8 = 'uint8'
    UINT16 = 'uint16'
    UINT32 = 'uint32'
    UINT64 = 'uint64'
    UINTPTR = 'uintptr'
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    COMPLEX64 = 'complex64'
    COMPLEX128 = 'complex128'
    STRING = 'string'
    ARRAY = 'array'
    SLICE = 'slice'
    MAP = 'map'
    POINTER = 'ptr'
    FUNC = 'func'
    CHAN = 'chan'
    STRUCT = 'struct'
    INTERFACE = 'interface'

    def __str__(self) -> str:
        return self.value


class ChanDir(Enum):
    RECV = 1
    SEND = 2
    BOTH = 3


INT_BITS = {
    Kind.INT: 64, Kind.INT8: 8, Kind.INT16: 16, Kind.INT32: 32, Kind.INT64: 64,
    Kind.UINT: 64, Kind.UINT8: 8, Kind.UINT16: 16, Kind.UINT32: 32, Kind.UINT64: 64,
    Kind.UINTPTR: 64,
}
SIGNED_KINDS = {Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64}
FLOAT_KINDS = {Kind.FLOAT32, Kind.FLOAT64}
COMPLEX_KINDS = {Kind.COMPLEX64, Kind.COMPLEX128}
NILABLE_KINDS = {Kind.POINTER, Kind.SLICE, Kind.MAP, Kind.CHAN, Kind.FUNC, Kind.INTERFACE}


class TypeBuildError(Exception):
    """A type Go would refuse to construct (bad map key, duplicate field, ...)."""


@dataclass(frozen=True)
class StructField:
    name: str
    type: 'GoType'
    pkg_path: str = ''
    tag: str = ''
    embedded: bool = False

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    def visible_from(self, pkg_path: str) -> bool:
        return self.exported or self.pkg_path == pkg_path


@dataclass
class Method:
    name: str
    type: 'GoType'  # func type without the receiver
    fn: Callable[..., Any]
    pointer_receiver: bool = False


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


_serial = itertools.count(1)


class GoType:
    __slots__ = (
        'kind', 'name', 'pkg_path', 'elem', 'key', 'length', 'fields', 'params',
        'results', 'variadic', 'chan_dir', 'imethods', 'methods', 'serial',
        '_underlying', '_key_cache',
    )

    def __init__(
        self,
        kind: Kind,
        *,
        name: str = '',
        pkg_path: str = '',
        elem: Optional[GoType] = None,
        key: Optional[GoType] = None,
        length: int = 0,
        fields: Sequence[StructField] = (),
        params: Sequence[GoType] = (),
        results: Sequence[GoType] = (),
        variadic: bool = False,
        chan_dir: ChanDir = ChanDir.BOTH,
        imethods: Sequence[Tuple[str, GoType]] = (),
        underlying: Optional[GoType] = None,
    ):
        self.kind = kind
        self.name = name
        self.pkg_path = pkg_path
        self.elem = elem
        self.key = key
        self.length = length
        self.fields = tuple(fields)
        self.params = tuple(params)
        self.results = tuple(results)
        self.variadic = variadic
        self.chan_dir = chan_dir
        self.imethods = tuple(sorted(imethods, key=lambda m: m[0]))
        self.methods: Dict[str, Method] = {}
        self.serial = next(_serial) if name else 0
        self._underlying = underlying
        self._key_cache: Optional[tuple] = None

    # ---------- identity ----------

    def _key(self) -> tuple:
        if self._key_cache is None:
            fields = tuple(
                (f.name, f.type, '' if f.exported else f.pkg_path, f.tag, f.embedded)
                for f in self.fields
            )
            self._key_cache = (
                self.kind, self.elem, self.key, self.length, fields, self.params,
                self.results, self.variadic, self.chan_dir, self.imethods,
            )
        return self._key_cache

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GoType):
            return NotImplemented
        if self is other:
            return True
        if self.name or other.name:
            return False
        return self._key() == other._key()

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        if self.name:
            return hash(('named', self.serial))
        return hash(self._key())

    def __repr__(self) -> str:
        return f"GoType({self})"

    def __str__(self) -> str:
        if self.name:
            if self.pkg_path:
                return f"{self.pkg_path.rsplit('/', 1)[-1]}.{self.name}"
            return self.name
        return self.literal()

    def literal(self) -> str:
        """Type-literal spelling, ignoring the name."""
        k = self.kind
        if k == Kind.ARRAY:
            return f"[{self.length}]{self.elem}"
        if k == Kind.SLICE:
            return f"[]{self.elem}"
        if k == Kind.MAP:
            return f"map[{self.key}]{self.elem}"
        if k == Kind.POINTER:
            return f"*{self.elem}"
        if k == Kind.CHAN:
            if self.chan_dir == ChanDir.RECV:
                return f"<-chan {self.elem}"
            if self.chan_dir == ChanDir.SEND:
                return f"chan<- {self.elem}"
            if self.elem.kind == Kind.CHAN and self.elem.chan_dir == ChanDir.RECV and not self.elem.name:
                return f"chan ({self.elem})"
            return f"chan {self.elem}"
        if k == Kind.FUNC:
            return "func" + self.signature()
        if k == Kind.STRUCT:
            if not self.fields:
                return "struct {}"
            parts = []
            for f in self.fields:
                s = str(f.type) if f.embedded else f"{f.name} {f.type}"
                if f.tag:
                    s += ' "' + f.tag.replace('\\', '\\\\').replace('"', '\\"') + '"'
                parts.append(s)
            return "struct { " + "; ".join(parts) + " }"
        if k == Kind.INTERFACE:
            if not self.imethods:
                return "interface {}"
            return "interface { " + "; ".join(f"{n}{t.signature()}" for n, t in self.imethods) + " }"
        return k.value

    def signature(self) -> str:
        params = []
        for i, p in enumerate(self.params):
            if self.variadic and i == len(self.params) - 1:
                params.append(f"...{p.elem}")
            else:
                params.append(str(p))
        s = "(" + ", ".join(params) + ")"
        if len(self.results) == 1:
            s += f" {self.results[0]}"
        elif self.results:
            s += " (" + ", ".join(str(r) for r in self.results) + ")"
        return s

    # ---------- classification ----------

    def underlying(self) -> GoType:
        return self._underlying if self._underlying is not None else self

    def is_integer(self) -> bool:
        return self.kind in INT_BITS

    def is_unsigned(self) -> bool:
        return self.kind in INT_BITS and self.kind not in SIGNED_KINDS

    def is_float(self) -> bool:
        return self.kind in FLOAT_KINDS

    def is_complex(self) -> bool:
        return self.kind in COMPLEX_KINDS

    def is_numeric(self) -> bool:
        return self.is_integer() or self.is_float() or self.is_complex()

    def is_string(self) -> bool:
        return self.kind == Kind.STRING

    def is_bool(self) -> bool:
        return self.kind == Kind.BOOL

    def is_basic(self) -> bool:
        return self.is_numeric() or self.is_string() or self.is_bool()

    def is_interface(self) -> bool:
        return self.kind == Kind.INTERFACE

    def is_nilable(self) -> bool:
        return self.kind in NILABLE_KINDS

    def is_ordered(self) -> bool:
        return self.is_integer() or self.is_float() or self.is_string()

    @property
    def bits(self) -> int:
        if self.kind in INT_BITS:
            return INT_BITS[self.kind]
        if self.kind in (Kind.FLOAT32, Kind.COMPLEX64):
            return 32
        return 64

    def comparable(self) -> bool:
        k = self.kind
        if k in (Kind.SLICE, Kind.MAP, Kind.FUNC):
            return False
        if k == Kind.ARRAY:
            return self.elem.comparable()
        if k == Kind.STRUCT:
            return all(f.type.comparable() for f in self.fields)
        return True

    # ---------- methods ----------

    def method_by_name(self, name: str) -> Optional[Method]:
        """Method in this type's method set (value receivers only for non-pointers)."""
        if self.kind == Kind.POINTER:
            base = self.elem
            if base is not None and base.name and base.kind not in (Kind.POINTER, Kind.INTERFACE):
                return base.methods.get(name)
            return None

        m = self.methods.get(name)
        if m is None or m.pointer_receiver:
            return None
        return m

    def method_set(self) -> Dict[str, GoType]:
        if self.kind == Kind.INTERFACE:
            return dict(self.imethods)

        if self.kind == Kind.POINTER:
            base = self.elem
            if base is not None and base.name and base.kind not in (Kind.POINTER, Kind.INTERFACE):
                return {n: m.type for n, m in base.methods.items()}
            return {}

        return {n: m.type for n, m in self.methods.items() if not m.pointer_receiver}

    def missing_method(self, iface: GoType) -> Optional[str]:
        mset = self.method_set()
        for name, sig in iface.underlying().imethods:
            have = mset.get(name)
            if have is None or have != sig:
                return name
        return None

    def implements(self, iface: GoType) -> bool:
        if iface.kind != Kind.INTERFACE:
            return False
        return self.missing_method(iface) is None

    # ---------- assignability / convertibility ----------

    def assignable_to(self, t: GoType) -> bool:
        if self == t:
            return True

        vu, tu = self.underlying(), t.underlying()
        if vu == tu and (not self.name or not t.name) and self.kind != Kind.INTERFACE:
            return True

        if t.kind == Kind.INTERFACE and self.implements(t):
            return True

        if (self.kind == Kind.CHAN and t.kind == Kind.CHAN and self.chan_dir == ChanDir.BOTH
                and self.elem == t.elem and (not self.name or not t.name)):
            return True

        return False

    def convertible_to(self, t: GoType) -> bool:
        if self.assignable_to(t):
            return True

        vu, tu = self.underlying(), t.underlying()
        if _identical_ignoring_tags(vu, tu):
            return True

        if (self.kind == Kind.POINTER and t.kind == Kind.POINTER and not self.name and not t.name
                and _identical_ignoring_tags(self.elem.underlying(), t.elem.underlying())):
            return True

        if (self.is_integer() or self.is_float()) and (t.is_integer() or t.is_float()):
            return True
        if self.is_complex() and t.is_complex():
            return True

        if t.is_string() and (self.is_integer() or _is_bytes_or_runes(self)):
            return True
        if self.is_string() and _is_bytes_or_runes(t):
            return True

        if self.kind == Kind.SLICE and t.kind == Kind.ARRAY and self.elem == t.elem:
            return True

        return False


def _identical_ignoring_tags(a: GoType, b: GoType) -> bool:
    if a == b:
        return True
    if a.kind != Kind.STRUCT or b.kind != Kind.STRUCT or a.name or b.name:
        return False
    if len(a.fields) != len(b.fields):
        return False
    return all(
        fa.name == fb.name and fa.type == fb.type and fa.embedded == fb.embedded
        for fa, fb in zip(a.fields, b.fields)
    )

def _is_bytes_or_runes(t: GoType) -> bool:
    u = t.underlying()
    return u.kind == Kind.SLICE and u.elem.underlying().kind in (Kind.UINT8, Kind.INT32)

# ---------------- predeclared types ----------------

def _basic(kind: Kind) -> GoType:
    return GoType(kind, name=kind.value)

bool_t = _basic(Kind.BOOL)
int_t = _basic(Kind.INT)
int8_t = _basic(Kind.INT8)
int16_t = _basic(Kind.INT16)
int32_t = _basic(Kind.INT32)
int64_t = _basic(Kind.INT64)
uint_t = _basic(Kind.UINT)
uint8_t = _basic(Kind.UINT8)
uint16_t = _basic(Kind.UINT16)
uint32_t = _basic(Kind.UINT32)
uint64_t = _basic(Kind.UINT64)
uintptr_t = _basic(Kind.UINTPTR)
float32_t = _basic(Kind.FLOAT32)
float64_t = _basic(Kind.FLOAT64)
complex64_t = _basic(Kind.COMPLEX64)
complex128_t = _basic(Kind.COMPLEX128)
string_t = _basic(Kind.STRING)

byte_t = uint8_t
rune_t = int32_t

any_t = GoType(Kind.INTERFACE)
error_t = GoType(
    Kind.INTERFACE,
    name='error',
    imethods=[('Error', GoType(Kind.FUNC, results=[string_t]))],
    underlying=GoType(Kind.INTERFACE, imethods=[('Error', GoType(Kind.FUNC, results=[string_t]))]),
)

BUILTIN_TYPES: Dict[str, GoType] = {
    'bool': bool_t,
    'byte': byte_t,
    'complex64': complex64_t,
    'complex128': complex128_t,
    'error': error_t,
    'float32': float32_t,
    'float64': float64_t,
    'int': int_t,
    'int8': int8_t,
    'int16': int16_t,
    'int32': int32_t,
    'int64': int64_t,
    'rune': rune_t,
    'string': string_t,
    'uint': uint_t,
    'uint8': uint8_t,
    'uint16': uint16_t,
    'uint32': uint32_t,
    'uint64': uint64_t,
    'uintptr': uintptr_t,
    'any': any_t,
}

# ---------------- builders ----------------

def ptr_to(t: GoType) -> GoType:
    return GoType(Kind.POINTER, elem=t)

def slice_of(t: GoType) -> GoType:
    return GoType(Kind.SLICE, elem=t)

def array_of(length: int, t: GoType) -> GoType:
    if length < 0:
        raise TypeBuildError("array length must be non-negative")
    return GoType(Kind.ARRAY, elem=t, length=length)

def map_of(key: GoType, elem: GoType) -> GoType:
    if not key.comparable():
        raise TypeBuildError(f"invalid map key type {key}")
    return GoType(Kind.MAP, key=key, elem=elem)

def chan_of(direction: ChanDir, elem: GoType) -> GoType:
    return GoType(Kind.CHAN, elem=elem, chan_dir=direction)

def func_of(params: Iterable[GoType], results: Iterable[GoType], variadic: bool = False) -> GoType:
    params = list(params)
    if variadic and (not params or params[-1].kind != Kind.SLICE):
        raise TypeBuildError("variadic function must have a final slice parameter")
    return GoType(Kind.FUNC, params=params, results=list(results), variadic=variadic)

def struct_of(fields: Iterable[StructField]) -> GoType:
    fields = list(fields)
    seen = set()
    for f in fields:
        if f.embedded:
            base = f.type.elem if f.type.kind == Kind.POINTER and not f.type.name else f.type
            if not base.name or base.kind == Kind.POINTER or (f.type is not base and base.kind == Kind.INTERFACE):
                raise TypeBuildError(f"embedded field type {f.type} must be a type name T or pointer to a non-interface type name *T")
        if f.name != '_' and f.name in seen:
            raise TypeBuildError(f"duplicate field {f.name}")
        seen.add(f.name)
    return GoType(Kind.STRUCT, fields=fields)

def interface_of(methods: Iterable[Tuple[str, GoType]] = ()) -> GoType:
    methods = list(methods)
    names = [n for n, _ in methods]
    if len(names) != len(set(names)):
        raise TypeBuildError("duplicate method in interface")
    return GoType(Kind.INTERFACE, imethods=methods)

def named_type(name: str, underlying: GoType, pkg_path: str = 'main') -> GoType:
    """Declare `type name underlying` in package pkg_path."""
    u = underlying.underlying()
    return GoType(
        u.kind,
        name=name,
        pkg_path=pkg_path,
        elem=u.elem,
        key=u.key,
        length=u.length,
        fields=u.fields,
        params=u.params,
        results=u.results,
        variadic=u.variadic,
        chan_dir=u.chan_dir,
        imethods=u.imethods,
        underlying=u,
    )

def add_method(t: GoType, name: str, sig: GoType, fn: Callable[..., Any], pointer_receiver: bool = False) -> Method:
    """Attach a method; fn receives the receiver GoValue followed by the arguments."""
    if not t.name or t.kind in (Kind.POINTER, Kind.INTERFACE):
        raise TypeBuildError(f"invalid receiver type {t}")
    if sig.kind != Kind.FUNC:
        raise TypeBuildError(f"method {name} signature must be a func type")
    if t.kind == Kind.STRUCT and any(f.name == name for f in t.fields):
        raise TypeBuildError(f"field and method with the same name {name}")
    m = Method(name=name, type=sig, fn=fn, pointer_receiver=pointer_receiver)
    t.methods[name] = m
    return m

# ---------------- struct fields ----------------

def field_index(t: GoType, name: str, pkg_path: str) -> Optional[List[int]]:
    """Index path of field `name`, searching embedded structs breadth-first.

    The shallowest depth with exactly one visible match wins; two matches
    at the same depth are ambiguous and count as not found.
    """
    level: List[Tuple[GoType, List[int]]] = [(t, [])]
    visited = set()

    while level:
        found: List[List[int]] = []
        next_level: List[Tuple[GoType, List[int]]] = []

        for st, path in level:
            if st in visited:
                continue
            visited.add(st)

            for i, f in enumerate(st.fields):
                if f.name == name and f.visible_from(pkg_path):
                    found.append(path + [i])
                if f.embedded:
                    ft = f.type.elem if f.type.kind == Kind.POINTER else f.type
                    if ft.kind == Kind.STRUCT:
                        next_level.append((ft, path + [i]))

        if len(found) == 1:
            return found[0]
        if found:
            return None
        level = next_level

    return None
