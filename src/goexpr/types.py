from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from typing_extensions import TypeAlias, TypeGuard

from .constants import Const
from .gotypes import GoType
from .values import GoValue

# ---------- Data (expression results) ----------

@dataclass
class Regular:
    value: GoValue

    def __repr__(self) -> str:
        return f"Regular({self.value!r})"

@dataclass(frozen=True)
class TypedConst:
    const: Const
    type: GoType

@dataclass(frozen=True)
class UntypedConst:
    const: Const

@dataclass(frozen=True)
class UntypedBool:
    value: bool

@dataclass(frozen=True)
class NilData:
    def __repr__(self) -> str:
        return "NilData()"

Data: TypeAlias = Regular | TypedConst | UntypedConst | UntypedBool | NilData

def is_const(d: Data) -> TypeGuard[TypedConst | UntypedConst]:
    return isinstance(d, (TypedConst, UntypedConst))

def data_type(d: Data) -> Optional[GoType]:
    """Static type of typed data; None for untyped data."""
    if isinstance(d, Regular):
        return d.value.type
    if isinstance(d, TypedConst):
        return d.type
    return None

# ---------- Value (evaluation results) ----------

@dataclass
class Datas:
    data: Data

@dataclass
class TypeValue:
    type: GoType

@dataclass
class Package:
    name: str
    members: Dict[str, 'Value'] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Package({self.name!r})"

@dataclass(frozen=True)
class BuiltinFunc:
    name: str

Value: TypeAlias = Datas | TypeValue | Package | BuiltinFunc

Args: TypeAlias = Dict[str, Value]

_VALUE_TYPES = (Datas, TypeValue, Package, BuiltinFunc)

def is_value(obj: object) -> TypeGuard[Value]:
    return isinstance(obj, _VALUE_TYPES)

class EvalContext:
    """Per-evaluation state: owning package path, bindings and optional source text."""

    def __init__(self, args: Optional[Args] = None, pkg_path: str = 'main', source: Optional[str] = None):
        self.args: Args = args if args is not None else {}
        self.pkg_path = pkg_path
        self.source = source

    def lookup(self, name: str) -> Optional[Value]:
        return self.args.get(name)

# ---------- Built-in function registry ----------

BuiltinFn = Callable[[List[Value], bool], Data]

@dataclass(frozen=True)
class BuiltinFunction:
    fn: BuiltinFn
    ellipsis_ok: bool = False

class Builtins:
    functions: Dict[str, BuiltinFunction] = {}

# ---------- Exceptions ----------

class GoEvalError(Exception):
    go_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.go_meta = None

    @property
    def line(self) -> Optional[int]:
        return getattr(self.go_meta, "line", None)

    @property
    def column(self) -> Optional[int]:
        return getattr(self.go_meta, "column", None)

    def no_pos(self) -> GoEvalError:
        """Mark the error as having no position; outer nodes will not attach one."""
        self.go_meta = None
        self._augmented = True  # type: ignore[attr-defined]
        return self

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        line = self.line
        col = self.column

        if line is None:
            return msg

        if col is None:
            return f"{msg} (line {line})"

        return f"{msg} (line {line}, col {col})"

class UndefinedIdentError(GoEvalError):
    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"undefined: {name}")
        self.name = name

class InvalidSelectorError(GoEvalError):
    pass

class UnsupportedError(GoEvalError):
    pass

class UnsupportedSyntaxError(UnsupportedError):
    pass

class InvalidLiteralError(GoEvalError):
    def __init__(self, text: str):
        super().__init__(f"invalid basic literal {text}")
        self.text = text

class NotCallableError(GoEvalError):
    pass

class ConversionEllipsisError(NotCallableError):
    pass

class IndirectionError(GoEvalError):
    pass

class ArrayBoundError(GoEvalError):
    pass

class NegativeArrayBoundError(ArrayBoundError):
    def __init__(self) -> None:
        super().__init__("invalid array length: array bound must be non-negative")

class IndexOpError(GoEvalError):
    pass

class IndexOutOfRangeError(IndexOpError):
    pass

class SliceTypeError(GoEvalError):
    pass

class SliceBoundsError(GoEvalError):
    pass

class CompositeLitError(GoEvalError):
    pass

class TypeAssertOperandError(GoEvalError):
    pass

class ImpossibleAssertionError(GoEvalError):
    pass

class AssertionFailedError(GoEvalError):
    pass

class StructTagError(GoEvalError):
    pass

class NotExprError(GoEvalError):
    pass

class NotTypeError(GoEvalError):
    pass

class ConversionError(GoEvalError):
    pass

class OperatorError(GoEvalError):
    pass

class CallError(GoEvalError):
    pass

class TypeConstructionError(GoEvalError):
    pass

class RuntimePanic(GoEvalError):
    pass

class InternalError(GoEvalError):
    pass
