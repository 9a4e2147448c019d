"""High-level API: parse once, evaluate against different bindings."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .constants import to_python as const_to_python
from .conversions import to_regular
from .evaluator import evaluate
from .gotypes import GoType
from .parser_rd import parse_expr
from .tree import Node
from .values import GoValue, from_python, to_python
from .types import (
    Args,
    Data,
    Datas,
    NotExprError,
    Package,
    Regular,
    TypedConst,
    TypeValue,
    UntypedBool,
    UntypedConst,
    NilData,
    Value,
    is_value,
)
from .utils import default_pkg_path, describe

def to_binding(obj: Any) -> Value:
    """Python object, GoValue or GoType as a binding Value."""
    if is_value(obj):
        return obj
    if isinstance(obj, GoType):
        return TypeValue(obj)
    if isinstance(obj, GoValue):
        return Datas(Regular(obj))
    return Datas(Regular(from_python(obj)))

def args_from_python(mapping: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Args:
    """Bindings from plain Python data; types are inferred where no GoValue is given."""
    out: Args = {}
    for name, obj in {**(mapping or {}), **kwargs}.items():
        out[name] = to_binding(obj)
    return out

def make_package(name: str, members: Optional[Mapping[str, Any]] = None) -> Package:
    return Package(name, args_from_python(members or {}))

def data_to_python(d: Data) -> Any:
    match d:
        case Regular(value=v):
            return to_python(v)
        case TypedConst(const=c) | UntypedConst(const=c):
            return const_to_python(c)
        case UntypedBool(value=b):
            return b
        case NilData():
            return None

    raise TypeError(f"unexpected data {d!r}")

class Expression:
    """A parsed Go expression bound to an owning package path."""

    def __init__(self, node: Node, pkg_path: Optional[str] = None, source: Optional[str] = None):
        self.node = node
        self.pkg_path = pkg_path or default_pkg_path()
        self.source = source

    @classmethod
    def parse(cls, source: str, pkg_path: Optional[str] = None) -> Expression:
        return cls(parse_expr(source), pkg_path, source)

    def __repr__(self) -> str:
        return f"Expression({self.source!r})" if self.source is not None else f"Expression({self.node!r})"

    def _args(self, args: Optional[Mapping[str, Any]]) -> Args:
        if args is None:
            return {}
        return args_from_python(args)

    def eval_raw(self, args: Optional[Mapping[str, Any]] = None) -> Value:
        return evaluate(self.node, self._args(args), self.pkg_path, self.source)

    def eval_to_data(self, args: Optional[Mapping[str, Any]] = None) -> Data:
        value = self.eval_raw(args)
        if isinstance(value, Datas):
            return value.data
        raise NotExprError(f"{describe(value)} is not an expression").no_pos()

    def eval_to_regular(self, args: Optional[Mapping[str, Any]] = None) -> GoValue:
        """Result as a regular value; untyped constants take their default type."""
        return to_regular(self.eval_to_data(args))

    def eval_to_python(self, args: Optional[Mapping[str, Any]] = None) -> Any:
        value = self.eval_raw(args)
        match value:
            case Datas(data=d):
                return data_to_python(d)
            case TypeValue(type=t):
                return t
        return value
