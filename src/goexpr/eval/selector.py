from __future__ import annotations

from lark import Token, Tree

from ..calls import method_expr, method_value
from ..constants import FALSE, TRUE
from ..gotypes import BUILTIN_TYPES, Kind, field_index, is_exported
from ..tree import node_text
from ..values import GoValue, deref, field_by_path
from ..types import (
    Builtins,
    BuiltinFunc,
    Datas,
    EvalContext,
    InternalError,
    InvalidSelectorError,
    NilData,
    Package,
    Regular,
    TypeValue,
    UndefinedIdentError,
    UnsupportedError,
    UntypedConst,
    Value,
    is_value,
)
from ..utils import describe, describe_data
from .common import EvalFunc

_PREDECLARED = {
    'true': lambda: Datas(UntypedConst(TRUE)),
    'false': lambda: Datas(UntypedConst(FALSE)),
    'nil': lambda: Datas(NilData()),
}

def eval_ident(n: Token, ctx: EvalContext, _eval_fn: EvalFunc) -> Value:
    """Resolve a name: constants, built-in functions, built-in types, then the bindings."""
    name = str(n.value)

    const = _PREDECLARED.get(name)
    if const is not None:
        return const()

    if name in Builtins.functions:
        return BuiltinFunc(name)

    t = BUILTIN_TYPES.get(name)
    if t is not None:
        return TypeValue(t)

    value = ctx.lookup(name)
    if value is None:
        raise UndefinedIdentError(name)

    if not is_value(value):
        raise InternalError(f"binding {name!r} holds {type(value).__name__}, not a Value")

    return value

def eval_selector(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    x_node, sel = n.children
    name = str(sel.value)
    base = eval_fn(x_node, ctx)

    match base:
        case Package(name=pkg, members=members):
            member = members.get(name) if is_exported(name) else None
            if member is None:
                raise UndefinedIdentError(f"{pkg}.{name}")
            return member

        case Datas(data=Regular(value=v)):
            return Datas(Regular(select_value(v, name, ctx, node_text(x_node))))

        case Datas(data=d):
            raise InvalidSelectorError(f"invalid selector: {describe_data(d)} has no field or method {name}")

        case TypeValue(type=t):
            if t.kind == Kind.INTERFACE:
                raise UnsupportedError(f"method expression {t}.{name} on interface type is not supported")
            fv = method_expr(t, name, ctx.pkg_path)
            if fv is None:
                raise UndefinedIdentError(name, f"{t}.{name} undefined (type {t} has no method {name})")
            return Datas(Regular(fv))

    raise InvalidSelectorError(f"invalid selector: {describe(base)} has no field or method {name}")

def select_value(v: GoValue, name: str, ctx: EvalContext, text: str = "x") -> GoValue:
    """x.name on a regular value: pointer methods, then fields, then methods."""
    orig_type = v.type

    if v.kind == Kind.POINTER:
        mv = method_value(v, name, ctx.pkg_path)
        if mv is not None:
            return mv
        v = deref(v)

    if v.kind == Kind.STRUCT:
        path = field_index(v.type, name, ctx.pkg_path)
        if path is not None:
            return field_by_path(v, path)

    mv = method_value(v, name, ctx.pkg_path)
    if mv is not None:
        return mv

    raise UndefinedIdentError(name, f"{text}.{name} undefined (type {orig_type} has no field or method {name})")
