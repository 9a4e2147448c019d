from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Optional

from ..gotypes import GoType
from ..tree import Node, node_meta, node_text
from ..types import (
    Data,
    Datas,
    EvalContext,
    GoEvalError,
    NotExprError,
    NotTypeError,
    Package,
    BuiltinFunc,
    TypeValue,
    Value,
)
from ..utils import describe

EvalFunc = Callable[[Node, EvalContext], Value]

def attach_location(exc: GoEvalError, node: Any, source: Optional[str] = None) -> GoEvalError:
    """Give exc the position of node unless an inner node already did."""
    if getattr(exc, "_augmented", False):
        return exc

    meta = node_meta(node)

    if meta is not None and getattr(meta, "line", None) is not None:
        exc.go_meta = meta
        exc._augmented = True  # type: ignore[attr-defined]
        return exc

    start = getattr(meta, "start_pos", None)
    if start is None or source is None:
        return exc

    line = source.count("\n", 0, start) + 1
    last_nl = source.rfind("\n", 0, start)
    col = start + 1 if last_nl == -1 else start - last_nl
    exc.go_meta = SimpleNamespace(line=line, column=col)
    exc._augmented = True  # type: ignore[attr-defined]
    return exc

def eval_as_data(node: Node, ctx: EvalContext, eval_fn: EvalFunc) -> Data:
    value = eval_fn(node, ctx)
    if isinstance(value, Datas):
        return value.data

    match value:
        case Package(name=name):
            msg = f"use of package {name} without selector"
        case BuiltinFunc(name=name):
            msg = f"{name} (built-in function {name}) must be called"
        case _:
            msg = f"{describe(value)} is not an expression"

    raise attach_location(NotExprError(msg), node, ctx.source)

def eval_as_type(node: Node, ctx: EvalContext, eval_fn: EvalFunc) -> GoType:
    value = eval_fn(node, ctx)
    if isinstance(value, TypeValue):
        return value.type

    raise attach_location(NotTypeError(f"{node_text(node)} is not a type"), node, ctx.source)
