from __future__ import annotations

import logging
from typing import Callable, Optional

from lark import Token, Tree

from .runtime import (
    Args,
    EvalContext,
    GoEvalError,
    Value,
    init_builtins,
)
from .types import InternalError, UnsupportedSyntaxError
from .tree import Node, is_token, is_tree, node_kind, node_text

from .eval.common import attach_location
from .eval.selector import eval_ident, eval_selector
from .eval.expr import (
    eval_binary,
    eval_unary,
    eval_star,
    eval_paren,
    eval_index,
    eval_slice,
    eval_type_assert,
)
from .eval.call import eval_call
from .eval.literals import eval_basic_lit, eval_composite_lit
from .eval.typelits import (
    eval_chan_type,
    eval_ellipsis,
    eval_func_type,
    eval_array_type,
    eval_map_type,
    eval_struct_type,
    eval_interface_type,
)

EvalFunc = Callable[[Node, EvalContext], Value]

log = logging.getLogger(__name__)

def _maybe_attach_location(exc: GoEvalError, node: Node, ctx: EvalContext) -> None:
    attach_location(exc, node, ctx.source)

# ---------------- Public API ----------------

def evaluate(node: Optional[Node], args: Optional[Args] = None, pkg_path: str = "main", source: Optional[str] = None) -> Value:
    """Evaluate one expression tree against the bindings in args."""
    init_builtins()

    ctx = EvalContext(args=args, pkg_path=pkg_path, source=source)
    log.debug("evaluate %s in package %s", node_text(node) or node_kind(node), pkg_path)

    try:
        return eval_node(node, ctx)
    except GoEvalError as e:
        _maybe_attach_location(e, node, ctx)
        raise

# ---------------- Core evaluator ----------------

def eval_node(n: Optional[Node], ctx: EvalContext) -> Value:
    if n is None:
        raise InternalError("nil syntax node").no_pos()

    try:
        return _eval_node_inner(n, ctx)
    except GoEvalError as e:
        _maybe_attach_location(e, n, ctx)
        raise

def _eval_node_inner(n: Node, ctx: EvalContext) -> Value:
    if is_token(n):
        return _eval_token(n, ctx)

    if not is_tree(n):
        raise InternalError(f"unexpected syntax node {n!r}")

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, ctx)

    raise UnsupportedSyntaxError(f"unsupported syntax: {n.data}")

def _eval_token(t: Token, ctx: EvalContext) -> Value:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler is not None:
        return handler(t, ctx)

    raise UnsupportedSyntaxError(f"unsupported syntax: {t.type} {t.value!r}")

_TOKEN_DISPATCH: dict[str, Callable[[Token, EvalContext], Value]] = {
    'IDENT': lambda t, ctx: eval_ident(t, ctx, eval_node),
    'INT': lambda t, ctx: eval_basic_lit(t, ctx, eval_node),
    'FLOAT': lambda t, ctx: eval_basic_lit(t, ctx, eval_node),
    'IMAG': lambda t, ctx: eval_basic_lit(t, ctx, eval_node),
    'CHAR': lambda t, ctx: eval_basic_lit(t, ctx, eval_node),
    'STRING': lambda t, ctx: eval_basic_lit(t, ctx, eval_node),
}

_NODE_DISPATCH: dict[str, Callable[[Tree, EvalContext], Value]] = {
    'selector': lambda n, ctx: eval_selector(n, ctx, eval_node),
    'binary': lambda n, ctx: eval_binary(n, ctx, eval_node),
    'unary': lambda n, ctx: eval_unary(n, ctx, eval_node),
    'paren': lambda n, ctx: eval_paren(n, ctx, eval_node),
    'call': lambda n, ctx: eval_call(n, ctx, eval_node),
    'star': lambda n, ctx: eval_star(n, ctx, eval_node),
    'ellipsis': lambda n, ctx: eval_ellipsis(n, ctx, eval_node),
    'chan_type': lambda n, ctx: eval_chan_type(n, ctx, eval_node),
    'func_type': lambda n, ctx: eval_func_type(n, ctx, eval_node),
    'array_type': lambda n, ctx: eval_array_type(n, ctx, eval_node),
    'index': lambda n, ctx: eval_index(n, ctx, eval_node),
    'slice': lambda n, ctx: eval_slice(n, ctx, eval_node),
    'composite_lit': lambda n, ctx: eval_composite_lit(n, ctx, eval_node),
    'type_assert': lambda n, ctx: eval_type_assert(n, ctx, eval_node),
    'map_type': lambda n, ctx: eval_map_type(n, ctx, eval_node),
    'struct_type': lambda n, ctx: eval_struct_type(n, ctx, eval_node),
    'interface_type': lambda n, ctx: eval_interface_type(n, ctx, eval_node),
}
