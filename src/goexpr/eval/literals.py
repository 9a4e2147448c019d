from __future__ import annotations

import logging
from typing import List, Optional

from lark import Token, Tree

from ..composite import collect_indexed, composite_array_like, composite_value
from ..constants import from_literal
from ..gotypes import GoType, Kind, array_of
from ..tree import Node, tree_children, tree_label
from ..values import GoValue, address_of, new_var
from ..types import (
    CompositeLitError,
    Data,
    Datas,
    EvalContext,
    GoEvalError,
    InvalidLiteralError,
    Regular,
    UntypedConst,
    Value,
)
from .common import EvalFunc, attach_location, eval_as_data, eval_as_type

log = logging.getLogger(__name__)

def eval_basic_lit(tok: Token, _ctx: EvalContext, _eval_fn: EvalFunc) -> Value:
    text = str(tok.value)
    c = from_literal(str(tok.type), text)
    if c is None:
        raise InvalidLiteralError(text)
    return Datas(UntypedConst(c))

def _is_elided(node: Node) -> bool:
    return tree_label(node) == 'composite_lit' and node.children[0] is None

def _is_open_array(node: Optional[Node]) -> bool:
    return tree_label(node) == 'array_type' and tree_label(node.children[0]) == 'ellipsis'

def eval_composite_lit(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    typ_node = n.children[0]
    if typ_node is None:
        raise CompositeLitError("invalid composite literal type: missing type")

    elts = tree_children(n.children[1])

    if _is_open_array(typ_node):
        # [...]T{...}: the length is the number of elements, explicit indices included
        elem = eval_as_type(typ_node.children[1], ctx, eval_fn)
        entries, length = collect_indexed(elts, lambda k: eval_as_data(k, ctx, eval_fn))
        t = array_of(length, elem)
        log.debug("open array literal sized %d", length)
        return Datas(Regular(composite_array_like(t, entries, 0, _elem_fn(ctx, eval_fn))))

    t = eval_as_type(typ_node, ctx, eval_fn)
    return Datas(Regular(build_composite(t, elts, ctx, eval_fn)))

def build_composite(t: GoType, elts: List[Node], ctx: EvalContext, eval_fn: EvalFunc) -> GoValue:
    return composite_value(
        t,
        elts,
        ctx.pkg_path,
        _elem_fn(ctx, eval_fn),
        lambda k: eval_as_data(k, ctx, eval_fn),
    )

def _elem_fn(ctx: EvalContext, eval_fn: EvalFunc):
    def elem(node: Node, t: GoType) -> Data:
        if not _is_elided(node):
            return eval_as_data(node, ctx, eval_fn)

        try:
            return Regular(_elided_value(node, t, ctx, eval_fn))
        except GoEvalError as e:
            raise attach_location(e, node, ctx.source)

    return elem

def _elided_value(node: Tree, t: GoType, ctx: EvalContext, eval_fn: EvalFunc) -> GoValue:
    """`{...}` with the type taken from the enclosing literal; *T elements take &T{...}."""
    elts = tree_children(node.children[1])

    if t.kind == Kind.POINTER:
        v = build_composite(t.elem, elts, ctx, eval_fn)
        return address_of(new_var(v.type, v.raw))

    return build_composite(t, elts, ctx, eval_fn)
