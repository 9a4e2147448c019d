"""Type literal handlers: chan, func, array/slice, map, struct and interface types."""
from __future__ import annotations

import logging
from typing import List

from lark import Tree

from ..constants import int_range, int_val, unquote_string
from ..gotypes import (
    ChanDir,
    GoType,
    StructField,
    TypeBuildError,
    array_of,
    chan_of,
    func_of,
    int_t,
    interface_of,
    map_of,
    slice_of,
    struct_of,
)
from ..tree import Node, is_token, node_text, tree_children, tree_label
from ..types import (
    ArrayBoundError,
    EvalContext,
    NegativeArrayBoundError,
    Regular,
    StructTagError,
    TypeConstructionError,
    TypedConst,
    TypeValue,
    UnsupportedError,
    UnsupportedSyntaxError,
    UntypedConst,
    Value,
)
from .common import EvalFunc, attach_location, eval_as_data, eval_as_type

log = logging.getLogger(__name__)

_CHAN_DIRS = {'both': ChanDir.BOTH, 'send': ChanDir.SEND, 'recv': ChanDir.RECV}

_MAX_INT = int_range(64, True)[1]

def eval_chan_type(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    dir_tok, elem = n.children
    return TypeValue(chan_of(_CHAN_DIRS[str(dir_tok.value)], eval_as_type(elem, ctx, eval_fn)))

def eval_ellipsis(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    """`...T` as a parameter type is a slice; `[...]` needs a composite literal."""
    elt = n.children[0]
    if elt is None:
        raise UnsupportedSyntaxError("invalid use of [...] array (outside a composite literal)")
    return TypeValue(slice_of(eval_as_type(elt, ctx, eval_fn)))

# ---------------- func types ----------------

def _field_types(fields: List[Node], ctx: EvalContext, eval_fn: EvalFunc, allow_variadic: bool):
    types: List[GoType] = []
    variadic = False

    for i, field in enumerate(fields):
        names, typ, _tag = field.children
        count = max(1, len(tree_children(names)))

        if tree_label(typ) == 'ellipsis':
            last = i == len(fields) - 1 and count == 1
            if not (allow_variadic and last):
                raise attach_location(
                    UnsupportedSyntaxError("can only use ... with final parameter in list"), typ, ctx.source
                )
            variadic = True

        t = eval_as_type(typ, ctx, eval_fn)
        types.extend([t] * count)

    return types, variadic

def eval_func_type(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    params_node, results_node = n.children
    params, variadic = _field_types(tree_children(params_node), ctx, eval_fn, True)
    results, _ = _field_types(tree_children(results_node), ctx, eval_fn, False)

    try:
        return TypeValue(func_of(params, results, variadic))
    except TypeBuildError as e:
        raise TypeConstructionError(str(e)) from None

# ---------------- array and slice types ----------------

def _array_length(len_node: Node, ctx: EvalContext, eval_fn: EvalFunc) -> int:
    d = eval_as_data(len_node, ctx, eval_fn)
    text = node_text(len_node)
    n = None

    match d:
        case UntypedConst(const=c):
            if c.is_numeric:
                n = int_val(c)
        case TypedConst(const=c, type=t):
            if t.assignable_to(int_t):
                n = int_val(c)
        case Regular():
            raise attach_location(
                ArrayBoundError(f"invalid array length {text}: array length must be constant"), len_node, ctx.source
            )

    if n is None:
        raise attach_location(
            ArrayBoundError(f"invalid array length {text}: array length must be integer"), len_node, ctx.source
        )
    if n > _MAX_INT:
        raise attach_location(
            ArrayBoundError(f"invalid array length {text}: array length overflows int"), len_node, ctx.source
        )
    if n < 0:
        raise NegativeArrayBoundError()
    return n

def eval_array_type(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    len_node, elem_node = n.children

    if len_node is None:
        return TypeValue(slice_of(eval_as_type(elem_node, ctx, eval_fn)))

    if tree_label(len_node) == 'ellipsis':
        raise UnsupportedSyntaxError("invalid use of [...] array (outside a composite literal)")

    length = _array_length(len_node, ctx, eval_fn)
    return TypeValue(array_of(length, eval_as_type(elem_node, ctx, eval_fn)))

# ---------------- map / struct / interface types ----------------

def eval_map_type(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    key_node, elem_node = n.children
    key = eval_as_type(key_node, ctx, eval_fn)
    elem = eval_as_type(elem_node, ctx, eval_fn)

    try:
        return TypeValue(map_of(key, elem))
    except TypeBuildError as e:
        log.debug("map type %s rejected: %s", node_text(n), e)
        raise TypeConstructionError(str(e)) from None

def _embedded_name(typ: Node) -> str:
    while tree_label(typ) in ('star', 'paren'):
        typ = typ.children[0]
    if tree_label(typ) == 'selector':
        typ = typ.children[1]
    return str(typ.value) if is_token(typ) else node_text(typ)

def _struct_tag(tag: Node, ctx: EvalContext) -> str:
    if tag is None:
        return ''
    if is_token(tag) and tag.type == 'STRING':
        return unquote_string(str(tag.value))
    raise attach_location(StructTagError(f"invalid struct tag {node_text(tag)}"), tag, ctx.source)

def eval_struct_type(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    fields: List[StructField] = []

    for field in tree_children(n.children[0]):
        names, typ, tag = field.children
        t = eval_as_type(typ, ctx, eval_fn)
        tag_text = _struct_tag(tag, ctx)
        idents = tree_children(names)

        if not idents:
            fields.append(StructField(_embedded_name(typ), t, ctx.pkg_path, tag_text, embedded=True))
            continue

        for ident in idents:
            fields.append(StructField(str(ident.value), t, ctx.pkg_path, tag_text))

    try:
        return TypeValue(struct_of(fields))
    except TypeBuildError as e:
        log.debug("struct type %s rejected: %s", node_text(n), e)
        raise TypeConstructionError(str(e)) from None

def eval_interface_type(n: Tree, _ctx: EvalContext, _eval_fn: EvalFunc) -> Value:
    if tree_children(n.children[0]):
        raise UnsupportedError("non-empty interface type literals are not supported")
    return TypeValue(interface_of())
