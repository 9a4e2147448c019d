from __future__ import annotations

from lark import Tree

from ..gotypes import Kind, ptr_to
from ..indexing import index_value, slice_value
from ..ops import address_of_data, binary_op, unary_op
from ..tree import node_text, tree_label, unwrap_paren
from ..values import GoValue, address_of, copy_raw, deref, new_var
from ..types import (
    AssertionFailedError,
    Datas,
    EvalContext,
    ImpossibleAssertionError,
    IndirectionError,
    NilData,
    Regular,
    TypeAssertOperandError,
    TypeValue,
    UnsupportedSyntaxError,
    Value,
)
from ..utils import describe, describe_data
from .common import EvalFunc, eval_as_data, eval_as_type

def eval_binary(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    x, op, y = n.children
    dx = eval_as_data(x, ctx, eval_fn)
    dy = eval_as_data(y, ctx, eval_fn)
    return Datas(binary_op(dx, str(op.value), dy))

def eval_unary(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    op_tok, x = n.children
    op = str(op_tok.value)

    if op == '&':
        operand = unwrap_paren(x)
        if tree_label(operand) == 'composite_lit':
            # &T{...} allocates a fresh variable
            v = eval_as_data(operand, ctx, eval_fn).value
            return Datas(Regular(address_of(new_var(v.type, v.raw))))
        return Datas(address_of_data(eval_as_data(x, ctx, eval_fn)))

    return Datas(unary_op(op, eval_as_data(x, ctx, eval_fn)))

def eval_star(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    """*T is a pointer type; *p is the pointee."""
    base = eval_fn(n.children[0], ctx)

    match base:
        case TypeValue(type=t):
            return TypeValue(ptr_to(t))
        case Datas(data=Regular(value=v)) if v.kind == Kind.POINTER:
            return Datas(Regular(deref(v)))
        case Datas(data=NilData()):
            raise IndirectionError("invalid operation: cannot indirect nil")
        case Datas(data=d):
            raise IndirectionError(f"invalid operation: cannot indirect {describe_data(d)}")

    raise IndirectionError(f"invalid operation: cannot indirect {describe(base)}")

def eval_paren(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    return eval_fn(n.children[0], ctx)

def eval_index(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    x, idx = n.children
    d = eval_as_data(x, ctx, eval_fn)
    return Datas(index_value(d, eval_as_data(idx, ctx, eval_fn)))

def eval_slice(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    x, low, high, max_, slice3 = n.children
    d = eval_as_data(x, ctx, eval_fn)

    bounds = [
        None if b is None else eval_as_data(b, ctx, eval_fn)
        for b in (low, high, max_)
    ]
    return Datas(slice_value(d, bounds[0], bounds[1], bounds[2], slice3 is not None))

def eval_type_assert(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    x, typ = n.children
    if typ is None:
        raise UnsupportedSyntaxError("use of .(type) outside type switch")

    d = eval_as_data(x, ctx, eval_fn)
    if not (isinstance(d, Regular) and d.value.kind == Kind.INTERFACE):
        raise TypeAssertOperandError(f"invalid operation: {node_text(x)} ({describe_data(d)}) is not an interface")

    t = eval_as_type(typ, ctx, eval_fn)
    it = d.value.type
    dyn = d.value.raw

    if t.kind != Kind.INTERFACE:
        missing = t.missing_method(it)
        if missing is not None:
            raise ImpossibleAssertionError(
                f"impossible type assertion: {node_text(x)}.({t})\n\t{t} does not implement {it} (missing method {missing})"
            )
        if dyn is None:
            raise AssertionFailedError(f"interface conversion: {it} is nil, not {t}")
        if dyn.type != t:
            raise AssertionFailedError(f"interface conversion: {it} is {dyn.type}, not {t}")
        return Datas(Regular(GoValue(t, copy_raw(t, dyn.raw))))

    if dyn is None:
        raise AssertionFailedError(f"interface conversion: interface is nil, not {t}")

    missing = dyn.type.missing_method(t)
    if missing is not None:
        raise AssertionFailedError(f"interface conversion: {dyn.type} is not {t}: missing method {missing}")

    return Datas(Regular(GoValue(t, dyn)))
