from __future__ import annotations

from lark import Tree

from ..calls import call_builtin, call_regular, convert_call
from ..gotypes import Kind
from ..tree import tree_children
from ..types import (
    BuiltinFunc,
    Datas,
    EvalContext,
    NotCallableError,
    Regular,
    TypeValue,
    Value,
)
from ..utils import describe
from .common import EvalFunc, eval_as_data

def eval_call(n: Tree, ctx: EvalContext, eval_fn: EvalFunc) -> Value:
    """f(args): built-in call, conversion T(x) or call of a func value."""
    fun, args_node, ellipsis_tok = n.children
    arg_nodes = tree_children(args_node)
    ellipsis = ellipsis_tok is not None

    callee = eval_fn(fun, ctx)

    match callee:
        case BuiltinFunc(name=name):
            # built-ins take types as well as values (make, new)
            args = [eval_fn(a, ctx) for a in arg_nodes]
            return Datas(call_builtin(name, args, ellipsis))

        case TypeValue(type=t):
            args = [eval_as_data(a, ctx, eval_fn) for a in arg_nodes]
            return Datas(convert_call(t, args, ellipsis))

        case Datas(data=Regular(value=fv)) if fv.kind == Kind.FUNC:
            args = [eval_as_data(a, ctx, eval_fn) for a in arg_nodes]
            return Datas(call_regular(fv, args, ellipsis))

    raise NotCallableError(f"invalid operation: cannot call non-function {describe(callee)}")
