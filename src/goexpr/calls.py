"""Call dispatch: regular func values, bound methods, method expressions,
built-ins and conversions."""
from __future__ import annotations

from typing import List, Optional

from .conversions import assign, convert
from .gotypes import GoType, Kind, Method, func_of, is_exported
from .values import GoValue, FuncRaw, address_of, deref, make_slice
from .types import (
    Builtins,
    Data,
    Regular,
    Value,
    CallError,
    ConversionEllipsisError,
    ConversionError,
    RuntimePanic,
    data_type,
)
from .utils import describe_data, const_kind_name

# ---------------- regular calls ----------------

def _func_name(fv: GoValue) -> str:
    raw = fv.raw
    if isinstance(raw, FuncRaw) and raw.name:
        return raw.name
    return "function"

def _arg_types(args: List[Data]) -> str:
    parts = []
    for a in args:
        t = data_type(a)
        if t is not None:
            parts.append(str(t))
        elif hasattr(a, "const"):
            parts.append("number" if a.const.is_numeric else const_kind_name(a.const))
        else:
            parts.append(describe_data(a))
    return "(" + ", ".join(parts) + ")"

def _count_error(fv: GoValue, args: List[Data], too_many: bool) -> CallError:
    ft = fv.type
    what = "too many" if too_many else "not enough"
    return CallError(
        f"{what} arguments in call to {_func_name(fv)}\n\thave {_arg_types(args)}\n\twant {_param_list(ft)}"
    )

def _param_list(ft: GoType) -> str:
    parts = [str(p) for p in ft.params]
    if ft.variadic and parts:
        parts[-1] = f"...{ft.params[-1].elem}"
    return "(" + ", ".join(parts) + ")"

def _assign_arg(d: Data, t: GoType, fv: GoValue) -> GoValue:
    try:
        return assign(d, t, f"in argument to {_func_name(fv)}")
    except ConversionError as e:
        raise CallError(e.message) from None

def call_regular(fv: GoValue, args: List[Data], ellipsis: bool) -> Data:
    """Call a func value used as an expression: it must return exactly one result."""
    ft = fv.type.underlying()
    params = list(ft.params)
    name = _func_name(fv)

    if ellipsis:
        if not ft.variadic:
            raise CallError(f"have (...) arguments: cannot use ... in call to non-variadic {name}")
        if len(args) != len(params):
            raise _count_error(fv, args, len(args) > len(params))
        go_args = [_assign_arg(a, p, fv) for a, p in zip(args, params)]

    elif ft.variadic:
        fixed = params[:-1]
        if len(args) < len(fixed):
            raise _count_error(fv, args, False)
        go_args = [_assign_arg(a, p, fv) for a, p in zip(args, fixed)]

        st = params[-1]
        rest = [_assign_arg(a, st.elem, fv) for a in args[len(fixed):]]
        if rest:
            go_args.append(make_slice(st, [v.raw for v in rest]))
        else:
            go_args.append(GoValue(st, None))

    else:
        if len(args) != len(params):
            raise _count_error(fv, args, len(args) > len(params))
        go_args = [_assign_arg(a, p, fv) for a, p in zip(args, params)]

    if fv.raw is None:
        raise RuntimePanic("runtime error: invalid memory address or nil pointer dereference")

    results = fv.raw.fn(*go_args)

    if not ft.results:
        raise CallError(f"{name}() (no value) used as value")
    if len(ft.results) > 1:
        types = ", ".join(str(r) for r in ft.results)
        raise CallError(f"multiple-value {name}() (value of type ({types})) in single-value context")
    if len(results) != 1:
        raise CallError(f"{name}() returned {len(results)} values, want 1")

    r = results[0]
    rt = ft.results[0]
    if isinstance(r, GoValue):
        return Regular(GoValue(rt, r.raw) if r.type == rt else r.copy())
    return Regular(GoValue(rt, r))

# ---------------- methods ----------------

def bind_method(recv: GoValue, m: Method, name: str = '') -> GoValue:
    """Method value: the receiver is fixed now, the call happens later."""
    def call(*args: GoValue) -> List[GoValue]:
        return m.fn(recv, *args)

    return GoValue(m.type, FuncRaw(call, name or m.name))

def _method_visible(t: GoType, name: str, pkg_path: Optional[str]) -> bool:
    """Unexported methods are only reachable from their own package."""
    if pkg_path is None or is_exported(name):
        return True
    owner = t.elem if t.kind == Kind.POINTER else t
    return owner.pkg_path == pkg_path

def method_value(recv: GoValue, name: str, pkg_path: Optional[str] = None) -> Optional[GoValue]:
    """x.M for a regular value, following Go's method set rules; None if absent or hidden."""
    t = recv.type

    if t.kind == Kind.INTERFACE:
        dyn = recv.raw
        if dyn is None:
            if name in dict(t.imethods):
                raise RuntimePanic("runtime error: invalid memory address or nil pointer dereference")
            return None
        return method_value(dyn, name, pkg_path)

    if not _method_visible(t, name, pkg_path):
        return None

    m = t.method_by_name(name)
    if m is not None:
        if t.kind == Kind.POINTER:
            if m.pointer_receiver:
                return bind_method(recv, m)
            return bind_method(deref(recv).copy(), m)
        return bind_method(recv.copy(), m)

    # addressable values also reach pointer-receiver methods (&x).M
    if t.kind != Kind.POINTER and recv.addressable:
        pm = t.methods.get(name)
        if pm is not None and pm.pointer_receiver:
            return bind_method(address_of(recv), pm)

    return None

def method_expr(t: GoType, name: str, pkg_path: Optional[str] = None) -> Optional[GoValue]:
    """T.M / (*T).M: a func taking the receiver as its first argument."""
    if not _method_visible(t, name, pkg_path):
        return None

    m = t.method_by_name(name)
    if m is None:
        return None

    sig = m.type
    ft = func_of([t, *sig.params], sig.results, sig.variadic)

    if t.kind == Kind.POINTER and not m.pointer_receiver:
        def call(recv: GoValue, *args: GoValue) -> List[GoValue]:
            return m.fn(deref(recv).copy(), *args)
    else:
        def call(recv: GoValue, *args: GoValue) -> List[GoValue]:
            return m.fn(recv, *args)

    return GoValue(ft, FuncRaw(call, f"{t}.{name}"))

# ---------------- built-ins and conversions ----------------

def call_builtin(name: str, args: List[Value], ellipsis: bool) -> Data:
    bf = Builtins.functions.get(name)
    if bf is None:
        raise CallError(f"undefined built-in {name}")

    if ellipsis and not bf.ellipsis_ok:
        raise CallError(f"invalid operation: invalid use of ... with built-in {name}")

    return bf.fn(args, ellipsis)

def convert_call(t: GoType, args: List[Data], ellipsis: bool) -> Data:
    if ellipsis:
        raise ConversionEllipsisError(f"invalid use of ... in conversion to {t}")
    if not args:
        raise ConversionError(f"missing argument in conversion to {t}")
    if len(args) > 1:
        raise ConversionError(f"too many arguments in conversion to {t}")

    return convert(args[0], t)
