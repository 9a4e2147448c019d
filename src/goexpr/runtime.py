from __future__ import annotations

import importlib
from typing import Callable

from .types import (
    Value, EvalContext, Args, BuiltinFn, BuiltinFunction, Builtins, GoEvalError,
)

_BUILTINS_INITIALIZED = False

def init_builtins() -> None:
    """Load the built-in function module (idempotent) so register_builtin hooks run."""
    global _BUILTINS_INITIALIZED

    if _BUILTINS_INITIALIZED:
        return

    importlib.import_module("goexpr.stdlib")
    _BUILTINS_INITIALIZED = True

def register_builtin(name: str, *, ellipsis_ok: bool = False) -> Callable[[BuiltinFn], BuiltinFn]:
    def dec(fn: BuiltinFn) -> BuiltinFn:
        Builtins.functions[name] = BuiltinFunction(fn=fn, ellipsis_ok=ellipsis_ok)
        return fn

    return dec
