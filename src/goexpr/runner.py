from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from .evaluator import evaluate
from .lexer_rd import LexError
from .parser_rd import ParseError, parse_expr
from .runtime import Args, GoEvalError, Value, init_builtins
from .utils import debug_py_trace_enabled, default_pkg_path, format_result, split_define

log = logging.getLogger(__name__)

USAGE = "usage: goexpr [--pkg PATH] [-D name=expr]... [-v] [EXPR | FILE | -]"

def run(src: str, args: Optional[Args] = None, pkg_path: Optional[str] = None) -> Value:
    init_builtins()

    pkg_path = pkg_path or default_pkg_path()
    node = parse_expr(src)
    return evaluate(node, args, pkg_path, source=src)

def define(text: str, args: Args, pkg_path: Optional[str] = None) -> None:
    """Handle `-D name=expr`: bind name to the value of expr (earlier bindings are visible)."""
    parts = split_define(text)
    if parts is None:
        raise SystemExit(f"-D expects name=expr, got {text!r}")

    name, expr = parts
    args[name] = run(expr, dict(args), pkg_path)
    log.debug("defined %s", name)

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def main(argv: Optional[List[str]] = None) -> int:
    pkg_path: Optional[str] = None
    defines: List[str] = []
    verbose = False
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token == "-v":
            verbose = True
            continue

        if token.startswith("--pkg="):
            pkg_path = token.split("=", 1)[1]
            continue

        if token == "--pkg":
            try:
                pkg_path = next(it)
            except StopIteration:
                raise SystemExit("--pkg flag requires a package path") from None
            continue

        if token == "-D":
            try:
                defines.append(next(it))
            except StopIteration:
                raise SystemExit("-D flag requires name=expr") from None
            continue

        if token.startswith("-D") and len(token) > 2:
            defines.append(token[2:])
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        args: Args = {}
        for text in defines:
            define(text, args, pkg_path)

        source = _load_source(arg or "-")
        log.debug("running %r", source)
        print(format_result(run(source, args, pkg_path)))
    except (GoEvalError, LexError, ParseError) as exc:
        if debug_py_trace_enabled():
            traceback.print_exc()
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
