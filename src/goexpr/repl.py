"""Interactive REPL for Go expressions, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
import traceback
from dataclasses import dataclass, field

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError
from .runner import run
from .runtime import Args, GoEvalError, init_builtins
from .token_types import TT
from .utils import debug_py_trace_enabled, default_pkg_path, describe, format_result

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/let": ("Bind a name to the value of an expression", "name expr"),
    "/unset": ("Remove a binding", "name"),
    "/env": ("List the current bindings", ""),
    "/pkg": ("Show or set the evaluation package path", "[path]"),
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

_DEPTH_OPEN = {TT.LPAREN, TT.LBRACK, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAREN, TT.RBRACK, TT.RBRACE}

_TRACE_ENV = "GOEXPR_DEBUG_PY_TRACE"


@dataclass
class ReplState:
    args: Args = field(default_factory=dict)
    pkg_path: str = field(default_factory=default_pkg_path)


def _is_open(text: str) -> bool:
    """Return True if *text* has unclosed brackets and needs another line."""
    try:
        tokens = tokenize(text)
    except LexError:
        return False

    depth = 0
    for tok in tokens:
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth = max(depth - 1, 0)

    return depth > 0


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=f"{desc} {hint}".rstrip(),
                )


def _report(exc: Exception) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


def _handle_slash(line: str, state: ReplState) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/let":
        name, _, expr = arg.partition(" ")
        if not name.isidentifier() or not expr.strip():
            print("Usage: /let name expr", file=sys.stderr)
            return True
        try:
            state.args[name] = run(expr, dict(state.args), state.pkg_path)
        except (ParseError, LexError, GoEvalError) as exc:
            _report(exc)
            return True
        print(f"{name} = {format_result(state.args[name])}")
        return True

    if cmd == "/unset":
        if state.args.pop(arg.strip(), None) is None:
            print(f"Not bound: {arg.strip()}", file=sys.stderr)
        return True

    if cmd == "/env":
        if not state.args:
            print("(no bindings)")
        for name in sorted(state.args):
            print(f"{name}: {describe(state.args[name])}")
        return True

    if cmd == "/pkg":
        if arg:
            state.pkg_path = arg.strip()
        print(f"Package path: {state.pkg_path}")
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ[_TRACE_ENV] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop(_TRACE_ENV, None)
        elif arg == "":
            # Toggle.
            if debug_py_trace_enabled():
                os.environ.pop(_TRACE_ENV, None)
            else:
                os.environ[_TRACE_ENV] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        status = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {status}")
        return True

    if cmd == "/reset":
        state.args.clear()
        state.pkg_path = default_pkg_path()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def eval_line(text: str, state: ReplState) -> None:
    """Evaluate one submitted entry and print the result or the error."""
    text = _normalize(text)
    if not text.strip():
        return

    if _handle_slash(text, state):
        return

    try:
        result = run(text, state.args, state.pkg_path)
    except (ParseError, LexError, GoEvalError) as exc:
        _report(exc)
        return

    print(format_result(result))


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    init_builtins()
    state = ReplState()

    history = InMemoryHistory()
    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer

        # Unclosed brackets => keep reading lines.
        if not buf.text.startswith("/") and _is_open(buf.text):
            buf.insert_text("\n    ")
            return

        buf.validate_and_handle()

    session: PromptSession[str] = PromptSession(
        history=history,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("goexpr repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        eval_line(text, state)


if __name__ == "__main__":
    repl()
