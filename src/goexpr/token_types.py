"""
Token Types for the Go expression front end

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors go/token"""

    # Literals
    IDENT = auto()
    INT = auto()
    FLOAT = auto()
    IMAG = auto()
    CHAR = auto()
    STRING = auto()

    # Keywords used inside expressions
    FUNC = auto()
    MAP = auto()
    CHAN = auto()
    STRUCT = auto()
    INTERFACE = auto()

    # Keywords that never appear in an expression
    KEYWORD = auto()

    # Arithmetic
    ADD = auto()  # +
    SUB = auto()  # -
    MUL = auto()  # *
    QUO = auto()  # /
    REM = auto()  # %

    # Bitwise
    AND = auto()  # &
    OR = auto()  # |
    XOR = auto()  # ^
    SHL = auto()  # <<
    SHR = auto()  # >>
    AND_NOT = auto()  # &^

    # Logical
    LAND = auto()  # &&
    LOR = auto()  # ||
    ARROW = auto()  # <-
    NOT = auto()  # !

    # Comparison
    EQL = auto()
    NEQ = auto()
    LSS = auto()
    LEQ = auto()
    GTR = auto()
    GEQ = auto()

    # Statement-only operators; lexed so the parser can reject them
    ASSIGN = auto()  # =
    DEFINE = auto()  # :=
    OP_ASSIGN = auto()  # +=, <<=, ...
    INC = auto()  # ++
    DEC = auto()  # --

    # Punctuation
    ELLIPSIS = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACK = auto()
    RBRACK = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    PERIOD = auto()
    SEMICOLON = auto()
    COLON = auto()

    # Special
    EOF = auto()


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    offset: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
