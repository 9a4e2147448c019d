from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest

from goexpr.lexer_rd import LexError, Lexer, tokenize
from goexpr.token_types import TT, Tok


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    expected_positions: Optional[Tuple[Tuple[str, int, int], ...]] = None
    exc: Optional[type[Exception]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("int-decimal", "123", expected=((TT.INT, "123"),)),
    Case("int-hex", "0x1F", expected=((TT.INT, "0x1F"),)),
    Case("int-underscore", "1_000", expected=((TT.INT, "1_000"),)),
    Case("int-binary", "0b101", expected=((TT.INT, "0b101"),)),
    Case("int-octal", "0o17", expected=((TT.INT, "0o17"),)),
    Case("float-decimal", "3.14", expected=((TT.FLOAT, "3.14"),)),
    Case("float-leading-dot", ".5", expected=((TT.FLOAT, ".5"),)),
    Case("float-trailing-dot", "1.", expected=((TT.FLOAT, "1."),)),
    Case("float-exponent", "1e9", expected=((TT.FLOAT, "1e9"),)),
    Case("float-hex", "0x1p-2", expected=((TT.FLOAT, "0x1p-2"),)),
    Case("imag-int", "2i", expected=((TT.IMAG, "2i"),)),
    Case("imag-float", "1.5i", expected=((TT.IMAG, "1.5i"),)),
    Case("char-plain", "'a'", expected=((TT.CHAR, "'a'"),)),
    Case("char-escape", "'\\n'", expected=((TT.CHAR, "'\\n'"),)),
    Case("string-double", '"hi"', expected=((TT.STRING, '"hi"'),)),
    Case("string-raw", "`raw\\n`", expected=((TT.STRING, "`raw\\n`"),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-underscore", "_foo9", expected=((TT.IDENT, "_foo9"),)),
    Case("ident-unicode", "héllo", expected=((TT.IDENT, "héllo"),)),
    Case("ident-predeclared", "true", expected=((TT.IDENT, "true"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("add", "+", expected_types=(TT.ADD,)),
    Case("sub", "-", expected_types=(TT.SUB,)),
    Case("mul", "*", expected_types=(TT.MUL,)),
    Case("quo", "/", expected_types=(TT.QUO,)),
    Case("rem", "%", expected_types=(TT.REM,)),
    Case("and", "&", expected_types=(TT.AND,)),
    Case("or", "|", expected_types=(TT.OR,)),
    Case("xor", "^", expected_types=(TT.XOR,)),
    Case("shl", "<<", expected_types=(TT.SHL,)),
    Case("shr", ">>", expected_types=(TT.SHR,)),
    Case("and-not", "&^", expected_types=(TT.AND_NOT,)),
    Case("land", "&&", expected_types=(TT.LAND,)),
    Case("lor", "||", expected_types=(TT.LOR,)),
    Case("arrow", "<-", expected_types=(TT.ARROW,)),
    Case("not", "!", expected_types=(TT.NOT,)),
    Case("eql", "==", expected_types=(TT.EQL,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lss", "<", expected_types=(TT.LSS,)),
    Case("leq", "<=", expected_types=(TT.LEQ,)),
    Case("gtr", ">", expected_types=(TT.GTR,)),
    Case("geq", ">=", expected_types=(TT.GEQ,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("define", ":=", expected_types=(TT.DEFINE,)),
    Case("op-assign", "+=", expected_types=(TT.OP_ASSIGN,)),
    Case("and-not-assign", "&^=", expected_types=(TT.OP_ASSIGN,)),
    Case("shl-assign", "<<=", expected_types=(TT.OP_ASSIGN,)),
    Case("ellipsis", "...", expected_types=(TT.ELLIPSIS,)),
    Case("brackets", "([{", expected_types=(TT.LPAREN, TT.LBRACK, TT.LBRACE)),
    Case("punct", ",.:", expected_types=(TT.COMMA, TT.PERIOD, TT.COLON)),
    Case("int-then-ellipsis", "1...", expected_types=(TT.INT, TT.ELLIPSIS)),
]

KEYWORD_CASES: List[Case] = [
    Case("func", "func", expected_types=(TT.FUNC,)),
    Case("map", "map", expected_types=(TT.MAP,)),
    Case("chan", "chan", expected_types=(TT.CHAN,)),
    Case("struct", "struct", expected_types=(TT.STRUCT,)),
    Case("interface", "interface", expected_types=(TT.INTERFACE,)),
    Case("if", "if", expected_types=(TT.KEYWORD,)),
    Case("range", "range", expected_types=(TT.KEYWORD,)),
    Case("type", "type", expected_types=(TT.KEYWORD,)),
]

SEMICOLON_CASES: List[Case] = [
    Case(
        "after-ident",
        "x\n+ y",
        expected_types=(TT.IDENT, TT.SEMICOLON, TT.ADD, TT.IDENT, TT.SEMICOLON),
    ),
    Case(
        "not-after-operator",
        "x +\ny",
        expected_types=(TT.IDENT, TT.ADD, TT.IDENT, TT.SEMICOLON),
    ),
    Case(
        "after-close-paren",
        "f()\n",
        expected_types=(TT.IDENT, TT.LPAREN, TT.RPAREN, TT.SEMICOLON),
    ),
    Case(
        "not-after-open-brace",
        "T{\n1,\n}",
        expected_types=(TT.IDENT, TT.LBRACE, TT.INT, TT.COMMA, TT.RBRACE, TT.SEMICOLON),
    ),
    Case(
        "after-return-keyword",
        "return\n",
        expected_types=(TT.KEYWORD, TT.SEMICOLON),
    ),
    Case(
        "block-comment-with-newline",
        "x /*\n*/ + y",
        expected_types=(TT.IDENT, TT.SEMICOLON, TT.ADD, TT.IDENT, TT.SEMICOLON),
    ),
    Case(
        "explicit-semicolon",
        "x;",
        expected_types=(TT.IDENT, TT.SEMICOLON),
    ),
]

POSITION_CASES: List[Case] = [
    Case(
        "single-line",
        "ab + cd",
        expected_positions=(("ab", 1, 1), ("+", 1, 4), ("cd", 1, 6)),
    ),
    Case(
        "multi-line",
        "a +\n  b",
        expected_positions=(("a", 1, 1), ("+", 1, 3), ("b", 2, 3)),
    ),
    Case(
        "after-raw-string",
        "`x\ny` + z",
        expected_positions=(("+", 2, 4), ("z", 2, 6)),
    ),
]

LEX_ERROR_CASES: List[Case] = [
    Case(
        "unterminated-string",
        '"abc',
        exc=LexError,
        msg="string literal not terminated",
        err_line=1,
        err_col=1,
    ),
    Case(
        "unterminated-string-line2",
        'x +\n  "abc',
        exc=LexError,
        msg="string literal not terminated",
        err_line=2,
        err_col=3,
    ),
    Case(
        "newline-in-string",
        '"ab\ncd"',
        exc=LexError,
        msg="string literal not terminated",
        err_line=1,
        err_col=1,
    ),
    Case(
        "unterminated-raw-string",
        "`abc",
        exc=LexError,
        msg="raw string literal not terminated",
    ),
    Case(
        "unterminated-rune",
        "'a",
        exc=LexError,
        msg="rune literal not terminated",
    ),
    Case(
        "unterminated-comment",
        "x /* open",
        exc=LexError,
        msg="comment not terminated",
        err_line=1,
        err_col=3,
    ),
    Case(
        "unexpected-char",
        "x @ y",
        exc=LexError,
        msg="invalid character '@'",
        err_line=1,
        err_col=3,
    ),
    Case(
        "invalid-number-suffix",
        "123abc",
        exc=LexError,
        msg="in numeric literal",
        err_line=1,
        err_col=4,
    ),
]


def _non_eof_tokens(source: str) -> List[Tok]:
    return [token for token in tokenize(source) if token.type != TT.EOF]


def _significant_tokens(source: str) -> List[Tok]:
    """Tokens without EOF and without automatic semicolons."""
    return [
        token
        for token in _non_eof_tokens(source)
        if not (token.type == TT.SEMICOLON and token.value == "\n")
    ]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    tokens = _significant_tokens(case.source)

    assert case.expected is not None
    assert len(tokens) == len(case.expected)
    for token, (expected_type, expected_value) in zip(tokens, case.expected):
        assert token.type == expected_type
        assert token.value == expected_value


@pytest.mark.parametrize("case", OPERATOR_CASES, ids=lambda case: case.name)
def test_operators(case: Case) -> None:
    tokens = _significant_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", KEYWORD_CASES, ids=lambda case: case.name)
def test_keywords(case: Case) -> None:
    tokens = _significant_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


def test_keyword_table_covers_go_keywords() -> None:
    assert len(Lexer.KEYWORDS) == 25
    assert "select" in Lexer.KEYWORDS
    assert "nil" not in Lexer.KEYWORDS


@pytest.mark.parametrize("case", SEMICOLON_CASES, ids=lambda case: case.name)
def test_semicolon_insertion(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


def test_comments() -> None:
    source = "x /* inline */ + y // trailing"
    expected_types = [TT.IDENT, TT.ADD, TT.IDENT]
    assert [token.type for token in _significant_tokens(source)] == expected_types


def test_eof_token_is_last() -> None:
    tokens = tokenize("a")
    assert tokens[-1].type == TT.EOF
    assert tokens[-1].offset == 1


@pytest.mark.parametrize("case", POSITION_CASES, ids=lambda case: case.name)
def test_position_tracking(case: Case) -> None:
    assert case.expected_positions is not None
    actual: Dict[str, Tuple[int, int]] = {}
    for token in _significant_tokens(case.source):
        actual[str(token.value)] = (token.line, token.column)

    for value, line, column in case.expected_positions:
        assert value in actual
        assert actual[value] == (line, column), f"{value!r} at {actual[value]}"


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.exc is not None
    assert case.msg is not None
    with pytest.raises(case.exc) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert case.msg in str(err)

    if case.err_line is not None:
        assert (
            err.line == case.err_line
        ), f"expected line {case.err_line}, got {err.line}"
    if case.err_col is not None:
        assert (
            err.column == case.err_col
        ), f"expected col {case.err_col}, got {err.column}"
