"""
Recursive Descent Parser for Go expressions

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent with precedence climbing for binary operators
- AST: lark Tree/Token nodes; tree labels name the node kinds the
  evaluator dispatches on, and every node carries line/column meta

Disambiguation follows go/parser:
- `T{` starts a composite literal only when T is a type name, a qualified
  type name, or an array/slice/map/struct type literal
- `func(...) ...{` is a function literal, `func(...) ...` a function type
- `<-chan T` is a receive-only channel type, any other `<-x` a receive
"""

from typing import List, Optional, Tuple

from lark import Tree, Token
from lark.tree import Meta

from .token_types import TT, Tok
from .tree import Node, is_token, tree_label

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )


# Binary operator precedence, higher binds tighter
BINARY_PREC = {
    TT.LOR: 1,
    TT.LAND: 2,
    TT.EQL: 3, TT.NEQ: 3, TT.LSS: 3, TT.LEQ: 3, TT.GTR: 3, TT.GEQ: 3,
    TT.ADD: 4, TT.SUB: 4, TT.OR: 4, TT.XOR: 4,
    TT.MUL: 5, TT.QUO: 5, TT.REM: 5, TT.SHL: 5, TT.SHR: 5, TT.AND: 5, TT.AND_NOT: 5,
}

UNARY_OPS = {TT.ADD, TT.SUB, TT.NOT, TT.XOR, TT.AND}

BASIC_LITS = {TT.INT, TT.FLOAT, TT.IMAG, TT.CHAR, TT.STRING}

TYPE_STARTS = {TT.IDENT, TT.LBRACK, TT.MUL, TT.ARROW, TT.CHAN, TT.MAP, TT.STRUCT, TT.INTERFACE, TT.FUNC, TT.LPAREN}


def _tok_meta(tok: Tok) -> Meta:
    meta = Meta()
    meta.line = tok.line
    meta.column = tok.column
    meta.start_pos = tok.offset
    meta.empty = False
    return meta


def _node_meta(node: Node) -> Meta:
    """Copy the start position of an already-built node."""
    meta = Meta()
    if is_token(node):
        meta.line = node.line
        meta.column = node.column
        meta.start_pos = node.start_pos
    else:
        src = node.meta
        meta.line = getattr(src, 'line', None)
        meta.column = getattr(src, 'column', None)
        meta.start_pos = getattr(src, 'start_pos', None)
    meta.empty = meta.line is None
    return meta


def _token(tok: Tok, type_name: Optional[str] = None, value: Optional[str] = None) -> Token:
    return Token(
        type_name or tok.type.name,
        tok.value if value is None else value,
        tok.offset,
        tok.line,
        tok.column,
    )


class Parser:
    """
    Recursive descent parser for one Go expression.

    Expression precedence (lowest to highest):
    1. ||
    2. &&
    3. == != < <= > >=
    4. + - | ^
    5. * / % << >> & &^
    6. unary (+ - ! ^ & * <-)
    7. postfix (.name, .(T), [i], [lo:hi:max], (args), T{...})
    8. operands (literals, identifiers, parens, type literals, func literals)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 0, 0)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return Tok(TT.EOF, None, 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = Tok(TT.EOF, None, prev.line, prev.column)
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"expected {token_type.name}, found {self.describe(self.current)}"
            raise ParseError(msg, self.current)
        return self.advance()

    @staticmethod
    def describe(tok: Tok) -> str:
        if tok.type == TT.EOF:
            return "EOF"
        if tok.type == TT.SEMICOLON and tok.value == '\n':
            return "newline"
        return repr(tok.value)

    def node(self, label: str, children: List, tok: Tok) -> Tree:
        return Tree(label, children, _tok_meta(tok))

    def node_at(self, label: str, children: List, first: Node) -> Tree:
        return Tree(label, children, _node_meta(first))

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Node:
        """Parse exactly one expression followed by EOF"""
        if self.check(TT.EOF):
            raise ParseError("expected expression, found EOF", self.current)

        expr = self.parse_expr()

        while self.match(TT.SEMICOLON):
            pass

        if not self.check(TT.EOF):
            raise ParseError(f"unexpected {self.describe(self.current)} after expression", self.current)

        return expr

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Node:
        return self.parse_binary_expr(1)

    def parse_binary_expr(self, min_prec: int) -> Node:
        x = self.parse_unary_expr()

        while True:
            op = self.current
            prec = BINARY_PREC.get(op.type, 0)
            if prec < min_prec:
                return x

            self.advance()
            y = self.parse_binary_expr(prec + 1)
            x = self.node_at('binary', [x, _token(op), y], x)

    def parse_unary_expr(self) -> Node:
        tok = self.current

        if tok.type in UNARY_OPS:
            self.advance()
            x = self.parse_unary_expr()
            return self.node('unary', [_token(tok), x], tok)

        if tok.type == TT.ARROW:
            self.advance()
            if self.check(TT.CHAN):
                # <-chan T
                self.advance()
                elem = self.parse_type()
                return self.node('chan_type', [_token(tok, 'CHANDIR', 'recv'), elem], tok)
            x = self.parse_unary_expr()
            return self.node('unary', [_token(tok), x], tok)

        if tok.type == TT.MUL:
            self.advance()
            x = self.parse_unary_expr()
            return self.node('star', [x], tok)

        return self.parse_primary_expr()

    def parse_primary_expr(self) -> Node:
        x = self.parse_operand()

        while True:
            if self.check(TT.PERIOD):
                self.advance()
                if self.check(TT.IDENT):
                    sel = self.advance()
                    x = self.node_at('selector', [x, _token(sel)], x)
                elif self.check(TT.LPAREN):
                    self.advance()
                    if self.check(TT.KEYWORD) and self.current.value == 'type':
                        raise ParseError("use of .(type) outside type switch", self.current)
                    typ = self.parse_type()
                    self.expect(TT.RPAREN)
                    x = self.node_at('type_assert', [x, typ], x)
                else:
                    raise ParseError(f"expected selector or type assertion, found {self.describe(self.current)}", self.current)
            elif self.check(TT.LBRACK):
                x = self.parse_index_or_slice(x)
            elif self.check(TT.LPAREN):
                x = self.parse_call(x)
            elif self.check(TT.LBRACE) and self.is_literal_type(x):
                x = self.parse_composite_lit(x, self.current)
            else:
                return x

    def is_literal_type(self, x: Node) -> bool:
        if is_token(x):
            return x.type == 'IDENT'

        label = tree_label(x)
        if label == 'selector':
            return is_token(x.children[0]) and x.children[0].type == 'IDENT'

        return label in {'array_type', 'struct_type', 'map_type'}

    def parse_index_or_slice(self, x: Node) -> Tree:
        lbrack = self.expect(TT.LBRACK)
        index: List[Optional[Node]] = [None, None, None]
        ncolons = 0

        if not self.check(TT.COLON):
            index[0] = self.parse_expr()

        while self.check(TT.COLON) and ncolons < 2:
            self.advance()
            ncolons += 1
            if not self.check(TT.COLON, TT.RBRACK):
                index[ncolons] = self.parse_expr()

        self.expect(TT.RBRACK)

        if ncolons == 0:
            if index[0] is None:
                raise ParseError("expected operand", lbrack)
            return self.node_at('index', [x, index[0]], x)

        slice3 = None
        if ncolons == 2:
            if index[1] is None:
                raise ParseError("middle index required in 3-index slice", lbrack)
            if index[2] is None:
                raise ParseError("final index required in 3-index slice", lbrack)
            slice3 = _token(lbrack, 'SLICE3', '::')

        return self.node_at('slice', [x, index[0], index[1], index[2], slice3], x)

    def parse_call(self, fun: Node) -> Tree:
        lparen = self.expect(TT.LPAREN)
        args: List[Node] = []
        ellipsis: Optional[Token] = None

        while not self.check(TT.RPAREN):
            if ellipsis is not None:
                raise ParseError("can only use ... with final argument in list", self.current)
            args.append(self.parse_expr())
            if self.check(TT.ELLIPSIS):
                ellipsis = _token(self.advance())
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAREN, f"expected ')' in argument list, found {self.describe(self.current)}")
        return self.node_at('call', [fun, self.node('args', args, lparen), ellipsis], fun)

    def parse_composite_lit(self, typ: Optional[Node], lbrace_tok: Tok) -> Tree:
        lbrace = self.expect(TT.LBRACE)
        elts: List[Node] = []

        while not self.check(TT.RBRACE):
            elt = self.parse_element()
            if self.match(TT.COLON):
                value = self.parse_element()
                elt = self.node_at('key_value', [elt, value], elt)
            elts.append(elt)
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RBRACE, f"expected '}}' in composite literal, found {self.describe(self.current)}")
        children = [typ, self.node('elts', elts, lbrace)]

        if typ is None:
            return self.node('composite_lit', children, lbrace_tok)
        return self.node_at('composite_lit', children, typ)

    def parse_element(self) -> Node:
        if self.check(TT.LBRACE):
            # elided type: {1, 2} inside []Point{...}
            return self.parse_composite_lit(None, self.current)
        return self.parse_expr()

    # ========================================================================
    # Operands
    # ========================================================================

    def parse_operand(self) -> Node:
        tok = self.current

        if tok.type == TT.IDENT:
            self.advance()
            return _token(tok)

        if tok.type in BASIC_LITS:
            self.advance()
            return _token(tok)

        if tok.type == TT.LPAREN:
            self.advance()
            x = self.parse_expr()
            self.expect(TT.RPAREN)
            return self.node('paren', [x], tok)

        if tok.type == TT.FUNC:
            self.advance()
            sig = self.parse_signature(tok)
            if self.check(TT.LBRACE):
                body = self.parse_func_body()
                return self.node('func_lit', [sig, body], tok)
            return sig

        if tok.type in (TT.LBRACK, TT.MAP, TT.CHAN, TT.STRUCT, TT.INTERFACE):
            return self.parse_type()

        raise ParseError(f"expected operand, found {self.describe(tok)}", tok)

    def parse_func_body(self) -> Token:
        """Skip a function literal body; the evaluator never runs it."""
        lbrace = self.expect(TT.LBRACE)
        depth = 1
        parts: List[str] = []

        while depth:
            tok = self.current
            if tok.type == TT.EOF:
                raise ParseError("function body not terminated", lbrace)
            if tok.type == TT.LBRACE:
                depth += 1
            elif tok.type == TT.RBRACE:
                depth -= 1
            self.advance()
            if depth:
                parts.append(str(tok.value))

        return _token(lbrace, 'BODY', ' '.join(parts))

    # ========================================================================
    # Types
    # ========================================================================

    def parse_type(self) -> Node:
        tok = self.current

        if tok.type == TT.IDENT:
            return self.parse_type_name()

        if tok.type == TT.MUL:
            self.advance()
            return self.node('star', [self.parse_type()], tok)

        if tok.type == TT.LPAREN:
            self.advance()
            typ = self.parse_type()
            self.expect(TT.RPAREN)
            return self.node('paren', [typ], tok)

        if tok.type == TT.LBRACK:
            return self.parse_array_type()

        if tok.type == TT.MAP:
            return self.parse_map_type()

        if tok.type in (TT.CHAN, TT.ARROW):
            return self.parse_chan_type()

        if tok.type == TT.STRUCT:
            return self.parse_struct_type()

        if tok.type == TT.INTERFACE:
            return self.parse_interface_type()

        if tok.type == TT.FUNC:
            self.advance()
            return self.parse_signature(tok)

        raise ParseError(f"expected type, found {self.describe(tok)}", tok)

    def parse_type_name(self) -> Node:
        name = _token(self.expect(TT.IDENT))
        if self.check(TT.PERIOD) and self.peek(1).type == TT.IDENT:
            self.advance()
            sel = self.advance()
            return self.node_at('selector', [name, _token(sel)], name)
        return name

    def parse_array_type(self) -> Tree:
        lbrack = self.expect(TT.LBRACK)

        if self.match(TT.RBRACK):
            return self.node('array_type', [None, self.parse_type()], lbrack)

        if self.check(TT.ELLIPSIS):
            tok = self.advance()
            length: Node = self.node('ellipsis', [None], tok)
        else:
            length = self.parse_expr()

        self.expect(TT.RBRACK)
        return self.node('array_type', [length, self.parse_type()], lbrack)

    def parse_map_type(self) -> Tree:
        tok = self.expect(TT.MAP)
        self.expect(TT.LBRACK)
        key = self.parse_type()
        self.expect(TT.RBRACK)
        value = self.parse_type()
        return self.node('map_type', [key, value], tok)

    def parse_chan_type(self) -> Tree:
        tok = self.current

        if self.match(TT.ARROW):
            self.expect(TT.CHAN)
            direction = 'recv'
        else:
            self.expect(TT.CHAN)
            direction = 'send' if self.match(TT.ARROW) else 'both'

        elem = self.parse_type()
        return self.node('chan_type', [_token(tok, 'CHANDIR', direction), elem], tok)

    def parse_struct_type(self) -> Tree:
        tok = self.expect(TT.STRUCT)
        lbrace = self.expect(TT.LBRACE)
        fields: List[Node] = []

        while not self.check(TT.RBRACE):
            fields.append(self.parse_field_decl())
            if not self.match(TT.SEMICOLON):
                break

        self.expect(TT.RBRACE, f"expected '}}' in struct type, found {self.describe(self.current)}")
        return self.node('struct_type', [self.node('fields', fields, lbrace)], tok)

    def parse_field_decl(self) -> Tree:
        start = self.current
        names: List[Token] = []

        if start.type == TT.MUL:
            self.advance()
            typ: Node = self.node('star', [self.parse_type_name()], start)
        elif start.type == TT.IDENT and self.peek(1).type in (TT.PERIOD, TT.SEMICOLON, TT.RBRACE, TT.STRING):
            typ = self.parse_type_name()
        else:
            names.append(_token(self.expect(TT.IDENT, f"expected field name, found {self.describe(start)}")))
            while self.match(TT.COMMA):
                names.append(_token(self.expect(TT.IDENT)))
            typ = self.parse_type()

        tag = _token(self.advance()) if self.current.type in BASIC_LITS else None
        return self.node('field', [self.node('names', names, start), typ, tag], start)

    def parse_interface_type(self) -> Tree:
        tok = self.expect(TT.INTERFACE)
        lbrace = self.expect(TT.LBRACE)
        methods: List[Node] = []

        while not self.check(TT.RBRACE):
            start = self.current
            if start.type == TT.IDENT and self.peek(1).type == TT.LPAREN:
                name = _token(self.advance())
                methods.append(self.node('method', [name, self.parse_signature(start)], start))
            else:
                methods.append(self.parse_type())
            if not self.match(TT.SEMICOLON):
                break

        self.expect(TT.RBRACE, f"expected '}}' in interface type, found {self.describe(self.current)}")
        return self.node('interface_type', [self.node('methods', methods, lbrace)], tok)

    def parse_signature(self, tok: Tok) -> Tree:
        params = self.parse_parameters('params')

        if self.check(TT.LPAREN):
            results = self.parse_parameters('results')
        elif self.current.type in TYPE_STARTS:
            start = self.current
            typ = self.parse_type()
            field = self.node('field', [self.node('names', [], start), typ, None], start)
            results = self.node('results', [field], start)
        else:
            results = self.node('results', [], self.current)

        return self.node('func_type', [params, results], tok)

    def parse_parameters(self, label: str) -> Tree:
        lparen = self.expect(TT.LPAREN)
        entries: List[Tuple[Tok, Node, Optional[Node]]] = []

        while not self.check(TT.RPAREN):
            start = self.current
            if self.check(TT.ELLIPSIS):
                entries.append((start, self.parse_variadic_type(), None))
            else:
                x = self.parse_type()
                typ: Optional[Node] = None
                if not self.check(TT.COMMA, TT.RPAREN):
                    typ = self.parse_variadic_type() if self.check(TT.ELLIPSIS) else self.parse_type()
                entries.append((start, x, typ))
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAREN, f"expected ')' in parameter list, found {self.describe(self.current)}")

        fields: List[Node] = []
        if any(typ is not None for _, _, typ in entries):
            # named form: a, b int, c string
            names: List[Token] = []
            group_start: Optional[Tok] = None
            for start, x, typ in entries:
                if not (is_token(x) and x.type == 'IDENT'):
                    raise ParseError("mixed named and unnamed parameters", start)
                if group_start is None:
                    group_start = start
                names.append(x)
                if typ is not None:
                    fields.append(self.node('field', [self.node('names', names, group_start), typ, None], group_start))
                    names = []
                    group_start = None
            if names:
                raise ParseError("mixed named and unnamed parameters", lparen)
        else:
            for start, x, _ in entries:
                fields.append(self.node('field', [self.node('names', [], start), x, None], start))

        return self.node(label, fields, lparen)

    def parse_variadic_type(self) -> Tree:
        tok = self.expect(TT.ELLIPSIS)
        return self.node('ellipsis', [self.parse_type()], tok)


def parse_source(source: str) -> Node:
    """
    Parse one Go expression to a syntax tree.

    Returns lark Tree/Token nodes for the evaluator.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse()


def parse_expr(source: str) -> Node:
    """Public alias of parse_source, named after go/parser.ParseExpr."""
    return parse_source(source)
