"""
Lexer for Go expressions - Recursive Descent front end

Tokenizes Go source text into a stream of tokens.

Features:
- Single-pass tokenization
- Automatic semicolon insertion after line-final tokens
- Position tracking (line, column, offset)
- All Go literal syntaxes (raw strings, runes, hex floats, imaginary)
"""

from typing import List, Optional

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(
            f"{message} at line {line}, col {column}" if line is not None else message
        )


class Lexer:
    """
    Go expression lexer.

    Newlines are insignificant except where Go inserts a semicolon: after a
    line's final identifier, literal, keyword of the return/break family,
    ++/--, or closing bracket.
    """

    KEYWORDS = {
        'func': TT.FUNC,
        'map': TT.MAP,
        'chan': TT.CHAN,
        'struct': TT.STRUCT,
        'interface': TT.INTERFACE,
        'break': TT.KEYWORD,
        'case': TT.KEYWORD,
        'const': TT.KEYWORD,
        'continue': TT.KEYWORD,
        'default': TT.KEYWORD,
        'defer': TT.KEYWORD,
        'else': TT.KEYWORD,
        'fallthrough': TT.KEYWORD,
        'for': TT.KEYWORD,
        'go': TT.KEYWORD,
        'goto': TT.KEYWORD,
        'if': TT.KEYWORD,
        'import': TT.KEYWORD,
        'package': TT.KEYWORD,
        'range': TT.KEYWORD,
        'return': TT.KEYWORD,
        'select': TT.KEYWORD,
        'switch': TT.KEYWORD,
        'type': TT.KEYWORD,
        'var': TT.KEYWORD,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('<<=', TT.OP_ASSIGN),
        ('>>=', TT.OP_ASSIGN),
        ('&^=', TT.OP_ASSIGN),
        ('...', TT.ELLIPSIS),

        # Two-character operators
        ('&&', TT.LAND),
        ('||', TT.LOR),
        ('<-', TT.ARROW),
        ('++', TT.INC),
        ('--', TT.DEC),
        ('==', TT.EQL),
        ('!=', TT.NEQ),
        ('<=', TT.LEQ),
        ('>=', TT.GEQ),
        (':=', TT.DEFINE),
        ('<<', TT.SHL),
        ('>>', TT.SHR),
        ('&^', TT.AND_NOT),
        ('+=', TT.OP_ASSIGN),
        ('-=', TT.OP_ASSIGN),
        ('*=', TT.OP_ASSIGN),
        ('/=', TT.OP_ASSIGN),
        ('%=', TT.OP_ASSIGN),
        ('&=', TT.OP_ASSIGN),
        ('|=', TT.OP_ASSIGN),
        ('^=', TT.OP_ASSIGN),

        # Single-character operators
        ('+', TT.ADD),
        ('-', TT.SUB),
        ('*', TT.MUL),
        ('/', TT.QUO),
        ('%', TT.REM),
        ('&', TT.AND),
        ('|', TT.OR),
        ('^', TT.XOR),
        ('<', TT.LSS),
        ('>', TT.GTR),
        ('=', TT.ASSIGN),
        ('!', TT.NOT),
        ('(', TT.LPAREN),
        (')', TT.RPAREN),
        ('[', TT.LBRACK),
        (']', TT.RBRACK),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
        ('.', TT.PERIOD),
        (';', TT.SEMICOLON),
        (':', TT.COLON),
    ]

    # Tokens after which a newline becomes a semicolon
    SEMI_TRIGGERS = {
        TT.IDENT, TT.INT, TT.FLOAT, TT.IMAG, TT.CHAR, TT.STRING,
        TT.RPAREN, TT.RBRACK, TT.RBRACE, TT.INC, TT.DEC,
    }
    SEMI_KEYWORDS = {'break', 'continue', 'fallthrough', 'return'}

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.insert_semicolon()
        self.tokens.append(Tok(TT.EOF, None, self.line, self.column, self.pos))
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        ch = self.peek()

        if ch in (' ', '\t', '\r'):
            self.advance()
            return

        if ch == '\n':
            self.insert_semicolon()
            self.advance()
            return

        # Comments
        if ch == '/' and self.peek(1) == '/':
            self.skip_line_comment()
            return
        if ch == '/' and self.peek(1) == '*':
            self.skip_block_comment()
            return

        if ch == '"':
            self.scan_string()
            return
        if ch == '`':
            self.scan_raw_string()
            return
        if ch == "'":
            self.scan_rune()
            return

        if ch.isdigit() or (ch == '.' and self.peek(1).isdigit()):
            self.scan_number()
            return

        if ch.isalpha() or ch == '_':
            self.scan_identifier()
            return

        self.scan_operator()

    def insert_semicolon(self):
        """Emit an automatic semicolon when the previous token allows one"""
        if not self.tokens:
            return

        last = self.tokens[-1]
        if last.type in self.SEMI_TRIGGERS or (last.type == TT.KEYWORD and last.value in self.SEMI_KEYWORDS):
            self.tokens.append(Tok(TT.SEMICOLON, '\n', self.line, self.column, self.pos))

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan interpreted string literal: "..." """
        start = self.mark()
        value = self.advance()

        while True:
            ch = self.peek()
            if ch == '\0' and self.pos >= len(self.source) or ch == '\n':
                raise LexError("string literal not terminated", start[0], start[1])
            if ch == '\\':
                value += self.advance(2)
                continue
            value += self.advance()
            if ch == '"':
                break

        self.emit(TT.STRING, value, start)

    def scan_raw_string(self):
        """Scan raw string literal: `...` (may span lines)"""
        start = self.mark()
        value = self.advance()

        while self.peek() != '`':
            if self.pos >= len(self.source):
                raise LexError("raw string literal not terminated", start[0], start[1])
            value += self.advance()

        value += self.advance()
        self.emit(TT.STRING, value, start)

    def scan_rune(self):
        """Scan rune literal: 'x', '\\n', '\\u00e9'"""
        start = self.mark()
        value = self.advance()

        while True:
            ch = self.peek()
            if self.pos >= len(self.source) or ch == '\n':
                raise LexError("rune literal not terminated", start[0], start[1])
            if ch == '\\':
                value += self.advance(2)
                continue
            value += self.advance()
            if ch == "'":
                break

        self.emit(TT.CHAR, value, start)

    def scan_number(self):
        """Scan int, float or imaginary literal; validation is left to constants"""
        start = self.mark()
        value = ''
        is_float = False

        if self.peek() == '0' and self.peek(1) in 'xXbBoO' and self.peek(1) != '\0':
            prefix = self.peek(1).lower()
            value += self.advance(2)
            digits = '0123456789abcdefABCDEF_' if prefix == 'x' else '0123456789_'

            while self.peek() in digits and self.peek() != '\0':
                value += self.advance()

            if prefix == 'x':
                if self.peek() == '.':
                    is_float = True
                    value += self.advance()
                    while self.peek() in digits and self.peek() != '\0':
                        value += self.advance()
                if self.peek() in ('p', 'P'):
                    is_float = True
                    value += self.scan_exponent()
        else:
            while self.peek().isdigit() or self.peek() == '_':
                value += self.advance()

            if self.peek() == '.' and self.peek(1) != '.':
                is_float = True
                value += self.advance()
                while self.peek().isdigit() or self.peek() == '_':
                    value += self.advance()

            if self.peek() in ('e', 'E'):
                is_float = True
                value += self.scan_exponent()

        if self.peek() == 'i':
            value += self.advance()
            self.emit(TT.IMAG, value, start)
            return

        if self.peek().isalnum() or self.peek() == '_':
            raise LexError(f"invalid character {self.peek()!r} in numeric literal", self.line, self.column)

        self.emit(TT.FLOAT if is_float else TT.INT, value, start)

    def scan_exponent(self) -> str:
        value = self.advance()
        if self.peek() in ('+', '-'):
            value += self.advance()
        while self.peek().isdigit() or self.peek() == '_':
            value += self.advance()
        return value

    def scan_identifier(self):
        """Scan identifier or keyword"""
        start = self.mark()
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value, start)

    def scan_operator(self):
        """Scan operators and punctuation"""
        start = self.mark()
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, start)
                return

        ch = self.peek()
        raise LexError(f"invalid character {ch!r}", self.line, self.column)

    def skip_line_comment(self):
        while self.pos < len(self.source) and self.peek() != '\n':
            self.advance()

    def skip_block_comment(self):
        start = self.mark()
        self.advance(2)
        saw_newline = False

        while not self.source.startswith('*/', self.pos):
            if self.pos >= len(self.source):
                raise LexError("comment not terminated", start[0], start[1])
            if self.peek() == '\n':
                saw_newline = True
            self.advance()

        self.advance(2)

        if saw_newline:
            self.insert_semicolon()

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = self.source[self.pos:self.pos + n]
        for ch in result:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(result)
        return result

    def mark(self) -> tuple:
        return (self.line, self.column, self.pos)

    def emit(self, token_type: TT, value, start: tuple):
        """Emit a token positioned at its first character"""
        line, column, offset = start
        self.tokens.append(Tok(type=token_type, value=value, line=line, column=column, offset=offset))


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
