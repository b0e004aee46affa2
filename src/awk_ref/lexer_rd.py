"""
Lexer for awk - Recursive Descent Parser

Scans awk source text one token at a time at a position chosen by the parser.

Features:
- No separate tokenization pass: the parser pulls tokens by offset
- Memoised per (offset, mode) so backtracking re-reads cached tokens
- Context-sensitive ERE literals (only where the parser asks for one)
- Longest-match identifiers, looked up in the keyword tables afterwards
- Position tracking (line, column)
"""

from bisect import bisect_right
from typing import Dict, List, Tuple

from .token_types import TT, Tok
from .types import AwkSyntaxError

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    awk scanner.

    Newlines are significant (statement terminators) and come back as
    NEWLINE tokens; blanks, comments and backslash-newline continuations
    are skipped before every token.
    """

    # Keyword mapping
    KEYWORDS = {
        'BEGIN': TT.BEGIN,
        'END': TT.END,
        'function': TT.FUNCTION,
        'func': TT.FUNCTION,
        'if': TT.IF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'for': TT.FOR,
        'do': TT.DO,
        'break': TT.BREAK,
        'continue': TT.CONTINUE,
        'next': TT.NEXT,
        'nextfile': TT.NEXTFILE,
        'exit': TT.EXIT,
        'return': TT.RETURN,
        'delete': TT.DELETE,
        'getline': TT.GETLINE,
        'print': TT.PRINT,
        'printf': TT.PRINTF,
        'in': TT.IN,
    }

    BUILTIN_FUNCS = frozenset({
        'length', 'substr', 'index', 'split', 'sub', 'gsub', 'match',
        'sprintf', 'tolower', 'toupper',
        'sin', 'cos', 'atan2', 'exp', 'log', 'sqrt', 'int', 'rand', 'srand',
        'close', 'fflush', 'system',
    })

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('**=', TT.POW_ASSIGN),

        # Two-character operators
        ('&&', TT.AND),
        ('||', TT.OR),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('>>', TT.APPEND),
        ('!~', TT.NOMATCH),
        ('+=', TT.ADD_ASSIGN),
        ('-=', TT.SUB_ASSIGN),
        ('*=', TT.MUL_ASSIGN),
        ('/=', TT.DIV_ASSIGN),
        ('%=', TT.MOD_ASSIGN),
        ('^=', TT.POW_ASSIGN),
        ('++', TT.INCR),
        ('--', TT.DECR),
        ('**', TT.POW),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('^', TT.POW),
        ('<', TT.LT),
        ('>', TT.GT),
        ('~', TT.TILDE),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
        (';', TT.SEMI),
        ('?', TT.QMARK),
        (':', TT.COLON),
        ('$', TT.DOLLAR),
        ('|', TT.PIPE),
    ]

    def __init__(self, source: str):
        self.source = source
        self._cache: Dict[Tuple[int, bool], Tok] = {}
        self._line_starts: List[int] = [0]

        for idx, ch in enumerate(source):
            if ch == '\n':
                self._line_starts.append(idx + 1)

    # ========================================================================
    # Public API
    # ========================================================================

    def token_at(self, pos: int) -> Tok:
        """Scan the token starting at (or after blanks following) ``pos``."""
        key = (pos, False)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        tok = self.scan_token(self.skip_blanks(pos))
        self._cache[key] = tok
        return tok

    def regex_at(self, pos: int) -> Tok:
        """Scan an ERE literal at ``pos``; the caller has seen a '/' there."""
        key = (pos, True)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        tok = self.scan_regex(self.skip_blanks(pos))
        self._cache[key] = tok
        return tok

    def location(self, offset: int) -> Tuple[int, int]:
        """Return the 1-based (line, column) for a character offset."""
        line_idx = bisect_right(self._line_starts, offset) - 1
        return line_idx + 1, offset - self._line_starts[line_idx] + 1

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_token(self, pos: int) -> Tok:
        """Scan next token"""
        if pos >= len(self.source):
            return self.make(TT.EOF, None, pos, pos)

        ch = self.source[pos]

        # Newlines
        if ch == '\n':
            return self.make(TT.NEWLINE, '\n', pos, pos + 1)

        # String literals
        if ch == '"':
            return self.scan_string(pos)

        # Numbers
        if ch.isdigit() or (ch == '.' and self.peek(pos + 1).isdigit()):
            return self.scan_number(pos)

        # Identifiers and keywords
        if ch.isalpha() or ch == '_':
            return self.scan_identifier(pos)

        # Operators and punctuation
        return self.scan_operator(pos)

    def scan_string(self, pos: int) -> Tok:
        """Scan string literal; value keeps escapes undecoded."""
        idx = pos + 1
        value = ''

        while idx < len(self.source) and self.source[idx] != '"':
            ch = self.source[idx]

            if ch == '\n':
                break

            if ch == '\\' and idx + 1 < len(self.source):
                value += ch + self.source[idx + 1]
                idx += 2
                continue

            value += ch
            idx += 1

        if idx >= len(self.source) or self.source[idx] != '"':
            line, col = self.location(pos)
            raise LexError("non-terminated string", line, col)

        return self.make(TT.STRING, value, pos, idx + 1)

    def scan_regex(self, pos: int) -> Tok:
        """Scan /ERE/ literal; only '\\/' is unescaped here."""
        idx = pos + 1
        value = ''
        in_bracket = False

        while idx < len(self.source):
            ch = self.source[idx]

            if ch == '\n':
                break

            if ch == '\\' and idx + 1 < len(self.source):
                nxt = self.source[idx + 1]
                value += '/' if nxt == '/' else ch + nxt
                idx += 2
                continue

            if ch == '[' and not in_bracket:
                in_bracket = True
                value += ch
                idx += 1

                # ']' right after '[' or '[^' is a literal member
                if self.peek(idx) == '^':
                    value += '^'
                    idx += 1
                if self.peek(idx) == ']':
                    value += ']'
                    idx += 1
                continue

            if in_bracket and ch == '[' and self.peek(idx + 1) in (':', '.', '='):
                close = self.source.find(self.peek(idx + 1) + ']', idx + 2)
                if close != -1:
                    value += self.source[idx:close + 2]
                    idx = close + 2
                    continue

            if ch == ']' and in_bracket:
                in_bracket = False
            elif ch == '/' and not in_bracket:
                return self.make(TT.ERE, value, pos, idx + 1)

            value += ch
            idx += 1

        line, col = self.location(pos)
        raise LexError("non-terminated regular expression", line, col)

    def scan_number(self, pos: int) -> Tok:
        """Scan number literal"""
        idx = pos

        # Integer part
        while self.peek(idx).isdigit():
            idx += 1

        # Decimal part
        if self.peek(idx) == '.':
            idx += 1
            while self.peek(idx).isdigit():
                idx += 1

        # Scientific notation; 'e' without digits belongs to the next name
        if self.peek(idx) in ('e', 'E'):
            exp = idx + 1
            if self.peek(exp) in ('+', '-'):
                exp += 1
            if self.peek(exp).isdigit():
                idx = exp
                while self.peek(idx).isdigit():
                    idx += 1

        return self.make(TT.NUMBER, self.source[pos:idx], pos, idx)

    def scan_identifier(self, pos: int) -> Tok:
        """Scan identifier or keyword (longest match, then table lookup)"""
        idx = pos

        while self.peek(idx).isalnum() or self.peek(idx) == '_':
            idx += 1

        value = self.source[pos:idx]

        # Check if keyword
        token_type = self.KEYWORDS.get(value)
        if token_type is not None:
            return self.make(token_type, value, pos, idx)

        if value in self.BUILTIN_FUNCS:
            return self.make(TT.BUILTIN_FUNC, value, pos, idx)

        if self.peek(idx) == '(':
            return self.make(TT.FUNC_NAME, value, pos, idx)

        return self.make(TT.NAME, value, pos, idx)

    def scan_operator(self, pos: int) -> Tok:
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, pos):
                return self.make(op_type, op_str, pos, pos + len(op_str))

        line, col = self.location(pos)
        raise LexError(f"unexpected character '{self.source[pos]}'", line, col)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, idx: int) -> str:
        """Look at the character at ``idx`` ('\\0' past the end)"""
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def skip_blanks(self, pos: int) -> int:
        """Skip blanks, comments and backslash-newline continuations"""
        src = self.source

        while pos < len(src):
            ch = src[pos]

            if ch in (' ', '\t', '\r', '\f', '\v'):
                pos += 1
            elif ch == '\\' and src.startswith('\n', pos + 1):
                pos += 2
            elif ch == '\\' and src.startswith('\r\n', pos + 1):
                pos += 3
            elif ch == '#':
                while pos < len(src) and src[pos] != '\n':
                    pos += 1
            else:
                break

        return pos

    def make(self, token_type: TT, value, start: int, end: int) -> Tok:
        """Build a token carrying its source span"""
        line, col = self.location(start)
        return Tok(type=token_type, value=value, line=line, column=col, start=start, end=end)


class LexError(AwkSyntaxError):
    """Lexical analysis error"""


# ============================================================================
# Escape decoding
# ============================================================================

_SIMPLE_ESCAPES = {
    '"': '"',
    '\\': '\\',
    '/': '/',
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
}


def decode_escapes(text: str) -> str:
    """Decode awk string escapes; unknown escapes keep their backslash."""
    if '\\' not in text:
        return text

    out: List[str] = []
    idx = 0

    while idx < len(text):
        ch = text[idx]

        if ch != '\\' or idx + 1 >= len(text):
            out.append(ch)
            idx += 1
            continue

        nxt = text[idx + 1]

        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            idx += 2
        elif nxt in '01234567':
            end = idx + 1
            while end < len(text) and end < idx + 4 and text[end] in '01234567':
                end += 1
            out.append(chr(int(text[idx + 1:end], 8)))
            idx = end
        else:
            out.append('\\' + nxt)
            idx += 2

    return ''.join(out)


def tokenize(source: str) -> List[Tok]:
    """Convenience function to scan a whole source in default mode"""
    lexer = Lexer(source)
    tokens: List[Tok] = []
    pos = 0

    while True:
        tok = lexer.token_at(pos)
        tokens.append(tok)
        if tok.type is TT.EOF:
            return tokens
        pos = tok.end
