"""
Token Types for the awk parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    ERE = auto()
    NAME = auto()
    FUNC_NAME = auto()  # NAME immediately followed by '('
    BUILTIN_FUNC = auto()

    # Keywords
    BEGIN = auto()
    END = auto()
    FUNCTION = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    DO = auto()
    BREAK = auto()
    CONTINUE = auto()
    NEXT = auto()
    NEXTFILE = auto()
    EXIT = auto()
    RETURN = auto()
    DELETE = auto()
    GETLINE = auto()
    PRINT = auto()
    PRINTF = auto()
    IN = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    POW = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    APPEND = auto()  # >>

    # Matching
    TILDE = auto()
    NOMATCH = auto()  # !~

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()

    # Assignment
    ASSIGN = auto()
    ADD_ASSIGN = auto()
    SUB_ASSIGN = auto()
    MUL_ASSIGN = auto()
    DIV_ASSIGN = auto()
    MOD_ASSIGN = auto()
    POW_ASSIGN = auto()

    # Increment/Decrement
    INCR = auto()
    DECR = auto()

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    SEMI = auto()
    QMARK = auto()
    COLON = auto()
    DOLLAR = auto()
    PIPE = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info.

    ``start``/``end`` are character offsets into the source; the parser
    resumes scanning at ``end``.
    """

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    start: int = 0
    end: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


ASSIGN_OPS = {
    TT.ASSIGN: '=',
    TT.ADD_ASSIGN: '+=',
    TT.SUB_ASSIGN: '-=',
    TT.MUL_ASSIGN: '*=',
    TT.DIV_ASSIGN: '/=',
    TT.MOD_ASSIGN: '%=',
    TT.POW_ASSIGN: '^=',
}

COMPARE_OPS = {
    TT.LT: '<',
    TT.LTE: '<=',
    TT.EQ: '==',
    TT.NEQ: '!=',
    TT.GT: '>',
    TT.GTE: '>=',
}
