"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of tokens produced by :class:`sprig.lexer.Lexer`."""

    # Template structure
    DATA = "data"
    VARIABLE_BEGIN = "variable_begin"  # {{
    VARIABLE_END = "variable_end"  # }}
    RAW_BEGIN = "raw_begin"  # {!
    RAW_END = "raw_end"  # !}
    BLOCK_BEGIN = "block_begin"  # {%
    BLOCK_END = "block_end"  # %}

    # Literals and names
    NAME = "name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    DOT = "."
    RANGE = ".."
    COMMA = ","
    COLON = ":"
    QUESTION = "?"
    PIPE = "|"
    TILDE = "~"
    ASSIGN = "="

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed token with its source position."""

    type: TokenType
    value: str
    lineno: int
    col_offset: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
