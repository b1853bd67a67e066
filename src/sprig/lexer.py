"""Template lexer.

Splits template source into a flat token stream:

- Text outside tags becomes DATA tokens.
- ``{{ expr }}``, ``{! expr !}`` and ``{% stmt %}`` produce BEGIN/END
  delimiter tokens around expression tokens.
- ``{# ... #}`` comments are dropped entirely.
- ``{% verbatim %}...{% endverbatim %}`` (alias ``raw``) becomes a single
  DATA token, so nothing inside is interpreted.

String literals are lexed as single STRING tokens, so operator characters
inside quotes are never mistaken for syntax.
"""

from __future__ import annotations

import re

from sprig._types import Token, TokenType
from sprig.environment.exceptions import ErrorCode, TemplateSyntaxError


class LexerError(TemplateSyntaxError):
    """Malformed template source detected while tokenizing."""


# Two-character operators are matched before single characters.
_OPERATORS_2 = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "..": TokenType.RANGE,
}

_OPERATORS_1 = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ".": TokenType.DOT,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "?": TokenType.QUESTION,
    "|": TokenType.PIPE,
    "~": TokenType.TILDE,
    "=": TokenType.ASSIGN,
    "+": TokenType.ADD,
    "-": TokenType.SUB,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "%": TokenType.MOD,
    "<": TokenType.LT,
    ">": TokenType.GT,
}

# opener -> (begin type, closer, end type)
_DELIMITERS = {
    "{{": (TokenType.VARIABLE_BEGIN, "}}", TokenType.VARIABLE_END),
    "{!": (TokenType.RAW_BEGIN, "!}", TokenType.RAW_END),
    "{%": (TokenType.BLOCK_BEGIN, "%}", TokenType.BLOCK_END),
}

_STRING_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


class Lexer:
    """Tokenizer for template source.

    Example:
        >>> Lexer("Hi {{ name }}").tokenize()
        [Token(DATA, 'Hi ', 1:0), Token(VARIABLE_BEGIN, '{{', 1:3), ...]
    """

    __slots__ = ("_source", "_name", "_filename", "_pos", "_lineno", "_line_start", "_tokens")

    _TAG_START = re.compile(r"\{\{|\{!|\{%|\{#")
    _VERBATIM_START = re.compile(r"\{%\s*(verbatim|raw)\s*%\}")
    _VERBATIM_END = {
        "verbatim": re.compile(r"\{%\s*endverbatim\s*%\}"),
        "raw": re.compile(r"\{%\s*endraw\s*%\}"),
    }
    _WHITESPACE = re.compile(r"\s+")
    _NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
    _NUMBER = re.compile(r"[0-9]+(\.[0-9]+)?")

    def __init__(self, source: str, *, name: str | None = None, filename: str | None = None):
        self._source = source
        self._name = name
        self._filename = filename
        self._pos = 0
        self._lineno = 1
        self._line_start = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source. The last token is always EOF."""
        source = self._source
        while self._pos < len(source):
            match = self._TAG_START.search(source, self._pos)
            if match is None:
                self._emit(TokenType.DATA, source[self._pos :])
                self._advance(len(source))
                break
            if match.start() > self._pos:
                self._emit(TokenType.DATA, source[self._pos : match.start()])
                self._advance(match.start())

            opener = match.group()
            if opener == "{#":
                self._skip_comment()
            elif opener == "{%" and self._VERBATIM_START.match(source, self._pos):
                self._lex_verbatim()
            else:
                self._lex_tag(opener)

        self._emit(TokenType.EOF, "")
        return self._tokens

    # ─────────────────────────────────────────────────────────────────────
    # Positions
    # ─────────────────────────────────────────────────────────────────────

    def _advance(self, new_pos: int) -> None:
        source = self._source
        newlines = source.count("\n", self._pos, new_pos)
        if newlines:
            self._lineno += newlines
            self._line_start = source.rfind("\n", self._pos, new_pos) + 1
        self._pos = new_pos

    def _emit(self, token_type: TokenType, value: str) -> None:
        self._tokens.append(
            Token(token_type, value, self._lineno, self._pos - self._line_start)
        )

    def _error(self, message: str, code: ErrorCode) -> LexerError:
        return LexerError(
            message,
            lineno=self._lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
            col_offset=self._pos - self._line_start,
            code=code,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Tags
    # ─────────────────────────────────────────────────────────────────────

    def _skip_comment(self) -> None:
        end = self._source.find("#}", self._pos + 2)
        if end == -1:
            raise self._error("Unclosed comment, expected '#}'", ErrorCode.UNCLOSED_COMMENT)
        self._advance(end + 2)

    def _lex_verbatim(self) -> None:
        start = self._VERBATIM_START.match(self._source, self._pos)
        assert start is not None
        keyword = start.group(1)
        end = self._VERBATIM_END[keyword].search(self._source, start.end())
        if end is None:
            raise self._error(
                f"Unclosed '{keyword}' block, expected '{{% end{keyword} %}}'",
                ErrorCode.UNCLOSED_TAG,
            )
        self._advance(start.end())
        content = self._source[start.end() : end.start()]
        if content:
            self._emit(TokenType.DATA, content)
        self._advance(end.end())

    def _lex_tag(self, opener: str) -> None:
        begin_type, closer, end_type = _DELIMITERS[opener]
        self._emit(begin_type, opener)
        self._advance(self._pos + 2)
        self._lex_expression(closer, end_type)

    def _lex_expression(self, closer: str, end_type: TokenType) -> None:
        source = self._source
        depth = 0
        while True:
            ws = self._WHITESPACE.match(source, self._pos)
            if ws:
                self._advance(ws.end())
            if self._pos >= len(source):
                raise self._error(f"Unclosed tag, expected '{closer}'", ErrorCode.UNCLOSED_TAG)

            if depth == 0 and source.startswith(closer, self._pos):
                self._emit(end_type, closer)
                self._advance(self._pos + 2)
                return

            char = source[self._pos]
            if char in "'\"":
                self._lex_string(char)
                continue

            if "0" <= char <= "9":
                number = self._NUMBER.match(source, self._pos)
                assert number is not None
                kind = TokenType.FLOAT if number.group(1) else TokenType.INTEGER
                self._emit(kind, number.group())
                self._advance(number.end())
                continue

            name = self._NAME.match(source, self._pos)
            if name:
                self._emit(TokenType.NAME, name.group())
                self._advance(name.end())
                continue

            pair = source[self._pos : self._pos + 2]
            if pair in _OPERATORS_2:
                self._emit(_OPERATORS_2[pair], pair)
                self._advance(self._pos + 2)
                continue

            if char in _OPERATORS_1:
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                self._emit(_OPERATORS_1[char], char)
                self._advance(self._pos + 1)
                continue

            raise self._error(
                f"Unexpected character {char!r} in expression",
                ErrorCode.UNEXPECTED_CHARACTER,
            )

    def _lex_string(self, quote: str) -> None:
        source = self._source
        start = self._pos
        pos = start + 1
        chars: list[str] = []
        while pos < len(source):
            char = source[pos]
            if char == "\\" and pos + 1 < len(source):
                nxt = source[pos + 1]
                chars.append(_STRING_ESCAPES.get(nxt, "\\" + nxt))
                pos += 2
                continue
            if char == quote:
                self._emit(TokenType.STRING, "".join(chars))
                self._advance(pos + 1)
                return
            chars.append(char)
            pos += 1
        raise self._error("Unclosed string literal", ErrorCode.UNCLOSED_STRING)


def tokenize(source: str, *, name: str | None = None, filename: str | None = None) -> list[Token]:
    """Tokenize ``source`` and return the token list (ending with EOF)."""
    return Lexer(source, name=name, filename=filename).tokenize()
