"""Token navigation for the Sprig parser."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sprig._types import Token, TokenType
from sprig.parser.errors import ParseError

if TYPE_CHECKING:
    from sprig.environment.exceptions import ErrorCode


class TokenNavigationMixin:
    """Cursor over the token list shared by every parsing mixin."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _tokens: Sequence[Token]
        _pos: int
        _name: str | None
        _filename: str | None
        _source: str | None

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        """Token ``offset`` positions past the current one (EOF-clamped)."""
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        return self._current.type in types

    def _match_name(self, *values: str) -> bool:
        """Current token is a NAME with one of ``values``."""
        token = self._current
        return token.type == TokenType.NAME and token.value in values

    def _expect(self, token_type: TokenType) -> Token:
        if self._current.type != token_type:
            raise self._error(
                f"Expected {_describe_type(token_type)}, got {_describe_token(self._current)}"
            )
        return self._advance()

    def _expect_name(self, value: str) -> Token:
        if not self._match_name(value):
            raise self._error(f"Expected '{value}', got {_describe_token(self._current)}")
        return self._advance()

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
        *,
        code: ErrorCode | None = None,
    ) -> ParseError:
        return ParseError(
            message,
            token or self._current,
            source=self._source,
            filename=self._filename,
            suggestion=suggestion,
            name=self._name,
            code=code,
        )


def _describe_type(token_type: TokenType) -> str:
    if token_type in (TokenType.NAME, TokenType.STRING, TokenType.INTEGER, TokenType.FLOAT):
        return token_type.value
    if token_type == TokenType.EOF:
        return "end of template"
    return f"'{_DELIMITER_TEXT.get(token_type, token_type.value)}'"


def _describe_token(token: Token) -> str:
    if token.type == TokenType.EOF:
        return "end of template"
    if token.type == TokenType.NAME:
        return f"name '{token.value}'"
    if token.type == TokenType.STRING:
        return f"string {token.value!r}"
    return f"'{token.value}'"


_DELIMITER_TEXT = {
    TokenType.VARIABLE_BEGIN: "{{",
    TokenType.VARIABLE_END: "}}",
    TokenType.RAW_BEGIN: "{!",
    TokenType.RAW_END: "!}",
    TokenType.BLOCK_BEGIN: "{%",
    TokenType.BLOCK_END: "%}",
}
