"""Block stack management for the Sprig parser.

Tracks open block tags so end tags can be validated, unclosed blocks can
be reported with the line that opened them, and nesting depth is bounded.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sprig._types import Token, TokenType
from sprig.environment.exceptions import ErrorCode

if TYPE_CHECKING:
    from sprig.parser.errors import ParseError


class BlockStackMixin:
    """Open-block bookkeeping shared by the block parsing mixins."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _tokens: Sequence[Token]
        _pos: int
        _block_stack: list[tuple[str, int, int]]
        _max_nesting: int

        @property
        def _current(self) -> Token: ...
        def _peek(self, offset: int = 0) -> Token: ...
        def _advance(self) -> Token: ...
        def _expect(self, token_type: TokenType) -> Token: ...
        def _match(self, *types: TokenType) -> bool: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            *,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

    def _push_block(self, name: str, token: Token) -> None:
        if len(self._block_stack) >= self._max_nesting:
            raise self._error(
                f"Maximum nesting level ({self._max_nesting}) exceeded",
                token,
                code=ErrorCode.NESTING_TOO_DEEP,
            )
        self._block_stack.append((name, token.lineno, token.col_offset))

    def _at_keyword(self, *keywords: str) -> bool:
        """Current position is ``{%`` followed by one of ``keywords``."""
        if not self._match(TokenType.BLOCK_BEGIN):
            return False
        token = self._peek(1)
        return token.type == TokenType.NAME and token.value in keywords

    def _consume_end_tag(self, block_type: str) -> None:
        """Consume ``{% end %}`` or ``{% end<block_type> %}`` and pop the block.

        ``{% endblock name %}`` may repeat the block name.
        """
        name, lineno, _ = self._block_stack[-1]
        if self._match(TokenType.EOF):
            raise self._error(
                f"Unclosed '{name}' block started at line {lineno}",
                suggestion=f"Add {{% end{name} %}} or {{% end %}}",
                code=ErrorCode.UNCLOSED_BLOCK,
            )

        keyword = self._peek(1)
        if not self._at_keyword("end", f"end{block_type}"):
            raise self._error(
                f"Expected end of '{block_type}' block (opened at line {lineno}), "
                f"got '{keyword.value}'",
                keyword,
                suggestion=f"Close '{block_type}' with {{% end{block_type} %}} or {{% end %}}",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        self._advance()  # consume '{%'
        self._advance()  # consume end keyword
        if block_type == "block" and self._match(TokenType.NAME):
            self._advance()
        self._expect(TokenType.BLOCK_END)
        self._block_stack.pop()
