"""Statement and body parsing for the Sprig parser."""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING

from sprig._types import Token, TokenType
from sprig.environment.exceptions import ErrorCode
from sprig.nodes import Data, Output

if TYPE_CHECKING:
    from sprig.nodes import Expr, Node
    from sprig.parser.errors import ParseError

# Keywords that end or continue an enclosing block
_CONTINUATION_KEYWORDS = frozenset({
    "end",
    "endif",
    "endfor",
    "endwhile",
    "endblock",
    "endspaceless",
    "endautoescape",
    "else",
    "elseif",
    "elif",
    "empty",
})

# Statement keyword -> parser method
_STATEMENT_PARSERS = {
    "if": "_parse_if",
    "for": "_parse_for",
    "while": "_parse_while",
    "block": "_parse_block_tag",
    "extends": "_parse_extends",
    "include": "_parse_include",
    "set": "_parse_set",
    "spaceless": "_parse_spaceless",
    "autoescape": "_parse_autoescape",
    "debug": "_parse_debug",
}


class StatementParsingMixin:
    """Parses template bodies: text, interpolations and statement tags."""

    if TYPE_CHECKING:
        _block_stack: list[tuple[str, int, int]]
        _autoescape: list[bool]

        @property
        def _current(self) -> Token: ...
        def _peek(self, offset: int = 0) -> Token: ...
        def _advance(self) -> Token: ...
        def _match(self, *types: TokenType) -> bool: ...
        def _expect(self, token_type: TokenType) -> Token: ...
        def _parse_expression(self) -> Expr: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            *,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

    def _parse_body(self) -> list[Node]:
        """Parse nodes until EOF or a tag that closes/continues a block."""
        nodes: list[Node] = []
        while not self._match(TokenType.EOF):
            token = self._current
            if token.type == TokenType.DATA:
                nodes.append(self._parse_data())
            elif token.type in (TokenType.VARIABLE_BEGIN, TokenType.RAW_BEGIN):
                nodes.append(self._parse_output())
            elif token.type == TokenType.BLOCK_BEGIN:
                keyword = self._peek(1)
                if keyword.type == TokenType.NAME and keyword.value in _CONTINUATION_KEYWORDS:
                    if not self._block_stack:
                        raise self._error(
                            f"Unexpected '{{% {keyword.value} %}}' with no open block",
                            keyword,
                            code=ErrorCode.UNEXPECTED_TOKEN,
                        )
                    return nodes
                result = self._parse_block()
                if isinstance(result, list):
                    nodes.extend(result)
                elif result is not None:
                    nodes.append(result)
            else:
                raise self._error(f"Unexpected token '{token.value}'")
        return nodes

    def _parse_data(self) -> Data:
        token = self._advance()
        return Data(lineno=token.lineno, col_offset=token.col_offset, value=token.value)

    def _parse_output(self) -> Output:
        """Parse {{ expr }} (escaped per autoescape) or {! expr !} (raw)."""
        start = self._advance()
        raw = start.type == TokenType.RAW_BEGIN
        end_type = TokenType.RAW_END if raw else TokenType.VARIABLE_END
        if self._match(end_type):
            raise self._error("Empty expression", start, code=ErrorCode.INVALID_EXPRESSION)
        expr = self._parse_expression()
        self._expect(end_type)
        escape = not raw and self._autoescape[-1]
        return Output(lineno=start.lineno, col_offset=start.col_offset, expr=expr, escape=escape)

    def _parse_block(self) -> Node | list[Node] | None:
        """Dispatch a {% ... %} statement on its keyword."""
        self._advance()  # consume '{%'
        token = self._current
        if token.type != TokenType.NAME:
            raise self._error("Expected statement keyword after '{%'")

        method_name = _STATEMENT_PARSERS.get(token.value)
        if method_name is None:
            matches = get_close_matches(token.value, list(_STATEMENT_PARSERS), n=1, cutoff=0.6)
            raise self._error(
                f"Unknown tag '{token.value}'",
                token,
                suggestion=f"Did you mean '{{% {matches[0]} %}}'?" if matches else None,
                code=ErrorCode.UNKNOWN_TAG,
            )
        return getattr(self, method_name)()
