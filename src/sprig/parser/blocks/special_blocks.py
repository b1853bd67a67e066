"""Special block parsing for the Sprig parser.

Provides mixin for set, spaceless, autoescape and debug.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sprig._types import TokenType
from sprig.nodes import Debug, Name, Set, Spaceless
from sprig.parser.blocks.core import BlockStackMixin
from sprig.parser.expressions import describe_expression

if TYPE_CHECKING:
    from sprig.nodes import Expr, Node

_AUTOESCAPE_OFF = frozenset({"false", "off", "no"})
_AUTOESCAPE_ON = frozenset({"true", "on", "yes", "html"})


class SpecialBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing special blocks."""

    if TYPE_CHECKING:
        _autoescape: list[bool]

        def _parse_body(self) -> list[Node]: ...
        def _parse_expression(self) -> Expr: ...

    def _parse_set(self) -> Set:
        """Parse {% set name = expr %}."""
        start = self._advance()  # consume 'set'
        token = self._expect(TokenType.NAME)
        target = Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value, ctx="store")
        self._expect(TokenType.ASSIGN)
        value = self._parse_expression()
        self._expect(TokenType.BLOCK_END)
        return Set(lineno=start.lineno, col_offset=start.col_offset, target=target, value=value)

    def _parse_spaceless(self) -> Spaceless:
        """Parse {% spaceless %}...{% endspaceless %}."""
        start = self._advance()  # consume 'spaceless'
        self._push_block("spaceless", start)
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()
        self._consume_end_tag("spaceless")
        return Spaceless(lineno=start.lineno, col_offset=start.col_offset, body=tuple(body))

    def _parse_autoescape(self) -> list[Node]:
        """Parse {% autoescape [mode] %}...{% endautoescape %}.

        ``false``/``off``/``no`` makes ``{{ }}`` raw inside the block;
        ``true``/``on``/``yes``/``html`` or no argument keeps escaping.
        The block leaves no node behind: its body is returned inline.
        """
        start = self._advance()  # consume 'autoescape'
        self._push_block("autoescape", start)

        enabled = True
        if self._match(TokenType.NAME, TokenType.STRING):
            token = self._advance()
            mode = token.value.lower()
            if mode in _AUTOESCAPE_OFF:
                enabled = False
            elif mode not in _AUTOESCAPE_ON:
                raise self._error(
                    f"Unknown autoescape mode '{token.value}'",
                    token,
                    suggestion="Use {% autoescape false %} or {% autoescape true %}",
                )
        self._expect(TokenType.BLOCK_END)

        self._autoescape.append(enabled)
        try:
            body = self._parse_body()
        finally:
            self._autoescape.pop()
        self._consume_end_tag("autoescape")
        return body

    def _parse_debug(self) -> Debug:
        """Parse {% debug %} or {% debug expr %}."""
        start = self._advance()  # consume 'debug'
        expr: Expr | None = None
        label = "all variables"
        if not self._match(TokenType.BLOCK_END):
            expr = self._parse_expression()
            label = describe_expression(expr)
        self._expect(TokenType.BLOCK_END)
        return Debug(lineno=start.lineno, col_offset=start.col_offset, expr=expr, label=label)
