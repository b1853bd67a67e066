"""Template structure block parsing for the Sprig parser.

Provides mixin for parsing block, extends and include.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sprig._types import Token, TokenType
from sprig.nodes import Block, Extends, Include
from sprig.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from sprig.nodes import Node


class TemplateStructureBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing template structure blocks."""

    if TYPE_CHECKING:
        _extends: Extends | None

        def _parse_body(self) -> list[Node]: ...

    def _parse_block_tag(self) -> Block:
        """Parse {% block name %}...{% endblock [name] %}."""
        start = self._advance()  # consume 'block'
        self._push_block("block", start)

        if self._current.type != TokenType.NAME:
            raise self._error("Expected block name")
        name = self._advance().value

        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()
        self._consume_end_tag("block")

        return Block(
            lineno=start.lineno,
            col_offset=start.col_offset,
            name=name,
            body=tuple(body),
        )

    def _parse_extends(self) -> None:
        """Parse {% extends "base.html" %}.

        The parent is recorded on the Template root rather than in the body.
        """
        start = self._advance()  # consume 'extends'
        if self._block_stack:
            raise self._error("{% extends %} must appear at the top level of a template", start)
        if self._extends is not None:
            raise self._error(
                f"Template already extends '{self._extends.template}'",
                start,
                suggestion="A template can extend only one parent",
            )
        name = self._parse_template_name("extends")
        self._extends = Extends(lineno=start.lineno, col_offset=start.col_offset, template=name)

    def _parse_include(self) -> Include:
        """Parse {% include "partial.html" %}."""
        start = self._advance()  # consume 'include'
        name = self._parse_template_name("include")
        return Include(lineno=start.lineno, col_offset=start.col_offset, template=name)

    def _parse_template_name(self, keyword: str) -> str:
        token: Token = self._current
        if token.type != TokenType.STRING:
            raise self._error(
                f"{{% {keyword} %}} requires a string literal template name",
                suggestion=f'Use {{% {keyword} "name.html" %}}',
            )
        self._advance()
        if not token.value:
            raise self._error("Template name cannot be empty", token)
        self._expect(TokenType.BLOCK_END)
        return token.value
