"""Control flow block parsing for the Sprig parser.

Provides mixin for parsing if/elseif/else, for/else and while.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sprig._types import TokenType
from sprig.nodes import For, If, Name, Tuple, While
from sprig.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from sprig.nodes import Expr, Node


class ControlFlowBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing control flow blocks."""

    if TYPE_CHECKING:
        def _parse_body(self) -> list[Node]: ...
        def _parse_expression(self) -> Expr: ...
        def _match_name(self, *values: str) -> bool: ...

    def _parse_if(self) -> If:
        """Parse {% if %}...{% elseif %}...{% else %}...{% endif %}.

        ``elif`` is accepted as an alias of ``elseif``.
        """
        start = self._advance()  # consume 'if'
        self._push_block("if", start)
        test = self._parse_expression()
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()

        elif_: list[tuple[Expr, tuple[Node, ...]]] = []
        else_: list[Node] = []
        while self._at_keyword("elseif", "elif"):
            self._advance()  # consume '{%'
            self._advance()  # consume 'elseif'
            condition = self._parse_expression()
            self._expect(TokenType.BLOCK_END)
            elif_.append((condition, tuple(self._parse_body())))

        if self._at_keyword("else"):
            self._advance()
            self._advance()
            self._expect(TokenType.BLOCK_END)
            else_ = self._parse_body()

        self._consume_end_tag("if")
        return If(
            lineno=start.lineno,
            col_offset=start.col_offset,
            test=test,
            body=tuple(body),
            elif_=tuple(elif_),
            else_=tuple(else_),
        )

    def _parse_for(self) -> For:
        """Parse {% for x in items %}...{% else %}...{% endfor %}.

        Targets are ``item`` or ``key, value``; ``empty`` is accepted as an
        alias of ``else``.
        """
        start = self._advance()  # consume 'for'
        self._push_block("for", start)
        target = self._parse_for_target()
        if not self._match_name("in"):
            raise self._error(
                "Expected 'in' in for loop",
                suggestion="Use {% for item in items %} or {% for key, value in mapping %}",
            )
        self._advance()
        iterable = self._parse_expression()
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()

        empty: list[Node] = []
        if self._at_keyword("else", "empty"):
            self._advance()
            self._advance()
            self._expect(TokenType.BLOCK_END)
            empty = self._parse_body()

        self._consume_end_tag("for")
        return For(
            lineno=start.lineno,
            col_offset=start.col_offset,
            target=target,
            iter=iterable,
            body=tuple(body),
            empty=tuple(empty),
        )

    def _parse_for_target(self) -> Expr:
        names: list[Name] = []
        while True:
            token = self._expect(TokenType.NAME)
            names.append(
                Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value, ctx="store")
            )
            if not self._match(TokenType.COMMA):
                break
            self._advance()
        if len(names) > 2:
            raise self._error("A for loop binds at most two names (key, value)")
        if len(names) == 1:
            return names[0]
        return Tuple(
            lineno=names[0].lineno, col_offset=names[0].col_offset, items=tuple(names), ctx="store"
        )

    def _parse_while(self) -> While:
        """Parse {% while cond %}...{% endwhile %}."""
        start = self._advance()  # consume 'while'
        self._push_block("while", start)
        test = self._parse_expression()
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()
        self._consume_end_tag("while")
        return While(lineno=start.lineno, col_offset=start.col_offset, test=test, body=tuple(body))
