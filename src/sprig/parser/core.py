"""Sprig parser core.

Recursive-descent parser turning the lexer's token stream into an
immutable Sprig AST rooted at a ``Template`` node.
"""

from __future__ import annotations

from collections.abc import Sequence

from sprig._types import Token
from sprig.nodes import Extends, Template
from sprig.parser.blocks import BlockParsingMixin
from sprig.parser.expressions import ExpressionParsingMixin
from sprig.parser.statements import StatementParsingMixin
from sprig.parser.tokens import TokenNavigationMixin


class Parser(
    TokenNavigationMixin,
    StatementParsingMixin,
    BlockParsingMixin,
    ExpressionParsingMixin,
):
    """Parse a token list into a ``Template`` node.

    Example:
        >>> tokens = tokenize("{% if user %}Hi {{ user.name }}{% endif %}")
        >>> Parser(tokens, name="greeting").parse()
        Template(lineno=1, col_offset=0, body=(If(...),), extends=None)
    """

    __slots__ = (
        "_tokens",
        "_pos",
        "_name",
        "_filename",
        "_source",
        "_block_stack",
        "_autoescape",
        "_extends",
        "_max_nesting",
    )

    def __init__(
        self,
        tokens: Sequence[Token],
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        *,
        max_nesting: int = 50,
    ):
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._filename = filename
        self._source = source
        self._block_stack: list[tuple[str, int, int]] = []
        self._autoescape: list[bool] = [True]
        self._extends: Extends | None = None
        self._max_nesting = max_nesting

    def parse(self) -> Template:
        body = self._parse_body()
        return Template(lineno=1, col_offset=0, body=tuple(body), extends=self._extends)
