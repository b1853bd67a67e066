"""Sprig parser: token stream → Sprig AST."""

from sprig.parser.core import Parser
from sprig.parser.errors import ParseError

__all__ = ["ParseError", "Parser"]
