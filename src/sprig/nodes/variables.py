"""Variable assignment nodes for Sprig AST."""

from __future__ import annotations

from dataclasses import dataclass

from sprig.nodes.base import Node
from sprig.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Set(Node):
    """Assignment: {% set x = expr %}"""

    target: Expr
    value: Expr
