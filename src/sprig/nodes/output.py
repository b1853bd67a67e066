"""Output nodes for Sprig AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sprig.nodes.base import Node
from sprig.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Interpolation: {{ expr }} (escaped) or {! expr !} (raw)."""

    expr: Expr
    escape: bool = True


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Literal text between tags."""

    value: str


@dataclass(frozen=True, slots=True)
class Spaceless(Node):
    """Remove whitespace between HTML tags: {% spaceless %}...{% endspaceless %}"""

    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Debug(Node):
    """Debug dump: {% debug %} or {% debug user %}

    ``expr`` is None when dumping every context variable.
    """

    expr: Expr | None
    label: str
