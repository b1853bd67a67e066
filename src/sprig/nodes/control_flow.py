"""Control flow nodes for Sprig AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sprig.nodes.base import Node
from sprig.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: {% if %}...{% elseif %}...{% else %}...{% endif %}"""

    test: Expr
    body: Sequence[Node]
    elif_: Sequence[tuple[Expr, Sequence[Node]]] = ()
    else_: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class For(Node):
    """Loop: {% for x in items %}...{% else %}...{% endfor %}"""

    target: Expr
    iter: Expr
    body: Sequence[Node]
    empty: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class While(Node):
    """Loop while a condition holds: {% while cond %}...{% endwhile %}"""

    test: Expr
    body: Sequence[Node]
