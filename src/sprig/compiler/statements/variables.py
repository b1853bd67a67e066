"""Variable assignment compilation for Sprig compiler.

Provides mixin for compiling {% set %}.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sprig.nodes import Node


class VariableAssignmentMixin:
    """Mixin for compiling variable assignment statements."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _locals: set[str]

        def _compile_expr(self, node: Node, store: bool = False) -> ast.expr: ...

    def _compile_set(self, node: Any) -> list[ast.stmt]:
        """Compile {% set x = expr %}.

        Rebinding a loop variable assigns the Python local; any other name
        is written to the render context, where it stays visible for the
        rest of the render (including included templates):

            ctx['x'] = value
        """
        value = self._compile_expr(node.value)
        name = node.target.name

        if name in self._locals:
            return [ast.Assign(targets=[self._compile_expr(node.target, store=True)], value=value)]

        return [
            ast.Assign(
                targets=[
                    ast.Subscript(
                        value=ast.Name(id="ctx", ctx=ast.Load()),
                        slice=ast.Constant(value=name),
                        ctx=ast.Store(),
                    )
                ],
                value=value,
            )
        ]
