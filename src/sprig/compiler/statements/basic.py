"""Basic statement compilation for Sprig compiler.

Provides mixin for compiling basic output statements (data, output).
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any


class BasicStatementMixin:
    """Mixin for compiling basic output statements."""

    # ─────────────────────────────────────────────────────────────────────────
    # Cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        # From ExpressionCompilationMixin
        def _compile_expr(self, node: Any, store: bool = False) -> ast.expr: ...

        # From Compiler core
        def _emit_output(self, value_expr: ast.expr) -> ast.stmt: ...

    def _compile_data(self, node: Any) -> list[ast.stmt]:
        """Compile literal text: _append("literal text")"""
        if not node.value:
            return []

        return [self._emit_output(ast.Constant(value=node.value))]

    def _compile_output(self, node: Any) -> list[ast.stmt]:
        """Compile {{ expression }} and {! expression !}.

        _append(_e(expr)) when escaping, _append(_s(expr)) for raw output.
        """
        expr = self._compile_expr(node.expr)

        # _e handles str conversion itself so Markup is detected first
        return [
            self._emit_output(
                ast.Call(
                    func=ast.Name(id="_e" if node.escape else "_s", ctx=ast.Load()),
                    args=[expr],
                    keywords=[],
                )
            )
        ]
