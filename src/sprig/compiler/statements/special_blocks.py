"""Special block statement compilation for Sprig compiler.

Provides mixin for compiling {% spaceless %} and {% debug %}.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sprig.nodes import Node


class SpecialBlockMixin:
    """Mixin for compiling special block statements.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        # Host attributes (from Compiler.__init__)
        _block_counter: int

        # From ExpressionCompilationMixin
        def _compile_expr(self, node: Any, store: bool = False) -> ast.expr: ...

        # From Compiler core
        def _compile_body(self, nodes: Sequence[Node]) -> list[ast.stmt]: ...
        def _emit_output(self, value_expr: ast.expr) -> ast.stmt: ...

    def _compile_spaceless(self, node: Any) -> list[ast.stmt]:
        """Compile {% spaceless %}...{% endspaceless %}.

        The body writes into its own buffer by swapping ``_append``; the
        collected text is passed through ``_spaceless`` once the body ends.
        """
        self._block_counter += 1
        suffix = str(self._block_counter)
        buf_name = f"_spaceless_buf_{suffix}"
        append_name = f"_spaceless_append_{suffix}"
        save_name = f"_save_append_{suffix}"

        stmts: list[ast.stmt] = [
            ast.Assign(
                targets=[ast.Name(id=buf_name, ctx=ast.Store())],
                value=ast.List(elts=[], ctx=ast.Load()),
            ),
            ast.Assign(
                targets=[ast.Name(id=append_name, ctx=ast.Store())],
                value=ast.Attribute(
                    value=ast.Name(id=buf_name, ctx=ast.Load()),
                    attr="append",
                    ctx=ast.Load(),
                ),
            ),
            ast.Assign(
                targets=[ast.Name(id=save_name, ctx=ast.Store())],
                value=ast.Name(id="_append", ctx=ast.Load()),
            ),
            ast.Assign(
                targets=[ast.Name(id="_append", ctx=ast.Store())],
                value=ast.Name(id=append_name, ctx=ast.Load()),
            ),
        ]

        stmts.extend(self._compile_body(node.body))

        stmts.append(
            ast.Assign(
                targets=[ast.Name(id="_append", ctx=ast.Store())],
                value=ast.Name(id=save_name, ctx=ast.Load()),
            )
        )
        # _append(_spaceless(''.join(buf)))
        stmts.append(
            self._emit_output(
                ast.Call(
                    func=ast.Name(id="_spaceless", ctx=ast.Load()),
                    args=[
                        ast.Call(
                            func=ast.Attribute(
                                value=ast.Constant(value=""),
                                attr="join",
                                ctx=ast.Load(),
                            ),
                            args=[ast.Name(id=buf_name, ctx=ast.Load())],
                            keywords=[],
                        ),
                    ],
                    keywords=[],
                )
            )
        )
        return stmts

    def _compile_debug(self, node: Any) -> list[ast.stmt]:
        """Compile {% debug [expr] %}.

        _append(_debug(expr, 'label')), dumping the whole context when no
        expression is given.
        """
        value = (
            self._compile_expr(node.expr)
            if node.expr is not None
            else ast.Name(id="ctx", ctx=ast.Load())
        )
        return [
            self._emit_output(
                ast.Call(
                    func=ast.Name(id="_debug", ctx=ast.Load()),
                    args=[value, ast.Constant(value=node.label)],
                    keywords=[],
                )
            )
        ]
