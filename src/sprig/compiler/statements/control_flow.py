"""Control flow statement compilation for Sprig compiler.

Provides mixin for compiling control flow statements (if, for, while).

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from sprig.environment.exceptions import TemplateNotFoundError
from sprig.nodes import Include, Name, Tuple

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sprig.environment import Environment
    from sprig.nodes import Expr, Node


class ControlFlowMixin:
    """Mixin for compiling control flow statements.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        # Host attributes (from Compiler.__init__)
        _env: Environment
        _locals: set[str]
        _block_counter: int

        # From ExpressionCompilationMixin
        def _compile_expr(self, node: Node, store: bool = False) -> ast.expr: ...

        # From Compiler core
        def _compile_body(self, nodes: Sequence[Node]) -> list[ast.stmt]: ...
        def _local_id(self, name: str) -> str: ...

    def _compile_condition(self, test: Expr) -> ast.expr:
        """Compile an if/elseif condition.

        A bare identifier checks presence and truthiness without reporting
        an undefined variable: ``{% if user %}`` is how templates ask
        whether ``user`` was passed at all.
        """
        if isinstance(test, Name) and test.name not in self._locals:
            return ast.Call(
                func=ast.Name(id="_is_set", ctx=ast.Load()),
                args=[ast.Name(id="ctx", ctx=ast.Load()), ast.Constant(value=test.name)],
                keywords=[],
            )
        return self._compile_expr(test)

    def _compile_while(self, node: Any) -> list[ast.stmt]:
        """Compile {% while cond %}...{% endwhile %} loop.

        Generates:
            while condition:
                ... body ...
        """
        body = self._compile_body(node.body) or [ast.Pass()]
        return [ast.While(test=self._compile_condition(node.test), body=body, orelse=[])]

    def _compile_if(self, node: Any) -> list[ast.stmt]:
        """Compile {% if %} conditional.

        Each elseif branch is attached to the orelse of the innermost If
        built so far, so the chain reads as Python's own ``elif``.
        """
        body = self._compile_body(node.body) or [ast.Pass()]
        orelse = self._compile_body(node.else_)

        if_node = ast.If(test=self._compile_condition(node.test), body=body, orelse=[])
        current = if_node
        for elif_test, elif_body in node.elif_:
            next_if = ast.If(
                test=self._compile_condition(elif_test),
                body=self._compile_body(elif_body) or [ast.Pass()],
                orelse=[],
            )
            current.orelse = [next_if]
            current = next_if

        current.orelse = orelse
        return [if_node]

    def _uses_loop_variable(self, nodes: Any, seen: frozenset[str] = frozenset()) -> bool:
        """Check if any node in the tree references the 'loop' variable.

        When loop.index, loop.first, etc. are not used, the loop iterates
        the materialized items directly without a LoopContext. Included
        templates are expanded inline, so their bodies are scanned too;
        a missing include contributes nothing.
        """
        if nodes is None:
            return False

        if isinstance(nodes, (list, tuple)):
            return any(self._uses_loop_variable(n, seen) for n in nodes)

        if isinstance(nodes, dict):
            return any(self._uses_loop_variable(v, seen) for v in nodes.values())

        if isinstance(nodes, Name) and nodes.name == "loop":
            return True

        if isinstance(nodes, Include):
            # Cycles are reported when the include itself is compiled
            if nodes.template in seen:
                return False
            try:
                included, _ = self._env._load_flattened(nodes.template)
            except TemplateNotFoundError:
                return False
            return self._uses_loop_variable(included.body, seen | {nodes.template})

        # Skip non-node types (strings, ints, bools, etc.)
        if not hasattr(nodes, "__dataclass_fields__"):
            return False

        for field_name in nodes.__dataclass_fields__:
            child = getattr(nodes, field_name, None)
            if child is not None and self._uses_loop_variable(child, seen):
                return True

        return False

    def _target_names(self, target: Expr) -> list[str]:
        if isinstance(target, Tuple):
            return [item.name for item in target.items if isinstance(item, Name)]
        if isinstance(target, Name):
            return [target.name]
        return []

    def _compile_for(self, node: Any) -> list[ast.stmt]:
        """Compile {% for %} loop with optional LoopContext.

        When loop.* is used:
            _loop_items_N = _loop_items(iterable, pair)
            if _loop_items_N:
                l_loop = _LoopContext(_loop_items_N, <enclosing l_loop or None>)
                for l_item in l_loop:
                    ... body ...
            else:
                ... empty block ...

        When loop.* is not used the for statement iterates
        ``_loop_items_N`` directly. Loop targets shadowing a variable of an
        enclosing loop are saved before and restored after the loop.
        """
        self._block_counter += 1
        n = self._block_counter
        items_var = f"_loop_items_{n}"

        names = self._target_names(node.target)
        uses_loop = self._uses_loop_variable(node.body)
        bound = names + (["loop"] if uses_loop else [])
        shadowed = [name for name in bound if name in self._locals]

        stmts: list[ast.stmt] = []

        # _loop_items_N = _loop_items(iterable, pair)
        stmts.append(
            ast.Assign(
                targets=[ast.Name(id=items_var, ctx=ast.Store())],
                value=ast.Call(
                    func=ast.Name(id="_loop_items", ctx=ast.Load()),
                    args=[
                        self._compile_expr(node.iter),
                        ast.Constant(value=isinstance(node.target, Tuple)),
                    ],
                    keywords=[],
                ),
            )
        )

        # Save enclosing values of shadowed locals
        for name in shadowed:
            stmts.append(
                ast.Assign(
                    targets=[ast.Name(id=f"_saved_{n}_{name}", ctx=ast.Store())],
                    value=ast.Name(id=self._local_id(name), ctx=ast.Load()),
                )
            )

        loop_body: list[ast.stmt] = []
        if uses_loop:
            parent: ast.expr = (
                ast.Name(id=f"_saved_{n}_loop", ctx=ast.Load())
                if "loop" in shadowed
                else ast.Constant(value=None)
            )
            loop_body.append(
                ast.Assign(
                    targets=[ast.Name(id=self._local_id("loop"), ctx=ast.Store())],
                    value=ast.Call(
                        func=ast.Name(id="_LoopContext", ctx=ast.Load()),
                        args=[ast.Name(id=items_var, ctx=ast.Load()), parent],
                        keywords=[],
                    ),
                )
            )
            iter_expr: ast.expr = ast.Name(id=self._local_id("loop"), ctx=ast.Load())
        else:
            iter_expr = ast.Name(id=items_var, ctx=ast.Load())

        # Compile the body with the targets bound as locals
        outer_locals = set(self._locals)
        self._locals.update(bound)
        target = self._compile_expr(node.target, store=True)
        body = self._compile_body(node.body) or [ast.Pass()]
        self._locals = outer_locals

        empty = self._compile_body(node.empty)

        loop_body.append(ast.For(target=target, iter=iter_expr, body=body, orelse=[]))

        # Restore shadowed locals
        for name in shadowed:
            loop_body.append(
                ast.Assign(
                    targets=[ast.Name(id=self._local_id(name), ctx=ast.Store())],
                    value=ast.Name(id=f"_saved_{n}_{name}", ctx=ast.Load()),
                )
            )

        stmts.append(
            ast.If(
                test=ast.Name(id=items_var, ctx=ast.Load()),
                body=loop_body,
                orelse=empty,
            )
        )
        return stmts
