"""Expression compilation for Sprig compiler.

Provides mixin for compiling Sprig expression AST nodes to Python AST
expressions. Variable, attribute and subscript access go through the
runtime helpers (``_lookup``, ``_access``) so missing values become
``Undefined`` and are reported instead of raising.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from sprig.environment.exceptions import (
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
)

if TYPE_CHECKING:
    from sprig.environment import Environment
    from sprig.nodes import Expr

_BINOPS: dict[str, type[ast.operator]] = {
    "+": ast.Add,
    "-": ast.Sub,
    "*": ast.Mult,
    "/": ast.Div,
    "%": ast.Mod,
}

_UNARYOPS: dict[str, type[ast.unaryop]] = {
    "not": ast.Not,
    "-": ast.USub,
    "+": ast.UAdd,
}

_CMPOPS: dict[str, type[ast.cmpop]] = {
    "==": ast.Eq,
    "!=": ast.NotEq,
    "<": ast.Lt,
    ">": ast.Gt,
    "<=": ast.LtE,
    ">=": ast.GtE,
}

# Comparisons that need a runtime helper: (helper, operand order swapped, negated)
_HELPER_CMPOPS: dict[str, tuple[str, bool, bool]] = {
    "in": ("_contains", True, False),
    "not in": ("_contains", True, True),
    "starts with": ("_starts_with", False, False),
    "ends with": ("_ends_with", False, False),
}

# Tests whose operand is expected to be missing, so it is evaluated quietly
QUIET_TESTS = frozenset({"defined", "undefined", "null", "none", "empty"})

# Filters whose input is expected to be missing
QUIET_FILTERS = frozenset({"default"})


def _call(func: str, args: list[ast.expr], keywords: list[ast.keyword] | None = None) -> ast.Call:
    return ast.Call(
        func=ast.Name(id=func, ctx=ast.Load()),
        args=args,
        keywords=keywords or [],
    )


class ExpressionCompilationMixin:
    """Mixin for compiling expressions.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _env: Environment
        _name: str | None
        _locals: set[str]
        _block_counter: int

        def _local_id(self, name: str) -> str: ...

    def _compile_expr(self, node: Expr, store: bool = False) -> ast.expr:
        """Compile expression node to Python AST expression.

        Complexity: O(1) dispatch + O(d) for recursive expressions.
        """
        handler = getattr(self, f"_compile_expr_{type(node).__name__.lower()}", None)
        if handler is None:
            raise TypeError(f"Cannot compile expression type {type(node).__name__}")
        if store:
            return handler(node, store=True)
        return handler(node)

    def _compile_args(self, node: Any) -> tuple[list[ast.expr], list[ast.keyword]]:
        args = [self._compile_expr(arg) for arg in node.args]
        keywords = [
            ast.keyword(arg=key, value=self._compile_expr(value))
            for key, value in getattr(node, "kwargs", {}).items()
        ]
        return args, keywords

    def _quiet(self, expr: ast.expr) -> ast.expr:
        """``_quietly(lambda: expr)``"""
        return _call(
            "_quietly",
            [
                ast.Lambda(
                    args=ast.arguments(
                        posonlyargs=[],
                        args=[],
                        vararg=None,
                        kwonlyargs=[],
                        kw_defaults=[],
                        kwarg=None,
                        defaults=[],
                    ),
                    body=expr,
                )
            ],
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Literals and names
    # ─────────────────────────────────────────────────────────────────────────

    def _compile_expr_const(self, node: Any) -> ast.expr:
        return ast.Constant(value=node.value)

    def _compile_expr_name(self, node: Any, store: bool = False) -> ast.expr:
        if store:
            return ast.Name(id=self._local_id(node.name), ctx=ast.Store())
        if node.name in self._locals:
            return ast.Name(id=self._local_id(node.name), ctx=ast.Load())
        # _lookup(ctx, 'name')
        return _call("_lookup", [ast.Name(id="ctx", ctx=ast.Load()), ast.Constant(value=node.name)])

    def _compile_expr_tuple(self, node: Any, store: bool = False) -> ast.expr:
        ctx: ast.expr_context = ast.Store() if store else ast.Load()
        return ast.Tuple(
            elts=[self._compile_expr(item, store=store) for item in node.items],
            ctx=ctx,
        )

    def _compile_expr_list(self, node: Any) -> ast.expr:
        return ast.List(elts=[self._compile_expr(item) for item in node.items], ctx=ast.Load())

    def _compile_expr_dict(self, node: Any) -> ast.expr:
        return ast.Dict(
            keys=[self._compile_expr(key) for key in node.keys],
            values=[self._compile_expr(value) for value in node.values],
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Access and calls
    # ─────────────────────────────────────────────────────────────────────────

    def _compile_expr_getattr(self, node: Any) -> ast.expr:
        return _call("_access", [self._compile_expr(node.obj), ast.Constant(value=node.attr)])

    def _compile_expr_getitem(self, node: Any) -> ast.expr:
        return _call("_access", [self._compile_expr(node.obj), self._compile_expr(node.key)])

    def _compile_expr_funccall(self, node: Any) -> ast.expr:
        """Registered function call, or a call on any other value.

        ``range(1, 3)`` → ``_call_function('range', 1, 3)``
        ``user.greet('hi')`` → ``_access(_lookup(ctx, 'user'), 'greet')('hi')``
        """
        args, keywords = self._compile_args(node)
        func = node.func
        if type(func).__name__ == "Name" and func.name not in self._locals:
            if func.name not in self._env.functions:
                raise UnknownFunctionError(
                    func.name,
                    available=self._env.functions,
                    template_name=self._name,
                    lineno=node.lineno,
                )
            return _call("_call_function", [ast.Constant(value=func.name), *args], keywords)
        return ast.Call(func=self._compile_expr(func), args=args, keywords=keywords)

    def _compile_expr_filter(self, node: Any) -> ast.expr:
        """``value|name(args)`` → ``_filter('name', value, args)``"""
        if node.name not in self._env.filters:
            raise UnknownFilterError(
                node.name,
                available=self._env.filters,
                template_name=self._name,
                lineno=node.lineno,
            )
        value = self._compile_expr(node.value)
        if node.name in QUIET_FILTERS:
            value = self._quiet(value)
        args, keywords = self._compile_args(node)
        return _call("_filter", [ast.Constant(value=node.name), value, *args], keywords)

    def _compile_expr_test(self, node: Any) -> ast.expr:
        """``value is [not] name(args)`` → ``[not] _test('name', value, args)``"""
        if node.name not in self._env.tests:
            raise UnknownTestError(
                node.name,
                available=self._env.tests,
                template_name=self._name,
                lineno=node.lineno,
            )
        value = self._compile_expr(node.value)
        if node.name in QUIET_TESTS:
            value = self._quiet(value)
        args = [self._compile_expr(arg) for arg in node.args]
        result: ast.expr = _call("_test", [ast.Constant(value=node.name), value, *args])
        if node.negated:
            result = ast.UnaryOp(op=ast.Not(), operand=result)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────────────────

    def _compile_expr_binop(self, node: Any) -> ast.expr:
        return ast.BinOp(
            left=self._compile_expr(node.left),
            op=_BINOPS[node.op](),
            right=self._compile_expr(node.right),
        )

    def _compile_expr_unaryop(self, node: Any) -> ast.expr:
        return ast.UnaryOp(op=_UNARYOPS[node.op](), operand=self._compile_expr(node.operand))

    def _compile_expr_compare(self, node: Any) -> ast.expr:
        """Comparison chain.

        Plain operators compile to a native chained ``ast.Compare``. Chains
        containing ``in``/``starts with``/``ends with`` become an ``and`` of
        pairwise comparisons; each middle operand is bound to a temporary
        with ``:=`` so it is evaluated at most once.
        """
        if all(op in _CMPOPS for op in node.ops):
            return ast.Compare(
                left=self._compile_expr(node.left),
                ops=[_CMPOPS[op]() for op in node.ops],
                comparators=[self._compile_expr(c) for c in node.comparators],
            )

        parts: list[ast.expr] = []
        left = self._compile_expr(node.left)
        last = len(node.ops) - 1
        for i, (op, comparator) in enumerate(zip(node.ops, node.comparators, strict=True)):
            right = self._compile_expr(comparator)
            if i == last:
                parts.append(self._compile_pair(op, left, right))
                break
            self._block_counter += 1
            temp = f"_cmp_{self._block_counter}"
            bound = ast.NamedExpr(target=ast.Name(id=temp, ctx=ast.Store()), value=right)
            parts.append(self._compile_pair(op, left, bound))
            left = ast.Name(id=temp, ctx=ast.Load())
        if len(parts) == 1:
            return parts[0]
        return ast.BoolOp(op=ast.And(), values=parts)

    def _compile_pair(self, op: str, left: ast.expr, right: ast.expr) -> ast.expr:
        if op in _CMPOPS:
            return ast.Compare(left=left, ops=[_CMPOPS[op]()], comparators=[right])
        helper, swapped, negated = _HELPER_CMPOPS[op]
        operands = [left, right]
        if swapped:
            operands.reverse()
        result: ast.expr = _call(helper, operands)
        if negated:
            result = ast.UnaryOp(op=ast.Not(), operand=result)
        return result

    def _compile_expr_boolop(self, node: Any) -> ast.expr:
        op: ast.boolop = ast.And() if node.op == "and" else ast.Or()
        return ast.BoolOp(op=op, values=[self._compile_expr(v) for v in node.values])

    def _compile_expr_condexpr(self, node: Any) -> ast.expr:
        return ast.IfExp(
            test=self._compile_expr(node.test),
            body=self._compile_expr(node.if_true),
            orelse=self._compile_expr(node.if_false),
        )

    def _compile_expr_range(self, node: Any) -> ast.expr:
        return _call("_range", [self._compile_expr(node.start), self._compile_expr(node.end)])

    def _compile_expr_concat(self, node: Any) -> ast.expr:
        return _call("_concat", [self._compile_expr(n) for n in node.nodes])
