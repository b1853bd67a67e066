"""Sprig Compiler Core: main Compiler class.

The Compiler transforms a flattened Sprig AST (no extends/block left)
into a Python ``ast.Module`` and compiles it to a code object.

Design Principles:
1. **AST-to-AST**: Generate `ast.Module`, not source strings
2. **StringBuilder**: Output via `buf.append()`, join at end
3. **Local caching**: Cache `_escape`, `_str`, `buf.append` as locals
4. **O(1) dispatch**: Dict-based node type → handler lookup

Generated shape:

    ```python
    def render(ctx):
        _e = _escape
        _s = _str
        buf = []
        _append = buf.append
        ...
        return ''.join(buf)
    ```

Includes are expanded while compiling: the included template is parsed,
flattened and compiled inline, so a Compiled Template never dispatches to
another template at render time.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from typing import TYPE_CHECKING

from sprig.compiler.expressions import ExpressionCompilationMixin
from sprig.compiler.statements import StatementCompilationMixin

if TYPE_CHECKING:
    import types
    from collections.abc import Sequence

    from sprig.environment import Environment
    from sprig.nodes import Node
    from sprig.nodes import Template as TemplateNode


class Compiler(
    ExpressionCompilationMixin,
    StatementCompilationMixin,
):
    """Compile Sprig AST to Python code objects.

    Attributes:
        _env: Parent Environment (filters, functions, tests, include loading)
        _name: Template name for error messages
        _filename: Source file path for compile()
        _locals: Template names bound as Python locals (loop targets)
        _block_counter: Counter for unique variable names
        _include_stack: Names of templates currently being compiled
        _dependencies: Source files the compiled code was built from
        _missing_includes: Included names the loader could not find

    Line Tracking:
        For nodes that can cause runtime errors (Output, For, If, ...),
        generates `_get_render_ctx().line = N` before the node's code.
        Statements spliced in from an include are attributed to the
        include tag's line.

    Example:
            >>> env = Environment()
            >>> node = Parser(tokenize("Hello, {{ name }}!")).parse()
            >>> code = Compiler(env).compile(node, name="greeting.html")
            >>> namespace = {"_escape": html_escape, "_str": str_safe, ...}
            >>> exec(code, namespace)
            >>> namespace["render"]({"name": "World"})
            'Hello, World!'
    """

    __slots__ = (
        "_block_counter",
        "_dependencies",
        "_env",
        "_filename",
        "_include_stack",
        "_locals",
        "_missing_includes",
        "_name",
        "_node_dispatch",
    )

    def __init__(self, env: Environment):
        self._env = env
        self._name: str | None = None
        self._filename: str | None = None
        self._locals: set[str] = set()
        self._block_counter: int = 0
        self._include_stack: list[str] = []
        self._dependencies: list[str] = []
        self._missing_includes: list[str] = []

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Filenames of every included template (transitively), in order."""
        return tuple(dict.fromkeys(self._dependencies))

    @property
    def missing_includes(self) -> tuple[str, ...]:
        """Included templates that were not found and compiled to nothing."""
        return tuple(dict.fromkeys(self._missing_includes))

    def compile(
        self,
        node: TemplateNode,
        name: str | None = None,
        filename: str | None = None,
    ) -> types.CodeType:
        """Compile a flattened template AST to a code object.

        Args:
            node: Root Template node, already passed through inheritance
            name: Template name for error messages
            filename: Source filename for error messages

        Returns:
            Compiled code object defining ``render(ctx)``
        """
        self._name = name
        self._filename = filename
        self._locals = set()
        self._block_counter = 0
        self._include_stack = [name or "<template>"]
        self._dependencies = []
        self._missing_includes = []

        module = ast.Module(body=[self._make_render_function(node)], type_ignores=[])
        ast.fix_missing_locations(module)

        return compile(module, filename or "<template>", "exec")

    def _emit_output(self, value_expr: ast.expr) -> ast.stmt:
        """Generate ``_append(value)``."""
        return ast.Expr(
            value=ast.Call(
                func=ast.Name(id="_append", ctx=ast.Load()),
                args=[value_expr],
                keywords=[],
            ),
        )

    def _make_render_function(self, node: TemplateNode) -> ast.FunctionDef:
        """Generate the render(ctx) function."""
        body: list[ast.stmt] = [
            # _e = _escape
            ast.Assign(
                targets=[ast.Name(id="_e", ctx=ast.Store())],
                value=ast.Name(id="_escape", ctx=ast.Load()),
            ),
            # _s = _str
            ast.Assign(
                targets=[ast.Name(id="_s", ctx=ast.Store())],
                value=ast.Name(id="_str", ctx=ast.Load()),
            ),
            # buf = []
            ast.Assign(
                targets=[ast.Name(id="buf", ctx=ast.Store())],
                value=ast.List(elts=[], ctx=ast.Load()),
            ),
            # _append = buf.append
            ast.Assign(
                targets=[ast.Name(id="_append", ctx=ast.Store())],
                value=ast.Attribute(
                    value=ast.Name(id="buf", ctx=ast.Load()),
                    attr="append",
                    ctx=ast.Load(),
                ),
            ),
        ]

        body.extend(self._compile_body(node.body))

        # return ''.join(buf)
        body.append(
            ast.Return(
                value=ast.Call(
                    func=ast.Attribute(
                        value=ast.Constant(value=""),
                        attr="join",
                        ctx=ast.Load(),
                    ),
                    args=[ast.Name(id="buf", ctx=ast.Load())],
                    keywords=[],
                ),
            )
        )

        return ast.FunctionDef(
            name="render",
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg="ctx")],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=body,
            decorator_list=[],
            returns=None,
        )

    def _compile_body(self, nodes: Sequence[Node]) -> list[ast.stmt]:
        stmts: list[ast.stmt] = []
        for child in nodes:
            stmts.extend(self._compile_node(child))
        return stmts

    # Node types that can cause runtime errors and should track line numbers
    _LINE_TRACKED_NODES = frozenset(
        {
            "Output",
            "For",
            "If",
            "While",
            "Set",
            "Include",
            "Debug",
        }
    )

    def _make_line_marker(self, lineno: int) -> ast.stmt:
        """Generate ``_get_render_ctx().line = lineno``."""
        return ast.Assign(
            targets=[
                ast.Attribute(
                    value=ast.Call(
                        func=ast.Name(id="_get_render_ctx", ctx=ast.Load()),
                        args=[],
                        keywords=[],
                    ),
                    attr="line",
                    ctx=ast.Store(),
                )
            ],
            value=ast.Constant(value=lineno),
        )

    def _compile_node(self, node: Node) -> list[ast.stmt]:
        """Compile a single AST node to Python statements.

        Complexity: O(1) type dispatch using class name lookup.
        """
        node_type = type(node).__name__

        stmts: list[ast.stmt] = []
        # Inside an include, keep reporting the include tag's line
        if node_type in self._LINE_TRACKED_NODES and len(self._include_stack) == 1:
            stmts.append(self._make_line_marker(node.lineno))

        handler = self._get_node_dispatch().get(node_type)
        if handler is None:
            raise TypeError(f"Cannot compile node type {node_type}")
        stmts.extend(handler(node))
        return stmts

    def _get_node_dispatch(self) -> dict[str, Callable]:
        """Get node type dispatch table (cached on first call)."""
        if not hasattr(self, "_node_dispatch"):
            self._node_dispatch = {
                "Data": self._compile_data,
                "Output": self._compile_output,
                "If": self._compile_if,
                "For": self._compile_for,
                "While": self._compile_while,
                "Set": self._compile_set,
                "Include": self._compile_include,
                "Spaceless": self._compile_spaceless,
                "Debug": self._compile_debug,
            }
        return self._node_dispatch

    def _local_id(self, name: str) -> str:
        """Python identifier for a template local, kept clear of internal names."""
        return f"l_{name}"
