"""Sprig Template: compiled template object ready for rendering.

The Template class wraps a compiled code object and provides the
``render()`` API. Templates are immutable and thread-safe for concurrent
rendering.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _code: code object              # Compiled Python bytecode
    ├── _render_func: callable          # Extracted render() function
    └── _name, _filename, _source       # For error messages
    ```

StringBuilder Pattern:
Generated code uses ``buf.append()`` + ``''.join(buf)``:
    ```python
    def render(ctx):
        buf = []
        _append = buf.append
        _append("Hello, ")
        _append(_e(_lookup(ctx, "name")))
        return ''.join(buf)
    ```

Memory Safety:
Uses ``weakref.ref(env)`` to break potential cycles:
``Template → (weak) → Environment → cache → Template``
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

from sprig.environment.exceptions import (
    TemplateError,
    TemplateRuntimeError,
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
    build_source_snippet,
)
from sprig.render_context import (
    RenderContext,
    get_render_context,
    get_render_context_required,
    render_context,
)
from sprig.template.helpers import STATIC_NAMESPACE
from sprig.template.loop_context import LoopContext
from sprig.utils.html import spaceless

if TYPE_CHECKING:
    import types

    from sprig.environment import Environment


def _current_line() -> int | None:
    render_ctx = get_render_context()
    return render_ctx.line if render_ctx is not None else None


class Template:
    """Compiled template ready for rendering.

    Wraps a compiled code object containing a ``render(ctx)`` function.

    Thread-Safety:
        - Template object is immutable after construction
        - Each ``render()`` call creates local state only (buf list, ctx copy)
        - Multiple threads can render the same template simultaneously

    Attributes:
        name: Template identifier (for error messages)
        filename: Source file path (for error messages)
        from_cache: True when the code object came from the bytecode cache
        dependencies: Files the compiled code was built from, besides the source

    Error Enhancement:
        Exceptions that are not template errors are wrapped in
        TemplateRuntimeError carrying the template name, the line being
        executed and a source snippet:
            ```
            Runtime Error: unsupported operand type(s) for +: 'int' and 'str'
              Location: cart.html:15
            ```

    Example:
            >>> from sprig import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{ name|upper }}!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'
    """

    __slots__ = (
        "_code",
        "_dependencies",
        "_env_ref",
        "_filename",
        "_from_cache",
        "_name",
        "_namespace",
        "_render_func",
        "_source",
    )

    def __init__(
        self,
        env: Environment,
        code: types.CodeType,
        name: str | None,
        filename: str | None,
        source: str | None = None,
        *,
        from_cache: bool = False,
        dependencies: tuple[str, ...] = (),
    ):
        """Initialize template with compiled code.

        Args:
            env: Parent Environment (stored as weak reference)
            code: Compiled Python code object
            name: Template name (for error messages)
            filename: Source filename (for error messages)
            source: Template source for runtime error snippets
            from_cache: Whether ``code`` was loaded from the bytecode cache
            dependencies: Source files spliced in by inheritance and include
        """
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._code = code
        self._name = name
        self._filename = filename
        self._source = source
        self._from_cache = from_cache
        self._dependencies = dependencies

        env_ref = self._env_ref

        # Names are checked while compiling; these lookups also cover code
        # loaded from the bytecode cache, which was compiled against a
        # possibly different registry.
        def _filter(filter_name: str, value: Any, *args: Any, **kwargs: Any) -> Any:
            filters = env_ref().filters  # type: ignore[union-attr]
            try:
                func = filters[filter_name]
            except KeyError:
                raise UnknownFilterError(
                    filter_name, available=filters, template_name=name, lineno=_current_line()
                ) from None
            return func(value, *args, **kwargs)

        def _call_function(func_name: str, *args: Any, **kwargs: Any) -> Any:
            functions = env_ref().functions  # type: ignore[union-attr]
            try:
                func = functions[func_name]
            except KeyError:
                raise UnknownFunctionError(
                    func_name, available=functions, template_name=name, lineno=_current_line()
                ) from None
            return func(*args, **kwargs)

        def _test(test_name: str, value: Any, *args: Any) -> bool:
            tests = env_ref().tests  # type: ignore[union-attr]
            try:
                func = tests[test_name]
            except KeyError:
                raise UnknownTestError(
                    test_name, available=tests, template_name=name, lineno=_current_line()
                ) from None
            return bool(func(value, *args))

        namespace: dict[str, Any] = STATIC_NAMESPACE.copy()
        namespace.update(
            {
                "_filter": _filter,
                "_call_function": _call_function,
                "_test": _test,
                "_spaceless": spaceless,
                "_LoopContext": LoopContext,
                "_get_render_ctx": get_render_context_required,
            }
        )
        exec(code, namespace)
        self._render_func = namespace["render"]
        self._namespace = namespace

    @property
    def _env(self) -> Environment:
        """Get the Environment (dereferences weak reference)."""
        env = self._env_ref()
        if env is None:
            raise RuntimeError(
                f"Environment has been garbage collected (template: {self._name or 'unknown'})"
            )
        return env

    @property
    def name(self) -> str | None:
        """Template name."""
        return self._name

    @property
    def filename(self) -> str | None:
        """Source filename."""
        return self._filename

    @property
    def from_cache(self) -> bool:
        return self._from_cache

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self._dependencies

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render template with given context.

        Environment variables (``assign``) are applied first, then the
        positional dict, then keyword arguments. The template works on a
        copy, so ``{% set %}`` never modifies the caller's mapping.

        Args:
            *args: Single dict of context variables
            **kwargs: Context variables as keyword arguments

        Returns:
            Rendered template as string

        Raises:
            UndefinedError: Undefined reference in strict or development mode
            TemplateRuntimeError: Any other failure while rendering
        """
        env = self._env

        ctx: dict[str, Any] = {}
        ctx.update(env.globals)

        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                ctx.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )

        ctx.update(kwargs)

        with render_context(
            template_name=self._name,
            filename=self._filename,
            source=self._source,
            variables=ctx,
            undefined_handler=env._handle_undefined,
        ) as render_ctx:
            try:
                result: str = self._render_func(ctx)
                return result
            except TemplateError:
                raise
            except Exception as e:
                raise self._enhance_error(e, render_ctx) from e

    def _enhance_error(self, error: Exception, render_ctx: RenderContext) -> TemplateRuntimeError:
        """Convert a Python exception into TemplateRuntimeError with template context."""
        lineno = render_ctx.line or None
        error_str = str(error).strip()
        if not error_str:
            error_str = f"{type(error).__name__} (no details available)"
        elif not isinstance(error, (TypeError, ValueError)):
            error_str = f"{type(error).__name__}: {error_str}"

        snippet = None
        if self._source and lineno:
            snippet = build_source_snippet(self._source, lineno)

        return TemplateRuntimeError(
            error_str,
            template_name=self._name,
            lineno=lineno,
            source_snippet=snippet,
        )

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"
