"""Core Environment class for Sprig template system.

The Environment is the central configuration object. It owns the loader,
the filter/function/test registries, the compiled-template caches, the
undefined-variable policy and render telemetry.

Pipeline (per template, on a cache miss):
    loader.get_source → Lexer → Parser → InheritanceResolver → Compiler → code

Thread-Safety:
    - Registries use copy-on-write: a mutation replaces the whole dict
    - The in-memory code cache is a plain dict updated with single
      assignments; the bytecode cache writes atomically
    - The undefined counter and render history lock internally
"""

from __future__ import annotations

import logging
import sys
import time
import tracemalloc
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from sprig.bytecode_cache import BytecodeCache
from sprig.compiler import Compiler
from sprig.environment.exceptions import (
    TemplateTooLargeError,
    UndefinedError,
    build_source_snippet,
)
from sprig.environment.filters import DEFAULT_FILTERS
from sprig.environment.functions import DEFAULT_FUNCTIONS
from sprig.environment.registry import FilterRegistry
from sprig.environment.tests import DEFAULT_TESTS
from sprig.inheritance import InheritanceResolver
from sprig.lexer import Lexer
from sprig.parser import Parser
from sprig.telemetry import (
    RenderCollector,
    RenderHistory,
    RenderRecord,
    UndefinedCounter,
    UndefinedReference,
)
from sprig.template import Template

if TYPE_CHECKING:
    import types

    from sprig.environment.loaders import Loader
    from sprig.nodes import Template as TemplateNode
    from sprig.render_context import RenderContext

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[UndefinedError], None]


@dataclass
class Environment:
    """Central configuration and template management hub.

    Attributes:
        loader: Template source provider (FileSystemLoader, DictLoader, ...)
        cache_dir: Directory for the bytecode cache; None keeps compiled
            templates in memory only
        cache_enabled: Serve compiled templates from cache
        cache_lifetime: Maximum age of a bytecode cache entry, in seconds
        development: Development mode flag, or a callable consulted per event
        error_reporter: Receives UndefinedError in development mode instead
            of it being raised
        strict_variables: Raise UndefinedError on every undefined reference
        log_undefined: Log undefined references in production mode
        filters: Extra filters merged over the built-ins
        functions: Extra functions merged over the built-ins
        collector: Receives a RenderRecord after every ``render()``
        max_template_size: Largest accepted template source, in bytes
        max_nesting: Deepest allowed block nesting inside one template
        max_depth: Longest allowed extends/include chain

    Example:
            >>> env = Environment(loader=FileSystemLoader("templates/"))
            >>> env.assign("site_name", "Sprig").add_filter("shout", lambda s: s.upper() + "!")
            >>> env.render("index.html", {"user": user})
    """

    loader: Loader | None = None
    cache_dir: str | Path | None = None
    cache_enabled: bool = True
    cache_lifetime: float = 3600
    development: bool | Callable[[], bool] = False
    error_reporter: ErrorReporter | None = None
    strict_variables: bool = False
    log_undefined: bool = True
    filters: Any = None
    functions: Any = None
    collector: RenderCollector | None = None
    max_template_size: int = 5 * 1024 * 1024
    max_nesting: int = 50
    max_depth: int = 50

    globals: dict[str, Any] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        # Copy-on-write tables behind the dict-like registry views
        self._filters: dict[str, Callable] = {**DEFAULT_FILTERS, **(self.filters or {})}
        self._functions: dict[str, Callable] = {**DEFAULT_FUNCTIONS, **(self.functions or {})}
        self._tests: dict[str, Callable] = dict(DEFAULT_TESTS)
        self.filters = FilterRegistry(self, "_filters")
        self.functions = FilterRegistry(self, "_functions")
        self.tests = FilterRegistry(self, "_tests")

        self._bytecode_cache: BytecodeCache | None = (
            BytecodeCache(self.cache_dir, lifetime=self.cache_lifetime)
            if self.cache_dir is not None
            else None
        )
        # name → (source, code); for templates the bytecode cache cannot hold
        self._memory_cache: dict[str, tuple[str, types.CodeType]] = {}

        self._undefined = UndefinedCounter()
        self._history = RenderHistory()

    # ─────────────────────────────────────────────────────────────────────────
    # Configuration (chainable)
    # ─────────────────────────────────────────────────────────────────────────

    def assign(self, name: str, value: Any) -> Environment:
        """Make ``name`` available to every render."""
        self.globals = {**self.globals, name: value}
        return self

    def assign_multiple(self, variables: Mapping[str, Any]) -> Environment:
        self.globals = {**self.globals, **variables}
        return self

    def add_filter(self, name: str, func: Callable) -> Environment:
        """Register a filter; an existing filter of the same name is replaced.

        Example:
            >>> env.add_filter("double", lambda x: x * 2)
            >>> # {{ 21|double }} → 42
        """
        self.filters[name] = func
        return self

    def add_function(self, name: str, func: Callable) -> Environment:
        self.functions[name] = func
        return self

    def add_test(self, name: str, func: Callable) -> Environment:
        self.tests[name] = func
        return self

    def filter(self, name: str | None = None) -> Callable[[Callable], Callable]:
        """Decorator to register a filter.

        Example:
            >>> @env.filter()
            ... def double(value):
            ...     return value * 2
        """

        def decorator(func: Callable) -> Callable:
            self.add_filter(name or func.__name__, func)
            return func

        return decorator

    def function(self, name: str | None = None) -> Callable[[Callable], Callable]:
        """Decorator to register a function."""

        def decorator(func: Callable) -> Callable:
            self.add_function(name or func.__name__, func)
            return func

        return decorator

    def test(self, name: str | None = None) -> Callable[[Callable], Callable]:
        """Decorator to register a test."""

        def decorator(func: Callable) -> Callable:
            self.add_test(name or func.__name__, func)
            return func

        return decorator

    def set_cache_enabled(self, enabled: bool) -> Environment:
        self.cache_enabled = enabled
        return self

    def set_cache_lifetime(self, seconds: float) -> Environment:
        self.cache_lifetime = seconds
        if self._bytecode_cache is not None:
            self._bytecode_cache.lifetime = seconds
        return self

    def clear_cache(self) -> Environment:
        """Drop every compiled template, in memory and on disk."""
        self._memory_cache = {}
        if self._bytecode_cache is not None:
            self._bytecode_cache.clear()
        return self

    def set_strict_variables(self, strict: bool) -> Environment:
        self.strict_variables = strict
        return self

    def set_log_undefined(self, enabled: bool) -> Environment:
        self.log_undefined = enabled
        return self

    @property
    def bytecode_cache(self) -> BytecodeCache | None:
        return self._bytecode_cache

    def is_development(self) -> bool:
        """Evaluate the development-mode flag (callables are asked each time)."""
        if callable(self.development):
            return bool(self.development())
        return bool(self.development)

    # ─────────────────────────────────────────────────────────────────────────
    # Loading and compilation
    # ─────────────────────────────────────────────────────────────────────────

    def _get_source(self, name: str) -> tuple[str, str | None]:
        """Fetch source from the loader and enforce the size limit."""
        if self.loader is None:
            raise RuntimeError("No loader configured")
        source, filename = self.loader.get_source(name)
        size = len(source.encode("utf-8"))
        if size > self.max_template_size:
            raise TemplateTooLargeError(name, size, self.max_template_size)
        return source, filename

    def _parse(self, source: str, name: str | None, filename: str | None) -> TemplateNode:
        tokens = Lexer(source, name=name, filename=filename).tokenize()
        return Parser(
            tokens, name, filename, source, max_nesting=self.max_nesting
        ).parse()

    def _parse_named(self, name: str) -> tuple[TemplateNode, str | None]:
        """Load and parse a template by name (inheritance resolver callback)."""
        source, filename = self._get_source(name)
        return self._parse(source, name, filename), filename

    def _load_flattened(self, name: str) -> tuple[TemplateNode, list[str]]:
        """Load, parse and flatten a template; returns it with its source files.

        Used by the compiler to expand ``{% include %}``.
        """
        node, filename = self._parse_named(name)
        flat, parents = InheritanceResolver(self._parse_named, self.max_depth).resolve(node, name)
        return flat, [f for f in (filename, *parents) if f]

    def _compile(
        self, source: str, name: str | None, filename: str | None
    ) -> tuple[types.CodeType, tuple[str, ...], bool]:
        """Compile source to a code object.

        Returns the code, its dependencies, and whether it may be cached
        (False when an included template was missing).
        """
        node = self._parse(source, name, filename)
        flat, parents = InheritanceResolver(self._parse_named, self.max_depth).resolve(
            node, name or "<string>"
        )
        compiler = Compiler(self)
        code = compiler.compile(flat, name, filename)
        dependencies = tuple(dict.fromkeys([*parents, *compiler.dependencies]))
        return code, dependencies, not compiler.missing_includes

    def _file_backed(self, filename: str | None) -> bool:
        return filename is not None and Path(filename).is_file()

    def get_template(self, name: str, use_cache: bool | None = None) -> Template:
        """Load a compiled template by name.

        File-backed templates use the bytecode cache when ``cache_dir`` is
        set; other templates are cached in memory, keyed by name and
        validated against their current source.

        Args:
            name: Template name relative to the loader
            use_cache: Override ``cache_enabled`` for this call; False
                always compiles and never reads or writes a cache

        Raises:
            TemplateNotFoundError: If the template (or a parent) doesn't exist
            TemplateSyntaxError: If the template has syntax errors
        """
        caching = self.cache_enabled if use_cache is None else use_cache
        source, filename = self._get_source(name)
        disk = self._bytecode_cache if self._file_backed(filename) else None

        if caching:
            code: types.CodeType | None = None
            if disk is not None:
                code = disk.get(filename)  # type: ignore[arg-type]
            else:
                entry = self._memory_cache.get(name)
                if entry is not None and entry[0] == source:
                    code = entry[1]
            if code is not None:
                return Template(self, code, name, filename, source, from_cache=True)

        code, dependencies, cacheable = self._compile(source, name, filename)

        if caching and not cacheable:
            logger.debug(f"Not caching {name}: it includes a missing template")
        elif caching:
            if disk is not None:
                disk.put(filename, code, dependencies)  # type: ignore[arg-type]
            else:
                self._memory_cache = {**self._memory_cache, name: (source, code)}

        return Template(self, code, name, filename, source, dependencies=dependencies)

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile a template from a string (never cached).

        ``{% extends %}`` and ``{% include %}`` inside it resolve through
        the loader.

        Example:
            >>> env.from_string("Hello, {{ name }}!").render(name="World")
            'Hello, World!'
        """
        code, dependencies, _ = self._compile(source, name, None)
        return Template(self, code, name, None, source, dependencies=dependencies)

    # ─────────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────────

    def render(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        *,
        use_cache: bool | None = None,
    ) -> str:
        """Load and render a template, recording a RenderRecord.

        Example:
            >>> env.render("hello.html", {"name": "World"})
            'Hello, World!'
        """
        variables = dict(variables or {})
        tracing = tracemalloc.is_tracing()
        memory_before = tracemalloc.get_traced_memory()[0] if tracing else 0
        start = time.perf_counter()

        template = self.get_template(name, use_cache)
        output = template.render(variables)

        elapsed_ms = (time.perf_counter() - start) * 1000
        memory_delta = tracemalloc.get_traced_memory()[0] - memory_before if tracing else 0

        record = RenderRecord(
            template=name,
            path=template.filename,
            variables=tuple(sorted(variables)),
            variable_count=len(variables),
            elapsed_ms=elapsed_ms,
            memory_delta=memory_delta,
            output_size=len(output),
            from_cache=template.from_cache,
            timestamp=time.time(),
        )
        self._history.record(record)
        if self.collector is not None:
            self.collector.record(record)
        return output

    def display(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        *,
        use_cache: bool | None = None,
        file: TextIO | None = None,
    ) -> None:
        """Render and write the output to ``file`` (standard output by default)."""
        output = self.render(name, variables, use_cache=use_cache)
        (file if file is not None else sys.stdout).write(output)

    # ─────────────────────────────────────────────────────────────────────────
    # Undefined variables
    # ─────────────────────────────────────────────────────────────────────────

    def _handle_undefined(self, render_ctx: RenderContext, name: str, message: str) -> None:
        """Apply the undefined-reference policy (installed on every RenderContext).

        Counts the reference, then raises, reports or logs depending on
        ``strict_variables``, development mode and ``log_undefined``.
        """
        self._undefined.add(name, message, render_ctx.location)

        if self.strict_variables or self.is_development():
            lineno = render_ctx.line or None
            snippet = (
                build_source_snippet(render_ctx.source, lineno)
                if render_ctx.source and lineno
                else None
            )
            error = UndefinedError(
                name,
                render_ctx.template_name,
                lineno,
                render_ctx.available_names(),
                snippet,
                detail=message,
            )
            if self.strict_variables or self.error_reporter is None:
                raise error
            self.error_reporter(error)
            return

        if self.log_undefined:
            available = ", ".join(sorted(render_ctx.available_names()))
            logger.warning(
                f"Template undefined variable: {name}\n{message}\n"
                f"File: {render_ctx.location}\nAvailable variables: {available}"
            )

    @property
    def undefined_references(self) -> dict[str, UndefinedReference]:
        """Snapshot of undefined references seen so far, by name."""
        return self._undefined.snapshot()

    def clear_undefined_references(self) -> Environment:
        self._undefined.clear()
        return self

    @property
    def render_history(self) -> list[RenderRecord]:
        return self._history.records

    def render_stats(self) -> dict[str, Any]:
        """Totals over the retained render history."""
        return self._history.stats()

    def clear_render_history(self) -> Environment:
        self._history.clear()
        return self
