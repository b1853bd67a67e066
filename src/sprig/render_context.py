"""Per-render state kept out of the user's context.

Generated code records the current source line here, and the runtime
helpers report undefined references through the handler installed by the
environment. Each thread (and each asyncio task) sees its own
``RenderContext`` because it lives in a ``ContextVar``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any

# (render_ctx, name, message) -> None; may raise UndefinedError
UndefinedHandler = Callable[["RenderContext", str, str], None]


@dataclass
class RenderContext:
    """Per-render state isolated from user context.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Template source for runtime error snippets
        line: Current line number (updated during render by generated code)
        variables: The render's context mapping, for "available variables"
        undefined_handler: Receives every undefined reference
        quiet: Nesting depth of quiet evaluation; reports are dropped while > 0
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0
    variables: Mapping[str, Any] | None = None
    undefined_handler: UndefinedHandler | None = None
    quiet: int = 0

    @property
    def location(self) -> str:
        """``file:line`` of the statement currently executing."""
        where = self.filename or self.template_name or "<template>"
        return f"{where}:{self.line}"

    def available_names(self) -> frozenset[str]:
        if self.variables is None:
            return frozenset()
        return frozenset(str(key) for key in self.variables)

    def report_undefined(self, name: str, message: str) -> None:
        """Forward an undefined reference to the installed handler."""
        if self.undefined_handler is not None:
            self.undefined_handler(self, name, message)


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "sprig_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Current RenderContext, or None outside a render."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Current RenderContext; used by generated code for line tracking.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    variables: Mapping[str, Any] | None = None,
    undefined_handler: UndefinedHandler | None = None,
) -> Iterator[RenderContext]:
    """Install a fresh RenderContext for the duration of the block.

    Example:
        with render_context(template_name="page.html") as ctx:
            html = template._render_func(user_ctx)
            # ctx.line tracks the statement being executed
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        variables=variables,
        undefined_handler=undefined_handler,
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
