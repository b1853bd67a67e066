"""Pure runtime helper functions injected into the template namespace.

These functions are called by compiled template code at render time.
None of them close over Environment state; undefined references are
reported through the current RenderContext.

Thread-Safety:
All functions are stateless and safe for concurrent use.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pprint import pformat
from typing import Any

from sprig.render_context import get_render_context
from sprig.utils.html import Markup, html_escape


class Undefined:
    """Placeholder returned for a variable, key or attribute that is missing.

    Renders as an empty string, is falsy, iterates as empty and compares
    equal only to ``None`` and itself, so markup around a missing value
    degrades instead of failing. Accessing anything on it, or doing
    arithmetic with it, yields itself without reporting again.
    """

    __slots__ = ()

    _instance: Undefined | None = None

    def __new__(cls) -> Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __str__(self) -> str:
        return ""

    def __html__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "Undefined"

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self) -> Any:
        return iter(())

    def __contains__(self, item: Any) -> bool:
        return False

    def __call__(self, *args: Any, **kwargs: Any) -> Undefined:
        return self

    def __eq__(self, other: object) -> bool:
        return other is None or isinstance(other, Undefined)

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return 0

    def __lt__(self, other: Any) -> bool:
        return False

    __le__ = __gt__ = __ge__ = __lt__

    def __add__(self, other: Any) -> Undefined:
        return self

    # Arithmetic with a missing operand stays missing
    __radd__ = __sub__ = __rsub__ = __mul__ = __rmul__ = __add__
    __truediv__ = __rtruediv__ = __floordiv__ = __rfloordiv__ = __add__
    __mod__ = __rmod__ = __pow__ = __rpow__ = __add__

    def __neg__(self) -> Undefined:
        return self

    __pos__ = __abs__ = __neg__


UNDEFINED = Undefined()


def report_undefined(name: str, message: str) -> None:
    """Send an undefined reference to the current render's handler.

    Silent outside a render and while evaluating quietly.
    """
    render_ctx = get_render_context()
    if render_ctx is not None and not render_ctx.quiet:
        render_ctx.report_undefined(name, message)


def lookup(ctx: dict[str, Any], var_name: str) -> Any:
    """Look up a context variable, reporting it when missing.

    Performance:
        - Fast path (defined var): O(1) dict lookup
        - Miss: report, then return UNDEFINED
    """
    try:
        return ctx[var_name]
    except KeyError:
        report_undefined(var_name, f"Undefined variable '{var_name}'")
        return UNDEFINED


def is_set(ctx: dict[str, Any], var_name: str) -> bool:
    """``{% if name %}`` on a bare identifier: present and truthy, never reported."""
    value = ctx.get(var_name, UNDEFINED)
    return bool(value)


def access(obj: Any, key: Any) -> Any:
    """Resolve ``obj.key`` / ``obj[key]``.

    Mappings try the key first and fall back to attributes (so
    ``mapping.items`` still reaches the method). Other objects try the
    attribute first and fall back to subscripting, which covers sequence
    indexes. A miss is reported once; access through an already undefined
    value is silent.
    """
    if obj is UNDEFINED:
        return UNDEFINED
    if obj is None:
        report_undefined(str(key), f"Cannot access '{key}' on null")
        return UNDEFINED

    if isinstance(obj, Mapping):
        try:
            return obj[key]
        except (KeyError, TypeError):
            pass
        if isinstance(key, str):
            try:
                return getattr(obj, key)
            except AttributeError:
                pass
        report_undefined(str(key), f"Undefined key '{key}' on {type(obj).__name__}")
        return UNDEFINED

    if isinstance(key, str):
        try:
            return getattr(obj, key)
        except AttributeError:
            pass
    try:
        return obj[key]
    except (KeyError, IndexError, TypeError):
        pass
    report_undefined(str(key), f"Undefined attribute '{key}' on {type(obj).__name__}")
    return UNDEFINED


def quietly(value_fn: Callable[[], Any]) -> Any:
    """Evaluate ``value_fn`` without reporting undefined references.

    Used for the operand of ``default`` and of the ``defined``/``null``/
    ``empty`` tests, where a missing value is the expected case.
    """
    render_ctx = get_render_context()
    if render_ctx is None:
        return value_fn()
    render_ctx.quiet += 1
    try:
        return value_fn()
    finally:
        render_ctx.quiet -= 1


def str_safe(value: Any) -> str:
    """String form for raw output: None and Undefined render as ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def concat(*values: Any) -> str:
    """``a ~ b ~ c``"""
    return "".join(str_safe(value) for value in values)


def contains(container: Any, item: Any) -> bool:
    """``item in container``; False for containers that do not support it."""
    try:
        return item in container
    except TypeError:
        return False


def starts_with(value: Any, prefix: Any) -> bool:
    return str_safe(value).startswith(str_safe(prefix))


def ends_with(value: Any, suffix: Any) -> bool:
    return str_safe(value).endswith(str_safe(suffix))


def inclusive_range(start: Any, end: Any, step: Any = 1) -> list[Any]:
    """Inclusive numeric range used by ``range()`` and ``a..b``.

    A positive step counts up to ``end``, a negative step counts down.

    Raises:
        ValueError: If step is zero.
    """
    if step == 0:
        raise ValueError("range() step cannot be zero")
    if all(isinstance(n, int) for n in (start, end, step)):
        stop = end + 1 if step > 0 else end - 1
        return list(range(start, stop, step))
    result: list[Any] = []
    current = start
    if step > 0:
        while current <= end:
            result.append(current)
            current += step
    else:
        while current >= end:
            result.append(current)
            current += step
    return result


def loop_items(iterable: Any, pair: bool = False) -> list[Any]:
    """Materialize a ``{% for %}`` iterable.

    Mappings yield values, or ``(key, value)`` pairs for two loop targets.
    Sequences with two targets yield ``(index, value)``. ``None`` and
    undefined values iterate as empty.
    """
    if iterable is None or iterable is UNDEFINED:
        return []
    if isinstance(iterable, Mapping):
        return list(iterable.items()) if pair else list(iterable.values())
    if pair:
        return list(enumerate(iterable))
    return list(iterable)


def debug_dump(value: Any, label: str) -> Markup:
    """Styled HTML block for ``{% debug %}``."""
    if isinstance(value, Mapping):
        value = dict(value)
    return Markup(
        '<div class="sprig-debug" style="background:#f5f5f5;border:1px solid #ccc;'
        'padding:10px;margin:10px 0;font-family:monospace;font-size:12px;">'
        f"<strong>Debug: {html_escape(label)}</strong>"
        f"<pre>{html_escape(pformat(value))}</pre>"
        "</div>"
    )


# =============================================================================
# Shared Base Namespace
# =============================================================================
# Static entries shared across all Template instances, copied once per
# Template.__init__. Read-only after module load.
# =============================================================================

STATIC_NAMESPACE: dict[str, Any] = {
    "__builtins__": {"__import__": __import__},
    "_Markup": Markup,
    "_escape": html_escape,
    "_str": str_safe,
    "_UNDEFINED": UNDEFINED,
    "_lookup": lookup,
    "_is_set": is_set,
    "_access": access,
    "_quietly": quietly,
    "_concat": concat,
    "_contains": contains,
    "_starts_with": starts_with,
    "_ends_with": ends_with,
    "_range": inclusive_range,
    "_loop_items": loop_items,
    "_debug": debug_dump,
}
