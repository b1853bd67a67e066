"""Terminal colors for template diagnostics.

ANSI styling is applied only when stdout is a TTY, unless overridden:
``FORCE_COLOR`` always enables colors and ``NO_COLOR`` disables them.
"""

from __future__ import annotations

import os
import re
import sys

_ANSI = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

# Semantic role -> ANSI styles
_ROLES: dict[str, tuple[str, ...]] = {
    "code": ("bright_red", "bold"),
    "location": ("cyan",),
    "lineno": ("yellow",),
    "error_line": ("bright_red",),
    "hint": ("green",),
    "suggestion": ("bright_green", "bold"),
    "dim": ("dim",),
}

_ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")


def _detect_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _detect_colors()


def supports_color() -> bool:
    """Whether diagnostics are being colored."""
    return _USE_COLORS


def style(text: str, role: str) -> str:
    """Apply the styles registered for ``role`` to ``text``.

    Unknown roles and disabled colors return ``text`` unchanged.
    """
    if not _USE_COLORS:
        return text
    prefix = "".join(_ANSI[name] for name in _ROLES.get(role, ()))
    if not prefix:
        return text
    return f"{prefix}{text}{_ANSI['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return _ANSI_RE.sub("", text)


def location(text: str) -> str:
    return style(text, "location")


def hint(text: str) -> str:
    return style(text, "hint")


def suggestion(text: str) -> str:
    return style(text, "suggestion")


def dim_text(text: str) -> str:
    return style(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """Prefix ``message`` with a highlighted error code, if any."""
    if code:
        return f"{style(code, 'code')}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Render one numbered source line, marking the error line with ``>``."""
    marker = ">" if is_error else " "
    number = style(f"{marker}{lineno:>3}", "lineno")
    body = style(content, "error_line" if is_error else "dim")
    return f"{number} | {body}"


def caret_line(column: int) -> str:
    """Caret pointing at ``column`` under a source line."""
    return f"{dim_text('   |')} {style(' ' * column + '^', 'error_line')}"
