"""HTML helpers: safe strings, escaping, tag stripping and whitespace removal."""

from __future__ import annotations

import re
from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#039;",
    }
)

_SPACELESS_RE = re.compile(
    r"(<(pre|textarea|script|style)\b.*?</\2\s*>)(?:\s+(?=<))?|>\s+(?=<)",
    re.IGNORECASE | re.DOTALL,
)
_TAG_RE = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)


class Markup(str):
    """A string that is already safe for HTML output.

    ``html_escape`` passes Markup through untouched, so filters that build
    HTML (``nl2br``, ``dump``, ``escape``) are never double-escaped.
    """

    __slots__ = ()

    def __html__(self) -> Markup:
        return self

    def __add__(self, other: Any) -> Markup:
        if isinstance(other, str) and not hasattr(other, "__html__"):
            other = html_escape(other)
        return Markup(str.__add__(self, other))

    def __repr__(self) -> str:
        return f"Markup({str.__repr__(self)})"


def html_escape(value: Any) -> str:
    """Escape ``value`` for HTML text and attribute contexts.

    Single-pass ``str.translate``; escapes both quote styles. Objects with
    ``__html__`` are trusted. ``None`` renders as an empty string.
    """
    if value is None:
        return ""
    if hasattr(value, "__html__"):
        return str(value.__html__())
    return str(value).translate(_ESCAPE_TABLE)


def strip_tags(value: str) -> str:
    """Remove HTML tags and comments."""
    return _TAG_RE.sub("", value)


def spaceless(html: str) -> str:
    """Remove whitespace between HTML tags.

    Content of ``pre``, ``textarea``, ``script`` and ``style`` elements is
    preserved verbatim.

    Example:
        >>> spaceless("<ul>\\n  <li>a</li>\\n</ul>")
        '<ul><li>a</li></ul>'
    """
    # A preserved element is matched whole, so nothing inside it is touched
    return _SPACELESS_RE.sub(lambda m: m.group(1) or ">", html).strip()
