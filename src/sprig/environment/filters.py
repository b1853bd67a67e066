"""Built-in filters for Sprig templates.

Filters transform values in expressions: `{{ value|filter(args) }}`.
Each filter takes the value first, followed by the call arguments.

Categories:
**Case**: `upper`, `lower`, `capitalize` (title-case), `trim`

**HTML**: `escape`/`e`, `striptags`, `nl2br`

**Numbers**: `abs`, `round(precision=0)`, `number_format(decimals=0, dec_point='.', thousands_sep=',')`

**Collections**:
    - `length`: Collection length, or string length
    - `count`: Collection length, 0 for anything else
    - `join(sep='')`, `first`, `last`, `keys`, `values`, `reverse`
    - `batch(size, fill=None)`, `slice(start, length=None)`

**Strings**: `truncate(length=80, suffix='...')`, `replace(search, replace)`, `split(delimiter=',')`

**Formatting**: `date(format)`, `default(fallback='')`, `json`, `json_decode`,
`url_encode`, `url_decode`, `dump`

Custom Filters:
    >>> env.add_filter("money", lambda v: f"${v:,.2f}")
    >>> # {{ price|money }}
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping, Sized
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pprint import pformat
from typing import Any
from urllib.parse import quote_plus, unquote_plus

from sprig.template.helpers import UNDEFINED, str_safe
from sprig.utils.html import Markup, html_escape, strip_tags

_NEWLINE_RE = re.compile(r"\r\n|\n|\r")


def to_number(value: Any) -> int | float:
    """Coerce a value to a number the way arithmetic filters expect.

    Numeric strings are parsed; anything unparseable becomes 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str_safe(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return 0


def _round_half_up(value: Any, precision: int) -> Decimal:
    quantum = Decimal(1).scaleb(-precision)
    try:
        return Decimal(str(to_number(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal(0).quantize(quantum)


def _items(value: Any) -> list[Any] | None:
    """Items of a list-like value; mapping values; None for scalars."""
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Case
# ─────────────────────────────────────────────────────────────────────────────


def _filter_upper(value: Any) -> str:
    return str_safe(value).upper()


def _filter_lower(value: Any) -> str:
    return str_safe(value).lower()


def _filter_capitalize(value: Any) -> str:
    """Title-case every word."""
    return str_safe(value).title()


def _filter_trim(value: Any) -> str:
    return str_safe(value).strip()


# ─────────────────────────────────────────────────────────────────────────────
# HTML
# ─────────────────────────────────────────────────────────────────────────────


def _filter_escape(value: Any) -> Markup:
    return Markup(html_escape(value))


def _filter_striptags(value: Any) -> str:
    return strip_tags(str_safe(value))


def _filter_nl2br(value: Any) -> Markup:
    """Escape, then insert ``<br />`` before every line break."""
    escaped = html_escape(value)
    return Markup(_NEWLINE_RE.sub(lambda m: "<br />" + m.group(0), escaped))


# ─────────────────────────────────────────────────────────────────────────────
# Numbers
# ─────────────────────────────────────────────────────────────────────────────


def _filter_abs(value: Any) -> int | float:
    return abs(to_number(value))


def _filter_round(value: Any, precision: int = 0) -> int | float:
    """Round half away from zero. Returns an int when precision is 0."""
    precision = int(precision)
    rounded = _round_half_up(value, precision)
    if precision <= 0:
        return int(rounded)
    return float(rounded)


def _filter_number_format(
    value: Any,
    decimals: int = 0,
    dec_point: str = ".",
    thousands_sep: str = ",",
) -> str:
    """``{{ 1234.5|number_format(2, ',', ' ') }}`` → ``1 234,50``"""
    decimals = max(0, int(decimals))
    formatted = f"{_round_half_up(value, decimals):,.{decimals}f}"
    integer, _, fraction = formatted.partition(".")
    integer = integer.replace(",", thousands_sep)
    return f"{integer}{dec_point}{fraction}" if fraction else integer


# ─────────────────────────────────────────────────────────────────────────────
# Collections
# ─────────────────────────────────────────────────────────────────────────────


def _filter_length(value: Any) -> int:
    if isinstance(value, Sized) and not isinstance(value, str):
        return len(value)
    return len(str_safe(value))


def _filter_count(value: Any) -> int:
    if isinstance(value, Sized) and not isinstance(value, str):
        return len(value)
    return 0


def _filter_join(value: Any, separator: str = "") -> Any:
    items = _items(value)
    if items is None:
        return value
    return str(separator).join(str_safe(item) for item in items)


def _filter_first(value: Any) -> Any:
    items = _items(value)
    return items[0] if items else None


def _filter_last(value: Any) -> Any:
    items = _items(value)
    return items[-1] if items else None


def _filter_keys(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        return list(value.keys())
    if isinstance(value, (list, tuple)):
        return list(range(len(value)))
    return []


def _filter_values(value: Any) -> list[Any]:
    return _items(value) or []


def _filter_reverse(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(reversed(list(value.items())))
    if isinstance(value, (list, tuple)):
        return list(reversed(value))
    return str_safe(value)[::-1]


def _filter_batch(value: Any, size: int, fill: Any = None) -> Any:
    """Split into chunks of ``size``, padding the last chunk with ``fill``."""
    items = _items(value)
    if items is None:
        return value
    size = max(1, int(size))
    chunks = [items[i : i + size] for i in range(0, len(items), size)]
    if fill is not None and chunks and len(chunks[-1]) < size:
        chunks[-1].extend([fill] * (size - len(chunks[-1])))
    return chunks


def _filter_slice(value: Any, start: int, length: int | None = None) -> Any:
    """Substring or sub-list from ``start``; a negative length stops short of the end."""
    if isinstance(value, Mapping):
        value = list(value.values())
    if not isinstance(value, (list, tuple, str)):
        return value
    result = value[int(start) :]
    if length is not None:
        result = result[: int(length)]
    return list(result) if isinstance(result, tuple) else result


# ─────────────────────────────────────────────────────────────────────────────
# Strings
# ─────────────────────────────────────────────────────────────────────────────


def _filter_truncate(value: Any, length: int = 80, suffix: str = "...") -> str:
    text = str_safe(value)
    if len(text) <= int(length):
        return text
    return text[: int(length)] + suffix


def _filter_replace(value: Any, search: Any, replace: Any) -> str:
    return str_safe(value).replace(str_safe(search), str_safe(replace))


def _filter_split(value: Any, delimiter: str = ",") -> list[str]:
    return str_safe(value).split(delimiter)


# ─────────────────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────────────────


def _filter_date(value: Any, format: str = "%Y-%m-%d %H:%M:%S") -> Any:
    """Format datetimes, timestamps and ISO date strings.

    Input that cannot be interpreted as a date is returned unchanged.
    """
    if isinstance(value, (datetime, date)):
        return value.strftime(format)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value).strftime(format)
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromtimestamp(float(text)).strftime(format)
        except (ValueError, OverflowError, OSError):
            pass
        try:
            return datetime.fromisoformat(text).strftime(format)
        except ValueError:
            return value
    return value


def _filter_default(value: Any, fallback: Any = "") -> Any:
    """Replace any empty value (including undefined) with ``fallback``."""
    if value is UNDEFINED or not value:
        return fallback
    return value


def _filter_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _filter_json_decode(value: Any) -> Any:
    try:
        return json.loads(str_safe(value))
    except ValueError:
        return None


def _filter_url_encode(value: Any) -> str:
    return quote_plus(str_safe(value))


def _filter_url_decode(value: Any) -> str:
    return unquote_plus(str_safe(value))


def _filter_dump(value: Any) -> Markup:
    return Markup(f"<pre>{html_escape(pformat(value))}</pre>")


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "abs": _filter_abs,
    "batch": _filter_batch,
    "capitalize": _filter_capitalize,
    "count": _filter_count,
    "date": _filter_date,
    "default": _filter_default,
    "dump": _filter_dump,
    "e": _filter_escape,
    "escape": _filter_escape,
    "first": _filter_first,
    "join": _filter_join,
    "json": _filter_json,
    "json_decode": _filter_json_decode,
    "keys": _filter_keys,
    "last": _filter_last,
    "length": _filter_length,
    "lower": _filter_lower,
    "nl2br": _filter_nl2br,
    "number_format": _filter_number_format,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "round": _filter_round,
    "slice": _filter_slice,
    "split": _filter_split,
    "striptags": _filter_striptags,
    "trim": _filter_trim,
    "truncate": _filter_truncate,
    "upper": _filter_upper,
    "url_decode": _filter_url_decode,
    "url_encode": _filter_url_encode,
    "values": _filter_values,
}
