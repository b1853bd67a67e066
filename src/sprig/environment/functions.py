"""Built-in template functions.

Functions are called by bare name: `{% for i in range(1, 5) %}`.
Host applications register their own (URL building, translation, asset
paths) with `Environment.add_function` or the `functions=` argument:

    >>> env = Environment(functions={"url": lambda path="": f"/app/{path}"})
    >>> env.from_string("{{ url('login') }}").render()
    '/app/login'
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sprig.template.helpers import inclusive_range

DEFAULT_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "range": inclusive_range,
}
