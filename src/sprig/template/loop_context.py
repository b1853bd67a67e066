"""Loop iteration metadata for ``{% for %}`` blocks."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class LoopContext:
    """Loop iteration metadata accessible as ``loop`` inside ``{% for %}``.

    The compiled loop materializes its iterable once, so every property is
    available from the first iteration, including ``last`` and ``length``.
    Inside nested loops ``loop.parent`` is the enclosing loop's metadata
    (``None`` at the outermost level).

    Properties:
        index: 1-based iteration count (1, 2, 3, ...)
        index0: 0-based iteration count (0, 1, 2, ...)
        first: True on the first iteration
        last: True on the final iteration
        length: Total number of items
        revindex: Reverse 1-based index (counts down to 1)
        revindex0: Reverse 0-based index (counts down to 0)
        parent: Enclosing LoopContext, or None
        previtem / nextitem: Neighbouring items (None at the edges)

    Example:
            ```
            {% for row in rows %}
              {% for cell in row %}
                {{ loop.parent.index }}.{{ loop.index }}
              {% endfor %}
            {% endfor %}
            ```
    """

    __slots__ = ("_index", "_items", "_length", "_parent")

    def __init__(self, items: list[Any], parent: LoopContext | None = None) -> None:
        self._items = items
        self._length = len(items)
        self._index = 0
        self._parent = parent

    def __iter__(self) -> Iterator[Any]:
        for i, item in enumerate(self._items):
            self._index = i
            yield item

    @property
    def index(self) -> int:
        return self._index + 1

    @property
    def index0(self) -> int:
        return self._index

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._length - 1

    @property
    def length(self) -> int:
        return self._length

    @property
    def revindex(self) -> int:
        return self._length - self._index

    @property
    def revindex0(self) -> int:
        return self._length - self._index - 1

    @property
    def parent(self) -> LoopContext | None:
        return self._parent

    @property
    def previtem(self) -> Any:
        if self._index == 0:
            return None
        return self._items[self._index - 1]

    @property
    def nextitem(self) -> Any:
        if self._index >= self._length - 1:
            return None
        return self._items[self._index + 1]

    def cycle(self, *values: Any) -> Any:
        """Cycle through the given values: {{ loop.cycle('odd', 'even') }}"""
        if not values:
            return None
        return values[self._index % len(values)]

    def __repr__(self) -> str:
        return f"<LoopContext {self.index}/{self.length}>"
