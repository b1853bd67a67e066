"""Template structure nodes for Sprig AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sprig.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Extends(Node):
    """Template inheritance: {% extends "base.html" %}"""

    template: str


@dataclass(frozen=True, slots=True)
class Block(Node):
    """Named block for inheritance: {% block name %}...{% endblock %}"""

    name: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Include(Node):
    """Include another template: {% include "partial.html" %}"""

    template: str


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node representing a complete template."""

    body: Sequence[Node]
    extends: Extends | None = None
