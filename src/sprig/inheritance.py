"""Template inheritance by AST flattening.

``{% extends %}`` is resolved before compilation: the chain of parents is
loaded, every ``{% block %}`` is collected with the most-derived definition
winning, and the root ancestor's body is rewritten with those definitions
substituted in. The result is a single Template node with no Extends or
Block nodes left, which the compiler turns into one render function.

Content of a child template outside its blocks is discarded.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Sequence
from typing import Any

from sprig.environment.exceptions import TemplateRecursionError
from sprig.nodes import Block, Node, Template

# (template name) -> (parsed template, source filename or None)
TemplateLoader = Callable[[str], tuple[Template, str | None]]

# Fields that hold child statement lists
_BODY_FIELDS = ("body", "else_", "empty")


class InheritanceResolver:
    """Flattens ``extends`` chains.

    Args:
        load: Parses a template by name; raises TemplateNotFoundError
        max_depth: Longest allowed parent chain

    Example:
        >>> resolver = InheritanceResolver(env._parse_named)
        >>> flat, files = resolver.resolve(child_node, "page.html")
    """

    __slots__ = ("_load", "_max_depth")

    def __init__(self, load: TemplateLoader, max_depth: int = 50):
        self._load = load
        self._max_depth = max_depth

    def resolve(self, node: Template, name: str) -> tuple[Template, list[str]]:
        """Flatten ``node`` and return it with the source files of its ancestors.

        Raises:
            TemplateNotFoundError: A parent template does not exist
            TemplateRecursionError: The chain is circular or too deep
        """
        chain = [name]
        files: list[str] = []
        overrides: dict[str, Sequence[Node]] = {}

        current = node
        while current.extends is not None:
            parent_name = current.extends.template
            if parent_name in chain:
                raise TemplateRecursionError([*chain, parent_name])
            if len(chain) > self._max_depth:
                raise TemplateRecursionError([*chain, parent_name], max_depth=self._max_depth)

            for block_name, body in self._collect_blocks(current.body).items():
                overrides.setdefault(block_name, body)

            current, filename = self._load(parent_name)
            chain.append(parent_name)
            if filename:
                files.append(filename)

        body = self._substitute(current.body, overrides, frozenset())
        flat = Template(lineno=node.lineno, col_offset=node.col_offset, body=body, extends=None)
        return flat, files

    def _collect_blocks(self, nodes: Sequence[Node]) -> dict[str, Sequence[Node]]:
        """Every block defined in ``nodes``, including nested ones.

        A later definition of a name in the same template replaces an earlier one.
        """
        blocks: dict[str, Sequence[Node]] = {}

        def visit(children: Sequence[Any]) -> None:
            for child in children:
                if isinstance(child, Block):
                    blocks[child.name] = child.body
                for field in _BODY_FIELDS:
                    inner = getattr(child, field, None)
                    if inner:
                        visit(inner)
                for _test, elif_body in getattr(child, "elif_", ()):
                    visit(elif_body)

        visit(nodes)
        return blocks

    def _substitute(
        self,
        nodes: Sequence[Node],
        overrides: dict[str, Sequence[Node]],
        active: frozenset[str],
    ) -> tuple[Node, ...]:
        """Replace blocks in ``nodes`` with their winning definitions.

        ``active`` holds the blocks being expanded, so a block that contains
        a block of the same name keeps the inner one as plain content.
        """
        result: list[Node] = []
        for node in nodes:
            if isinstance(node, Block):
                if node.name in active:
                    result.extend(self._substitute(node.body, overrides, active))
                    continue
                body = overrides.get(node.name, node.body)
                result.extend(self._substitute(body, overrides, active | {node.name}))
                continue
            result.append(self._substitute_children(node, overrides, active))
        return tuple(result)

    def _substitute_children(
        self,
        node: Node,
        overrides: dict[str, Sequence[Node]],
        active: frozenset[str],
    ) -> Node:
        changes: dict[str, Any] = {}
        for field in _BODY_FIELDS:
            inner = getattr(node, field, None)
            if inner:
                changes[field] = self._substitute(inner, overrides, active)
        elifs = getattr(node, "elif_", None)
        if elifs:
            changes["elif_"] = tuple(
                (test, self._substitute(body, overrides, active)) for test, body in elifs
            )
        if not changes:
            return node
        return dataclasses.replace(node, **changes)
