"""Template structure statement compilation for Sprig compiler.

Provides mixin for compiling {% include %}. Includes are resolved while
compiling: the named template is loaded, flattened through its own
inheritance chain, and its statements are spliced in place of the tag.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
import logging
from typing import TYPE_CHECKING, Any

from sprig.environment.exceptions import TemplateNotFoundError, TemplateRecursionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sprig.environment import Environment
    from sprig.nodes import Node

logger = logging.getLogger(__name__)


class TemplateStructureMixin:
    """Mixin for compiling template structure statements.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _env: Environment
        _include_stack: list[str]
        _dependencies: list[str]
        _missing_includes: list[str]

        # From Compiler core
        def _compile_body(self, nodes: Sequence[Node]) -> list[ast.stmt]: ...

    def _compile_include(self, node: Any) -> list[ast.stmt]:
        """Compile {% include "name" %} by expanding the included body inline.

        A missing template is logged, recorded in ``_missing_includes`` and
        contributes no output. A template that includes itself, directly or
        through others, raises TemplateRecursionError, as does a chain
        deeper than the environment's ``max_depth``.
        """
        name = node.template
        chain = [*self._include_stack, name]

        if name in self._include_stack:
            raise TemplateRecursionError(chain)
        if len(self._include_stack) > self._env.max_depth:
            raise TemplateRecursionError(chain, max_depth=self._env.max_depth)

        try:
            included, files = self._env._load_flattened(name)
        except TemplateNotFoundError:
            logger.warning(f"Include template not found: {name}")
            self._missing_includes.append(name)
            return []

        self._dependencies.extend(files)
        self._include_stack.append(name)
        try:
            return self._compile_body(included.body)
        finally:
            self._include_stack.pop()
