"""Statement compilation for Sprig compiler.

Provides mixins for compiling Sprig statement AST nodes to Python AST statements.

The statements package is organized into logical modules:
- basic: Basic output (data, output)
- control_flow: Control flow (if, for, while)
- variables: Variable assignments (set)
- template_structure: Compile-time include expansion
- special_blocks: Spaceless and debug

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from sprig.compiler.statements.basic import BasicStatementMixin
from sprig.compiler.statements.control_flow import ControlFlowMixin
from sprig.compiler.statements.special_blocks import SpecialBlockMixin
from sprig.compiler.statements.template_structure import TemplateStructureMixin
from sprig.compiler.statements.variables import VariableAssignmentMixin


class StatementCompilationMixin(
    BasicStatementMixin,
    ControlFlowMixin,
    VariableAssignmentMixin,
    TemplateStructureMixin,
    SpecialBlockMixin,
):
    """Combined mixin for compiling all statement types.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks in each individual mixin.
    """
