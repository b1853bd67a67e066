"""Sprig Compiler: transforms a flattened Sprig AST into Python code objects.

Generates ``ast.Module`` directly (no source strings), compiles it with
``compile()``, and the Template executes the result once to obtain its
``render(ctx)`` function.
"""

from sprig.compiler.core import Compiler

__all__ = ["Compiler"]
