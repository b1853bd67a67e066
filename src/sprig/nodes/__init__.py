"""Sprig AST node types.

Immutable, slotted dataclasses produced by the parser, rewritten by the
inheritance resolver and consumed by the compiler.
"""

from sprig.nodes.base import Node
from sprig.nodes.control_flow import For, If, While
from sprig.nodes.expressions import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Range,
    Test,
    Tuple,
    UnaryOp,
)
from sprig.nodes.output import Data, Debug, Output, Spaceless
from sprig.nodes.structure import Block, Extends, Include, Template
from sprig.nodes.variables import Set

__all__ = [
    "BinOp",
    "Block",
    "BoolOp",
    "Compare",
    "Concat",
    "CondExpr",
    "Const",
    "Data",
    "Debug",
    "Dict",
    "Expr",
    "Extends",
    "Filter",
    "For",
    "FuncCall",
    "Getattr",
    "Getitem",
    "If",
    "Include",
    "List",
    "Name",
    "Node",
    "Output",
    "Range",
    "Set",
    "Spaceless",
    "Template",
    "Test",
    "Tuple",
    "UnaryOp",
    "While",
]
