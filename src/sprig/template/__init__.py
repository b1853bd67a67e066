"""Sprig Template package: compiled template objects ready for rendering."""

from sprig.template.core import Template
from sprig.template.helpers import UNDEFINED, Undefined
from sprig.template.loop_context import LoopContext
from sprig.utils.html import Markup

__all__ = [
    "UNDEFINED",
    "LoopContext",
    "Markup",
    "Template",
    "Undefined",
]
