"""Block parsing mixins for the Sprig parser."""

from sprig.parser.blocks.control_flow import ControlFlowBlockParsingMixin
from sprig.parser.blocks.core import BlockStackMixin
from sprig.parser.blocks.special_blocks import SpecialBlockParsingMixin
from sprig.parser.blocks.template_structure import TemplateStructureBlockParsingMixin


class BlockParsingMixin(
    ControlFlowBlockParsingMixin,
    TemplateStructureBlockParsingMixin,
    SpecialBlockParsingMixin,
):
    """Combined block parsing for every statement tag."""


__all__ = [
    "BlockParsingMixin",
    "BlockStackMixin",
    "ControlFlowBlockParsingMixin",
    "SpecialBlockParsingMixin",
    "TemplateStructureBlockParsingMixin",
]
