from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from mathref.index.catalog import block_token
from mathref.models.block import EquationBlock
from mathref.models.page import MarkdownPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExportPair:
    """A rendered math element matched to an equation for paginated export."""

    element_index: int
    token: str
    block: EquationBlock


def pair_equations_for_export(page: MarkdownPage, element_count: int) -> List[ExportPair]:
    """Match the page's equations with rendered elements by position.

    Equations are taken section by section in source order and zipped with
    element indices up to the shorter length. Elements past that point stay
    unresolved.
    """

    equations = [block for block in page.iter_section_blocks() if isinstance(block, EquationBlock)]
    if len(equations) != element_count:
        logger.warning(
            "%s: %s equation blocks but %s rendered elements; pairing the first %s",
            page.path,
            len(equations),
            element_count,
            min(len(equations), element_count),
        )
    return [
        ExportPair(element_index=index, token=block_token(page.path, block.ordinal), block=block)
        for index, block in zip(range(element_count), equations)
    ]


__all__ = ["ExportPair", "pair_equations_for_export"]
