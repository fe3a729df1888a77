from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from mathref.intervals import IntervalStore
from mathref.models.block import EquationBlock, MarkdownBlock, TheoremCalloutBlock
from mathref.models.link import Link
from mathref.models.position import Span
from mathref.models.section import MarkdownSection

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MarkdownPage:
    """Indexed view of one markdown document.

    ``blocks`` holds every block of the document in ordinal order, including
    blocks that no section covers. The lookup tables built in
    ``__post_init__`` are read-only after construction.
    """

    path: str
    position: Span
    sections: List[MarkdownSection] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    blocks: List[MarkdownBlock] = field(default_factory=list)
    extension: str = "md"
    line_starts: List[int] = field(default_factory=list, repr=False, compare=False)

    _by_line: IntervalStore = field(init=False, repr=False, compare=False)
    _by_offset: IntervalStore = field(init=False, repr=False, compare=False)
    _by_id: Dict[str, MarkdownBlock] = field(init=False, repr=False, compare=False)
    _equations: List[EquationBlock] = field(init=False, repr=False, compare=False)
    _equation_starts: List[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_line = IntervalStore()
        self._by_offset = IntervalStore()
        self._by_id = {}
        for block in self.blocks:
            self._register(block)
        self._equations = sorted(
            (block for block in self.blocks if isinstance(block, EquationBlock)),
            key=lambda eq: (eq.position.start, eq.offsets.start),
        )
        self._equation_starts = [eq.position.start for eq in self._equations]

    def _register(self, block: MarkdownBlock) -> None:
        if isinstance(block, EquationBlock) and block.nested and block.position.start in self._by_line:
            # Shares its start line with the enclosing callout; offsets still address it.
            logger.debug("Nested equation %s shares line %s with its callout", block.ordinal, block.position.start)
        else:
            self._by_line.set(block.position.start, block)
        self._by_offset.set(block.offsets.start, block)
        if block.block_id:
            self._by_id[block.block_id] = block

    # ------------------------------------------------------------------ lookups
    def get_block_by_line_number(self, line: int) -> Optional[MarkdownBlock]:
        """Return the narrowest block whose line span contains ``line``."""

        pair = self._by_line.pair_at_or_below(line)
        return self._enclosing(pair[1] if pair else None, line, by_offset=False)

    def get_block_by_offset(self, offset: int) -> Optional[MarkdownBlock]:
        """Return the narrowest block whose offset span contains ``offset``."""

        pair = self._by_offset.pair_at_or_below(offset)
        return self._enclosing(pair[1] if pair else None, offset, by_offset=True)

    def get_block_after_line(self, line: int) -> Optional[MarkdownBlock]:
        pair = self._by_line.pair_at_or_above(line)
        if pair and pair[1].position.end >= line:
            return pair[1]
        return None

    def get_equation_blocks_in_range(self, start: int, end: int) -> List[EquationBlock]:
        """Equation blocks lying entirely within lines ``[start, end]``, in source order."""

        low = bisect_left(self._equation_starts, start)
        high = bisect_right(self._equation_starts, end)
        return [eq for eq in self._equations[low:high] if eq.position.end <= end]

    def get_block_by_id(self, block_id: str) -> Optional[MarkdownBlock]:
        return self._by_id.get(block_id.lstrip("^"))

    def get_block_by_ordinal(self, ordinal: int) -> Optional[MarkdownBlock]:
        index = ordinal - 1
        if 0 <= index < len(self.blocks) and self.blocks[index].ordinal == ordinal:
            return self.blocks[index]
        for block in self.blocks:
            if block.ordinal == ordinal:
                return block
        return None

    def offset_of_line(self, line: int) -> Optional[int]:
        """Character offset where ``line`` starts, when line starts were recorded."""

        if 0 <= line < len(self.line_starts):
            return self.line_starts[line]
        return None

    def get_section_by_line_number(self, line: int) -> Optional[MarkdownSection]:
        for section in self.sections:
            if section.position.contains(line):
                return section
        return None

    def find_section(self, title: str) -> Optional[MarkdownSection]:
        wanted = title.strip().lower()
        for section in self.sections:
            if section.title.strip().lower() == wanted:
                return section
        return None

    def equation_blocks(self) -> List[EquationBlock]:
        return list(self._equations)

    def iter_section_blocks(self) -> Iterator[MarkdownBlock]:
        for section in self.sections:
            yield from section.blocks

    def _enclosing(self, block: Optional[MarkdownBlock], point: int, *, by_offset: bool) -> Optional[MarkdownBlock]:
        while block is not None:
            inside = block.offsets.contains_offset(point) if by_offset else block.position.contains(point)
            if inside:
                return block
            if isinstance(block, EquationBlock) and block.container_start is not None:
                block = self._by_line.get(block.container_start)
                if not isinstance(block, TheoremCalloutBlock):
                    return None
                continue
            return None
        return None

    # ------------------------------------------------------------------ serialization
    def to_json(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "links": [link.to_json() for link in self.links],
            "sections": [section.to_json() for section in self.sections],
            "extension": self.extension,
            "position": self.position.to_json(),
            "line_starts": list(self.line_starts),
        }


def page_from_record(record: Dict[str, Any]) -> MarkdownPage:
    """Rebuild a page from its persisted record.

    Only blocks that belonged to a section survive serialization.
    """

    sections = [MarkdownSection.from_json(section) for section in record.get("sections", [])]
    blocks: List[MarkdownBlock] = [block for section in sections for block in section.blocks]
    by_ordinal = {block.ordinal: block for block in blocks}
    for section_data, section in zip(record.get("sections", []), sections):
        for block_data, block in zip(section_data.get("blocks", []), section.blocks):
            if not isinstance(block, TheoremCalloutBlock):
                continue
            for ordinal in block_data.get("equations", []):
                nested = by_ordinal.get(ordinal)
                if isinstance(nested, EquationBlock):
                    nested.container_start = block.position.start
                    block.equations.append(nested)
    blocks.sort(key=lambda block: block.ordinal)
    return MarkdownPage(
        path=record["path"],
        position=Span.from_json(record["position"]),
        sections=sections,
        links=[Link.from_json(link) for link in record.get("links", [])],
        blocks=blocks,
        extension=record.get("extension", "md"),
        line_starts=[int(start) for start in record.get("line_starts", [])],
    )


__all__ = ["MarkdownPage", "page_from_record"]
