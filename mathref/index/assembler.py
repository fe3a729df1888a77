from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from mathref.index.blocks import BlockClassifier, BlockClassifierConfig
from mathref.index.parse import document_title
from mathref.index.sections import SectionBuilder, SectionBuilderConfig
from mathref.intervals import IntervalStore
from mathref.models.link import Link, add_link
from mathref.models.outline import DocumentOutline
from mathref.models.page import MarkdownPage
from mathref.models.position import Span
from mathref.models.section import MarkdownSection

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PageAssemblerConfig:
    """Knobs shared by the section builder and block classifier."""

    exclude_example: bool = False
    implicit_section_level: int = 1


class PageAssembler:
    """Merge sections, blocks and links of one document into a :class:`MarkdownPage`."""

    def __init__(self, config: PageAssemblerConfig | None = None) -> None:
        self.config = config or PageAssemblerConfig()
        self.section_builder = SectionBuilder(
            SectionBuilderConfig(implicit_section_level=self.config.implicit_section_level)
        )
        self.classifier = BlockClassifier(BlockClassifierConfig(exclude_example=self.config.exclude_example))

    def build(self, path: str, text: str, outline: DocumentOutline) -> MarkdownPage:
        lines = split_lines(text)
        sections = self.section_builder.build(outline.headings, lines, document_title(path))
        blocks = self.classifier.classify(outline.blocks, text, lines)

        section_store: IntervalStore[MarkdownSection] = IntervalStore()
        for section in sections:
            section_store.set(section.position.start, section)

        unassigned = 0
        for block in sorted(blocks, key=lambda item: (item.position.start, item.ordinal)):
            pair = section_store.pair_at_or_below(block.position.start)
            if pair and pair[1].position.end >= block.position.end:
                pair[1].add_block(block)
            else:
                unassigned += 1
        if unassigned:
            logger.debug("%s: %s blocks outside any section", path, unassigned)

        page = MarkdownPage(
            path=path,
            position=Span(0, max(len(lines) - 1, 0)),
            sections=sections,
            blocks=blocks,
            line_starts=line_starts(lines),
        )
        self._assign_links(page, section_store, outline)
        return page

    def _assign_links(
        self, page: MarkdownPage, section_store: IntervalStore[MarkdownSection], outline: DocumentOutline
    ) -> None:
        for occurrence in outline.links:
            link = Link.infer(occurrence.target, display=occurrence.display)
            line = occurrence.start_line
            add_link(page.links, link)

            pair = section_store.pair_at_or_below(line)
            if pair and pair[1].position.end >= line:
                add_link(pair[1].links, link)

            block = page.get_block_by_line_number(line)
            if block is not None:
                add_link(block.links, link)
                continue

            # Lines no block covers (headings, list markers) hand their links to the next block.
            following = page.get_block_after_line(line)
            if following is not None and (pair is None or pair[1].position.covers(following.position)):
                add_link(following.links, link)

        for occurrence in outline.frontmatter_links:
            add_link(page.links, Link.infer(occurrence.target, display=occurrence.display, frontmatter=True))


def split_lines(text: str) -> List[str]:
    """Split on ``\\n``; a trailing newline does not open another line."""

    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


def line_starts(lines: List[str]) -> List[int]:
    starts: List[int] = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += len(line) + 1
    return starts


def markdown_import(
    path: str,
    text: str,
    outline: DocumentOutline,
    *,
    exclude_example: bool = False,
) -> MarkdownPage:
    """Build the page model for ``path`` from its source and outline."""

    return PageAssembler(PageAssemblerConfig(exclude_example=exclude_example)).build(path, text, outline)


__all__ = ["PageAssembler", "PageAssemblerConfig", "line_starts", "markdown_import", "split_lines"]
