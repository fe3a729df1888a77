from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from mathref.index.catalog import MathIndex
from mathref.models.block import MarkdownBlock
from mathref.models.link import Link, SubpathType
from mathref.models.page import MarkdownPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnchorTarget:
    """Where embedded content starts inside its own document."""

    page: MarkdownPage
    block: Optional[MarkdownBlock] = None
    start_line: int = 0
    start_offset: Optional[int] = 0


class AnchorResolver:
    """Resolve link text such as ``Note#Heading`` or ``![[Note#^eq-1]]`` against the index."""

    def __init__(self, index: MathIndex) -> None:
        self.index = index

    def resolve(self, anchor: str, source_path: str) -> Optional[AnchorTarget]:
        link = Link.infer(anchor)
        path = self.index.resolve_path(link.path, source_path)
        page = self.index.load(path) if path else None
        if page is None:
            logger.debug("Anchor %r from %s does not name an indexed document", anchor, source_path)
            return None

        if link.subpath is None:
            return AnchorTarget(page=page)

        if link.subpath_type is SubpathType.BLOCK:
            block = page.get_block_by_id(link.subpath)
            if block is None:
                logger.debug("Block ^%s not found in %s", link.subpath, page.path)
                return None
            return AnchorTarget(
                page=page,
                block=block,
                start_line=block.position.start,
                start_offset=block.offsets.start,
            )

        heading = link.subpath.split("#")[-1]
        section = page.find_section(heading)
        if section is None:
            logger.debug("Heading %r not found in %s", heading, page.path)
            return None
        return AnchorTarget(
            page=page,
            start_line=section.position.start,
            start_offset=page.offset_of_line(section.position.start),
        )


__all__ = ["AnchorResolver", "AnchorTarget"]
