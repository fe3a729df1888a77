from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class HeadingRecord:
    text: str
    level: int
    start_line: int


@dataclass(frozen=True, slots=True)
class BlockRecord:
    """Block boundary reported by the outline provider."""

    type: str
    start_line: int
    end_line: int
    start_offset: int
    end_offset: int
    block_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LinkOccurrence:
    target: str
    start_line: int
    display: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FrontmatterLink:
    target: str
    display: Optional[str] = None


@dataclass(slots=True)
class DocumentOutline:
    """Pre-parsed structure of a document, consumed by the indexer."""

    headings: List[HeadingRecord] = field(default_factory=list)
    blocks: List[BlockRecord] = field(default_factory=list)
    links: List[LinkOccurrence] = field(default_factory=list)
    frontmatter_links: List[FrontmatterLink] = field(default_factory=list)


__all__ = [
    "BlockRecord",
    "DocumentOutline",
    "FrontmatterLink",
    "HeadingRecord",
    "LinkOccurrence",
]
