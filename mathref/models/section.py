from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from mathref.models.block import MarkdownBlock, block_from_json
from mathref.models.link import Link
from mathref.models.position import Span


@dataclass(slots=True)
class MarkdownSection:
    """A contiguous, heading-delimited region of a markdown document."""

    ordinal: int
    title: str
    level: int
    position: Span
    blocks: List[MarkdownBlock] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    @property
    def implicit(self) -> bool:
        return self.ordinal == 0

    def add_block(self, block: MarkdownBlock) -> None:
        """Attach a block; callers add blocks in source order."""

        self.blocks.append(block)

    def to_json(self) -> Dict[str, Any]:
        return {
            "ordinal": self.ordinal,
            "title": self.title,
            "level": self.level,
            "position": self.position.to_json(),
            "blocks": [block.to_json() for block in self.blocks],
            "links": [link.to_json() for link in self.links],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "MarkdownSection":
        return cls(
            ordinal=int(data["ordinal"]),
            title=data["title"],
            level=int(data["level"]),
            position=Span.from_json(data["position"]),
            blocks=[block_from_json(block) for block in data.get("blocks", [])],
            links=[Link.from_json(link) for link in data.get("links", [])],
        )


__all__ = ["MarkdownSection"]
