from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class LineQuery:
    """An absolute line reported by a surface.

    ``line`` may be ``None`` when the surface failed to compute it; ``offset``
    is then used instead. ``end_line`` is tried when ``line`` finds nothing.
    """

    line: Optional[int]
    end_line: Optional[int] = None
    offset: Optional[int] = None


@dataclass(frozen=True, slots=True)
class OffsetQuery:
    offset: int


@dataclass(frozen=True, slots=True)
class BlockIdQuery:
    """A persisted identity token, or a ``^block-id`` of the source document."""

    token: str


@dataclass(frozen=True, slots=True)
class AnchoredQuery:
    """A position relative to embedded content identified by ``anchor``."""

    anchor: str
    relative: Union[LineQuery, OffsetQuery]


PositionQuery = Union[LineQuery, OffsetQuery, BlockIdQuery, AnchoredQuery]


@dataclass(frozen=True, slots=True)
class ResolveRequest:
    """One rendered math element asking for its semantic block.

    ``sibling_index`` is the element's 0-based position among the display
    math elements of its rendered container; it picks the equation when the
    position lands on a theorem callout holding several.
    """

    source_path: str
    query: PositionQuery
    sibling_index: Optional[int] = None


__all__ = [
    "AnchoredQuery",
    "BlockIdQuery",
    "LineQuery",
    "OffsetQuery",
    "PositionQuery",
    "ResolveRequest",
]
