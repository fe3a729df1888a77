"""Position resolution from rendered elements back to indexed blocks."""

from .anchor import AnchorResolver, AnchorTarget
from .export import ExportPair, pair_equations_for_export
from .queries import AnchoredQuery, BlockIdQuery, LineQuery, OffsetQuery, PositionQuery, ResolveRequest
from .resolver import PositionResolver

__all__ = [
    "AnchorResolver",
    "AnchorTarget",
    "AnchoredQuery",
    "BlockIdQuery",
    "ExportPair",
    "LineQuery",
    "OffsetQuery",
    "PositionQuery",
    "PositionResolver",
    "ResolveRequest",
    "pair_equations_for_export",
]
