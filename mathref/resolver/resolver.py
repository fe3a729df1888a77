from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from mathref.errors import PositionError
from mathref.index.catalog import MathIndex
from mathref.models.block import EquationBlock, MarkdownBlock, TheoremCalloutBlock
from mathref.models.page import MarkdownPage
from mathref.resolver.anchor import AnchorResolver
from mathref.resolver.queries import (
    AnchoredQuery,
    BlockIdQuery,
    LineQuery,
    OffsetQuery,
    PositionQuery,
    ResolveRequest,
)

logger = logging.getLogger(__name__)


class PositionResolver:
    """Map positions reported by rendering surfaces back to indexed blocks.

    Every lookup is a map or interval query against an immutable page. A
    query that cannot be answered returns ``None``; surfaces skip that element.
    """

    def __init__(self, index: MathIndex, anchors: AnchorResolver | None = None) -> None:
        self.index = index
        self.anchors = anchors or AnchorResolver(index)

    # ------------------------------------------------------------------ public API
    def resolve(self, request: ResolveRequest) -> Optional[MarkdownBlock]:
        """Return the block for ``request``, narrowed to a nested equation when possible."""

        located = self._locate(request.source_path, request.query)
        if located is None:
            logger.debug("No block for %s in %s", request.query, request.source_path)
            return None
        page, block = located
        return self.select_in_container(page, block, request.sibling_index)

    def resolve_equation(self, request: ResolveRequest) -> Optional[EquationBlock]:
        block = self.resolve(request)
        return block if isinstance(block, EquationBlock) else None

    def resolve_cursor(
        self,
        source_path: str,
        offset: int,
        line_at: Callable[[int], int],
        sibling_index: Optional[int] = None,
    ) -> Optional[MarkdownBlock]:
        """Resolve an editor cursor position.

        ``line_at`` converts the offset into a 0-based line and may raise;
        the offset lookup then stands in for the line lookup.
        """

        try:
            line: Optional[int] = line_at(offset)
        except (PositionError, ValueError, IndexError) as exc:
            logger.debug("Line lookup failed for offset %s in %s: %s", offset, source_path, exc)
            line = None
        return self.resolve(ResolveRequest(source_path, LineQuery(line=line, offset=offset), sibling_index))

    def select_in_container(
        self, page: MarkdownPage, block: MarkdownBlock, sibling_index: Optional[int]
    ) -> Optional[MarkdownBlock]:
        """Pick the ``sibling_index``-th equation of a theorem callout."""

        if not isinstance(block, TheoremCalloutBlock) or sibling_index is None:
            return block
        equations = page.get_equation_blocks_in_range(block.position.start, block.position.end)
        if 0 <= sibling_index < len(equations):
            return equations[sibling_index]
        logger.debug(
            "Sibling index %s out of range for callout %s (%s equations)",
            sibling_index,
            block.ordinal,
            len(equations),
        )
        return None

    # ------------------------------------------------------------------ dispatch
    def _locate(self, source_path: str, query: PositionQuery) -> Optional[Tuple[MarkdownPage, MarkdownBlock]]:
        if isinstance(query, BlockIdQuery):
            return self._by_token(source_path, query)
        if isinstance(query, AnchoredQuery):
            return self._anchored(source_path, query)

        page = self.index.load(source_path)
        if page is None:
            return None
        if isinstance(query, LineQuery):
            block = self._by_line(page, query)
        elif isinstance(query, OffsetQuery):
            block = page.get_block_by_offset(query.offset)
        else:
            raise TypeError(f"Unsupported position query: {type(query).__name__}")
        return (page, block) if block is not None else None

    def _by_line(self, page: MarkdownPage, query: LineQuery) -> Optional[MarkdownBlock]:
        block: Optional[MarkdownBlock] = None
        try:
            if query.line is not None:
                block = self._line_lookup(page, query.line)
                if block is None and query.end_line is not None:
                    block = self._line_lookup(page, query.end_line)
        except PositionError as exc:
            logger.debug("%s; falling back to offset", exc)
        if block is None and query.offset is not None:
            block = page.get_block_by_offset(query.offset)
        return block

    def _line_lookup(self, page: MarkdownPage, line: int) -> Optional[MarkdownBlock]:
        if not page.position.contains(line):
            raise PositionError(f"Line {line} outside {page.path} ({page.position.start}-{page.position.end})")
        return page.get_block_by_line_number(line)

    def _by_token(self, source_path: str, query: BlockIdQuery) -> Optional[Tuple[MarkdownPage, MarkdownBlock]]:
        block = self.index.get_block_by_token(query.token)
        if block is not None:
            path = query.token.rsplit("#", 1)[0]
            page = self.index.load(path)
            return (page, block) if page is not None else None

        page = self.index.load(source_path)
        if page is None:
            return None
        block = page.get_block_by_id(query.token)
        return (page, block) if block is not None else None

    def _anchored(self, source_path: str, query: AnchoredQuery) -> Optional[Tuple[MarkdownPage, MarkdownBlock]]:
        target = self.anchors.resolve(query.anchor, source_path)
        if target is None:
            return None
        if target.block is not None:
            return target.page, target.block

        relative = query.relative
        if isinstance(relative, OffsetQuery):
            if target.start_offset is None:
                logger.debug("No offset base for anchor %r", query.anchor)
                return None
            block = target.page.get_block_by_offset(target.start_offset + relative.offset)
        else:
            base = target.start_line
            block = self._by_line(
                target.page,
                LineQuery(
                    line=None if relative.line is None else base + relative.line,
                    end_line=None if relative.end_line is None else base + relative.end_line,
                    offset=None
                    if relative.offset is None or target.start_offset is None
                    else target.start_offset + relative.offset,
                ),
            )
        return (target.page, block) if block is not None else None


__all__ = ["PositionResolver"]
