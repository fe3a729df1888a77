from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple
from urllib.parse import unquote

import yaml

from mathref.index.assembler import line_starts, split_lines
from mathref.index.parse import read_block_id
from mathref.models.outline import (
    BlockRecord,
    DocumentOutline,
    FrontmatterLink,
    HeadingRecord,
    LinkOccurrence,
)

logger = logging.getLogger(__name__)


_HEADING_PATTERN = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<title>.+?)(?:\s+#+)?\s*$")
_FENCE_PATTERN = re.compile(r"^\s{0,3}(?P<fence>`{3,}|~{3,})")
_QUOTE_PATTERN = re.compile(r"^\s{0,3}>")
_CALLOUT_PATTERN = re.compile(r"^\s{0,3}>\s*\[!")
_LIST_PATTERN = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
_TABLE_PATTERN = re.compile(r"^\s*\|")
_THEMATIC_BREAK_PATTERN = re.compile(r"^\s{0,3}(?:(?:\*\s*){3,}|(?:-\s*){3,}|(?:_\s*){3,})$")
_STANDALONE_BLOCK_ID_PATTERN = re.compile(r"^\s*\^[A-Za-z0-9-]+\s*$")
_WIKILINK_PATTERN = re.compile(r"!?\[\[(?P<inner>[^\[\]]+)\]\]")
_MARKDOWN_LINK_PATTERN = re.compile(r"!?\[(?P<text>[^\[\]]*)\]\((?P<target>[^()\s]+)\)")
_INLINE_CODE_PATTERN = re.compile(r"`[^`]*`")
_EXTERNAL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass(slots=True)
class OutlineParserConfig:
    """Configuration for the built-in markdown outline parser."""

    max_heading_level: int = 6
    parse_frontmatter: bool = True


class OutlineProvider(ABC):
    """Source of pre-parsed document outlines.

    Returning ``None`` means the outline is not available yet; the indexer
    defers the document instead of building against partial structure.
    """

    @abstractmethod
    def get_outline(self, path: str, text: str) -> Optional[DocumentOutline]:
        """Return the outline for ``path`` or ``None`` when it is not ready.

        Providers may raise :class:`~mathref.errors.OutlineUnavailableError`
        instead of returning ``None``.
        """

    def get_many(self, documents: Iterable[Tuple[str, str]]) -> Iterable[Tuple[str, Optional[DocumentOutline]]]:
        """Utility for outlining multiple documents."""

        for path, text in documents:
            yield path, self.get_outline(path, text)


class MarkdownOutlineParser(OutlineProvider):
    """Derive headings, block boundaries and links straight from markdown source."""

    def __init__(self, config: OutlineParserConfig | None = None) -> None:
        self.config = config or OutlineParserConfig()

    def get_outline(self, path: str, text: str) -> Optional[DocumentOutline]:
        return self.parse(text)

    def parse(self, text: str) -> DocumentOutline:
        lines = split_lines(text)
        starts = line_starts(lines)
        outline = DocumentOutline()

        index = 0
        if self.config.parse_frontmatter:
            index = self._frontmatter(lines, starts, outline)

        while index < len(lines):
            line = lines[index]
            if not line.strip():
                index += 1
                continue

            heading = _HEADING_PATTERN.match(line)
            if heading and len(heading.group("hashes")) <= self.config.max_heading_level:
                outline.headings.append(
                    HeadingRecord(
                        text=heading.group("title").strip(),
                        level=len(heading.group("hashes")),
                        start_line=index,
                    )
                )
                self._add_block(outline, "heading", lines, starts, index, index)
                self._collect_links(outline, line, index)
                index += 1
                continue

            fence = _FENCE_PATTERN.match(line)
            if fence:
                end = self._fence_end(lines, index, fence.group("fence"))
                end = self._absorb_block_id(lines, end)
                self._add_block(outline, "code", lines, starts, index, end)
                index = end + 1
                continue

            if line.lstrip().startswith("$$"):
                end = self._math_end(lines, index)
                end = self._absorb_block_id(lines, end)
                self._add_block(outline, "math", lines, starts, index, end)
                index = end + 1
                continue

            if _QUOTE_PATTERN.match(line):
                end = index
                while end + 1 < len(lines) and _QUOTE_PATTERN.match(lines[end + 1]):
                    end += 1
                end = self._absorb_block_id(lines, end)
                kind = "callout" if _CALLOUT_PATTERN.match(line) else "blockquote"
                self._add_block(outline, kind, lines, starts, index, end)
                for offset in range(index, end + 1):
                    self._collect_links(outline, lines[offset], offset)
                index = end + 1
                continue

            if _THEMATIC_BREAK_PATTERN.match(line):
                self._add_block(outline, "thematicBreak", lines, starts, index, index)
                index += 1
                continue

            if _LIST_PATTERN.match(line):
                end = self._list_end(lines, index)
                kind = "list"
            elif _TABLE_PATTERN.match(line):
                end = index
                while end + 1 < len(lines) and _TABLE_PATTERN.match(lines[end + 1]):
                    end += 1
                end = self._absorb_block_id(lines, end)
                kind = "table"
            else:
                end = self._paragraph_end(lines, index)
                kind = "paragraph"

            self._add_block(outline, kind, lines, starts, index, end)
            for offset in range(index, end + 1):
                self._collect_links(outline, lines[offset], offset)
            index = end + 1

        return outline

    # ------------------------------------------------------------------ block scanning
    def _frontmatter(self, lines: List[str], starts: List[int], outline: DocumentOutline) -> int:
        if not lines or lines[0].strip() != "---":
            return 0
        for end in range(1, len(lines)):
            if lines[end].strip() in {"---", "..."}:
                break
        else:
            return 0

        self._add_block(outline, "yaml", lines, starts, 0, end)
        source = "\n".join(lines[1:end])
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as exc:
            logger.debug("Ignoring unparsable frontmatter: %s", exc)
            return end + 1
        for value in _iter_strings(data):
            for match in _WIKILINK_PATTERN.finditer(value):
                outline.frontmatter_links.append(FrontmatterLink(target=match.group(0)))
        return end + 1

    def _fence_end(self, lines: List[str], start: int, fence: str) -> int:
        marker = fence[0]
        for end in range(start + 1, len(lines)):
            stripped = lines[end].strip()
            if stripped.startswith(marker * len(fence)) and not stripped.strip(marker):
                return end
        return len(lines) - 1

    def _math_end(self, lines: List[str], start: int) -> int:
        opening = lines[start].lstrip()[2:]
        if "$$" in opening:
            return start
        for end in range(start + 1, len(lines)):
            if "$$" in lines[end]:
                return end
        return len(lines) - 1

    def _list_end(self, lines: List[str], start: int) -> int:
        end = start
        cursor = start + 1
        while cursor < len(lines):
            line = lines[cursor]
            if line.strip():
                if _HEADING_PATTERN.match(line) or _FENCE_PATTERN.match(line):
                    break
                end = cursor
                cursor += 1
                continue
            following = cursor
            while following < len(lines) and not lines[following].strip():
                following += 1
            if following < len(lines) and (
                _LIST_PATTERN.match(lines[following]) or lines[following].startswith(("  ", "\t"))
            ):
                cursor = following
                continue
            break
        return end

    def _paragraph_end(self, lines: List[str], start: int) -> int:
        end = start
        while end + 1 < len(lines):
            following = lines[end + 1]
            if not following.strip():
                break
            if (
                _HEADING_PATTERN.match(following)
                or _FENCE_PATTERN.match(following)
                or _QUOTE_PATTERN.match(following)
                or following.lstrip().startswith("$$")
            ):
                break
            end += 1
        return end

    def _absorb_block_id(self, lines: List[str], end: int) -> int:
        if end + 1 < len(lines) and _STANDALONE_BLOCK_ID_PATTERN.match(lines[end + 1]):
            return end + 1
        return end

    def _add_block(
        self, outline: DocumentOutline, kind: str, lines: List[str], starts: List[int], start: int, end: int
    ) -> None:
        block_id = None if kind in {"heading", "yaml"} else read_block_id(lines[end])
        outline.blocks.append(
            BlockRecord(
                type=kind,
                start_line=start,
                end_line=end,
                start_offset=starts[start],
                end_offset=starts[end] + len(lines[end]),
                block_id=block_id,
            )
        )

    # ------------------------------------------------------------------ links
    def _collect_links(self, outline: DocumentOutline, line: str, index: int) -> None:
        scrubbed = _INLINE_CODE_PATTERN.sub(lambda match: " " * len(match.group(0)), line)
        for match in _WIKILINK_PATTERN.finditer(scrubbed):
            target, _, alias = match.group("inner").partition("|")
            outline.links.append(
                LinkOccurrence(
                    target=("!" if match.group(0).startswith("!") else "") + target.strip(),
                    start_line=index,
                    display=alias.strip() or None,
                )
            )
        for match in _MARKDOWN_LINK_PATTERN.finditer(scrubbed):
            target = match.group("target")
            if _EXTERNAL_PATTERN.match(target):
                continue
            outline.links.append(
                LinkOccurrence(
                    target=("!" if match.group(0).startswith("!") else "") + unquote(target),
                    start_line=index,
                    display=match.group("text").strip() or None,
                )
            )


def _iter_strings(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_strings(item)


__all__ = ["MarkdownOutlineParser", "OutlineParserConfig", "OutlineProvider"]
