from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from mathref.models.outline import HeadingRecord
from mathref.models.position import Span
from mathref.models.section import MarkdownSection


@dataclass(slots=True)
class SectionBuilderConfig:
    """Configuration for turning headings into section spans."""

    implicit_section_level: int = 1
    document_title_fallback: str = "Untitled"


class SectionBuilder:
    """Turn an ordered heading list into contiguous sections covering the document."""

    def __init__(self, config: SectionBuilderConfig | None = None) -> None:
        self.config = config or SectionBuilderConfig()

    def build(self, headings: Sequence[HeadingRecord], lines: Sequence[str], title: str) -> List[MarkdownSection]:
        ordered = sorted(headings, key=lambda heading: heading.start_line)
        last_line = len(lines) - 1

        sections: List[MarkdownSection] = []
        for index, heading in enumerate(ordered):
            start = heading.start_line
            end = last_line if index == len(ordered) - 1 else ordered[index + 1].start_line - 1
            sections.append(
                MarkdownSection(
                    ordinal=index + 1,
                    title=heading.text,
                    level=heading.level,
                    position=Span(start, end),
                )
            )

        first_start = ordered[0].start_line if ordered else len(lines)
        if not blank_lines(lines, 0, first_start):
            end = first_start - 1 if ordered else last_line
            sections.insert(
                0,
                MarkdownSection(
                    ordinal=0,
                    title=title or self.config.document_title_fallback,
                    level=self.config.implicit_section_level,
                    position=Span(0, end),
                ),
            )
        return sections


def blank_lines(lines: Sequence[str], start: int, end: int) -> bool:
    """True when every line in ``[start, end)`` is blank."""

    return all(not lines[index].strip() for index in range(start, min(end, len(lines))))


__all__ = ["SectionBuilder", "SectionBuilderConfig", "blank_lines"]
