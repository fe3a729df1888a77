from __future__ import annotations

from dataclasses import dataclass
from typing import List

from mathref.index.parse import strip_quote_prefix

DISPLAY_MATH_DELIMITER = "$$"


@dataclass(frozen=True, slots=True)
class NestedMath:
    """Display math found inside a callout, positioned in document coordinates."""

    start_line: int
    end_line: int
    start_offset: int
    end_offset: int
    math_text: str


def find_display_math_in_callout(block_text: str, start_line: int, start_offset: int) -> List[NestedMath]:
    """Locate ``$$ ... $$`` regions in a callout's raw text.

    ``block_text`` includes the header line. Line numbers count the newlines
    before each delimiter; offsets are shifted by ``start_offset``. An opening
    delimiter without a closing one ends the scan.
    """

    results: List[NestedMath] = []
    width = len(DISPLAY_MATH_DELIMITER)
    cursor = 0
    while True:
        opening = block_text.find(DISPLAY_MATH_DELIMITER, cursor)
        if opening == -1:
            break
        body_start = opening + width
        closing = block_text.find(DISPLAY_MATH_DELIMITER, body_start)
        if closing == -1:
            break

        inner = block_text[body_start:closing].strip()
        math_text = "\n".join(strip_quote_prefix(line) for line in inner.split("\n")).strip()
        end = closing + width

        results.append(
            NestedMath(
                start_line=start_line + block_text.count("\n", 0, opening),
                end_line=start_line + block_text.count("\n", 0, closing),
                start_offset=start_offset + opening,
                end_offset=start_offset + end,
                math_text=math_text,
            )
        )
        cursor = end
    return results


__all__ = ["DISPLAY_MATH_DELIMITER", "NestedMath", "find_display_math_in_callout"]
