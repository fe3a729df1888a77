from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from mathref.index.callout_math import find_display_math_in_callout
from mathref.index.parse import (
    extract_manual_tag,
    parse_markdown_comment,
    parse_yaml_like,
    read_latex_metadata,
    read_theorem_callout_settings,
    trim_math_text,
)
from mathref.models.block import EquationBlock, GenericBlock, MarkdownBlock, TheoremCalloutBlock
from mathref.models.outline import BlockRecord
from mathref.models.position import Span

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BlockClassifierConfig:
    exclude_example: bool = False


class BlockClassifier:
    """Classify outline blocks into generic, equation and theorem-callout blocks.

    Ordinals are handed out in one left-to-right pass. A theorem callout takes
    its ordinal first; the equations nested inside it take the following ones.
    """

    def __init__(self, config: BlockClassifierConfig | None = None) -> None:
        self.config = config or BlockClassifierConfig()

    def classify(self, records: Iterable[BlockRecord], text: str, lines: Sequence[str]) -> List[MarkdownBlock]:
        blocks: List[MarkdownBlock] = []
        ordinal = 1
        for record in records:
            if record.type == "heading":
                continue

            if record.type == "math":
                blocks.append(self._equation(record, text, ordinal))
                ordinal += 1
                continue

            settings = None
            if record.type == "callout" and 0 <= record.start_line < len(lines):
                settings = read_theorem_callout_settings(lines[record.start_line], self.config.exclude_example)

            if settings is None:
                blocks.append(
                    GenericBlock(
                        ordinal=ordinal,
                        position=Span(record.start_line, record.end_line),
                        offsets=Span(record.start_offset, record.end_offset),
                        block_id=record.block_id,
                        block_type=record.type,
                    )
                )
                ordinal += 1
                continue

            callout = TheoremCalloutBlock(
                ordinal=ordinal,
                position=Span(record.start_line, record.end_line),
                offsets=Span(record.start_offset, record.end_offset),
                block_id=record.block_id,
                settings=settings,
                **self._callout_metadata(lines, record),
            )
            ordinal += 1
            blocks.append(callout)

            block_text = text[record.start_offset : record.end_offset]
            for nested in find_display_math_in_callout(block_text, record.start_line, record.start_offset):
                metadata = read_latex_metadata(nested.math_text)
                equation = EquationBlock(
                    ordinal=ordinal,
                    position=Span(nested.start_line, nested.end_line),
                    offsets=Span(nested.start_offset, nested.end_offset),
                    math_text=nested.math_text,
                    manual_tag=extract_manual_tag(nested.math_text),
                    label=metadata.get("label"),
                    display=metadata.get("display"),
                    container_start=record.start_line,
                )
                ordinal += 1
                callout.equations.append(equation)
                blocks.append(equation)
            if callout.equations:
                logger.debug(
                    "Callout at line %s holds %s nested equations", record.start_line, len(callout.equations)
                )
        return blocks

    def _equation(self, record: BlockRecord, text: str, ordinal: int) -> EquationBlock:
        math_text = trim_math_text(text[record.start_offset : record.end_offset])
        metadata = read_latex_metadata(math_text)
        return EquationBlock(
            ordinal=ordinal,
            position=Span(record.start_line, record.end_line),
            offsets=Span(record.start_offset, record.end_offset),
            block_id=record.block_id,
            math_text=math_text,
            manual_tag=extract_manual_tag(math_text),
            label=metadata.get("label"),
            display=metadata.get("display"),
        )

    def _callout_metadata(self, lines: Sequence[str], record: BlockRecord) -> Dict[str, object]:
        body = "\n".join(lines[record.start_line + 1 : record.end_line + 1])
        metadata: Dict[str, Optional[str]] = {}
        for raw in parse_markdown_comment(body):
            line = raw.strip()
            if line.startswith(">"):
                line = line[1:].strip()
            if not line:
                continue
            if line == "main":
                metadata["main"] = "true"
            else:
                metadata.update(parse_yaml_like(line))
        return {
            "label": metadata.get("label"),
            "display": metadata.get("display"),
            "main": metadata.get("main") == "true",
        }


__all__ = ["BlockClassifier", "BlockClassifierConfig"]
