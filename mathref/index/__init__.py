"""Structural indexing of markdown documents into sections and blocks."""

from .assembler import PageAssembler, PageAssemblerConfig, markdown_import, split_lines
from .blocks import BlockClassifier, BlockClassifierConfig
from .callout_math import NestedMath, find_display_math_in_callout
from .catalog import MathIndex, block_token
from .outline import MarkdownOutlineParser, OutlineParserConfig, OutlineProvider
from .sections import SectionBuilder, SectionBuilderConfig

__all__ = [
    "BlockClassifier",
    "BlockClassifierConfig",
    "MarkdownOutlineParser",
    "MathIndex",
    "NestedMath",
    "OutlineParserConfig",
    "OutlineProvider",
    "PageAssembler",
    "PageAssemblerConfig",
    "SectionBuilder",
    "SectionBuilderConfig",
    "block_token",
    "find_display_math_in_callout",
    "markdown_import",
    "split_lines",
]
