"""Structural math index for markdown documents."""

from .models.block import EquationBlock, GenericBlock, TheoremCalloutBlock
from .models.page import MarkdownPage
from .models.section import MarkdownSection

__all__ = ["EquationBlock", "GenericBlock", "MarkdownPage", "MarkdownSection", "TheoremCalloutBlock"]
