from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from mathref.models.link import Link
from mathref.models.position import Span


class BlockKind(str, Enum):
    GENERIC = "generic"
    EQUATION = "equation"
    THEOREM = "theorem"


@dataclass(frozen=True, slots=True)
class TheoremCalloutSettings:
    """Settings read from a theorem callout header such as ``> [!lemma|2.1] Title``."""

    kind: str
    number: str = "auto"
    title: Optional[str] = None
    fold: Optional[str] = None
    legacy: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "number": self.number,
            "title": self.title,
            "fold": self.fold,
            "legacy": self.legacy,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TheoremCalloutSettings":
        return cls(
            kind=data["kind"],
            number=data.get("number", "auto"),
            title=data.get("title"),
            fold=data.get("fold"),
            legacy=bool(data.get("legacy", False)),
        )


@dataclass(slots=True)
class GenericBlock:
    """A structurally addressable block (paragraph, list, code, callout, ...)."""

    kind: ClassVar[BlockKind] = BlockKind.GENERIC

    ordinal: int
    position: Span
    offsets: Span
    block_id: Optional[str] = None
    links: List[Link] = field(default_factory=list)
    block_type: str = "paragraph"

    @property
    def type_tag(self) -> str:
        if self.kind is BlockKind.GENERIC:
            return self.block_type
        return self.kind.value

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.type_tag,
            "ordinal": self.ordinal,
            "position": self.position.to_json(),
            "offsets": self.offsets.to_json(),
            "block_id": self.block_id,
            "links": [link.to_json() for link in self.links],
        }


@dataclass(slots=True)
class EquationBlock(GenericBlock):
    """One piece of display math with optional manual tag and comment metadata."""

    kind: ClassVar[BlockKind] = BlockKind.EQUATION

    block_type: str = "math"
    math_text: str = ""
    manual_tag: Optional[str] = None
    label: Optional[str] = None
    display: Optional[str] = None
    # Start line of the theorem callout this equation was extracted from.
    container_start: Optional[int] = field(default=None, compare=False, repr=False)

    @property
    def nested(self) -> bool:
        return self.container_start is not None

    def to_json(self) -> Dict[str, Any]:
        data = GenericBlock.to_json(self)
        data.update(
            {
                "math_text": self.math_text,
                "manual_tag": self.manual_tag,
                "label": self.label,
                "display": self.display,
            }
        )
        return data


@dataclass(slots=True)
class TheoremCalloutBlock(GenericBlock):
    """A callout configured as a theorem-like environment."""

    kind: ClassVar[BlockKind] = BlockKind.THEOREM

    block_type: str = "callout"
    settings: Optional[TheoremCalloutSettings] = None
    label: Optional[str] = None
    display: Optional[str] = None
    main: bool = False
    equations: List[EquationBlock] = field(default_factory=list)

    @property
    def legacy(self) -> bool:
        return bool(self.settings and self.settings.legacy)

    def to_json(self) -> Dict[str, Any]:
        data = GenericBlock.to_json(self)
        data.update(
            {
                "settings": self.settings.to_json() if self.settings else None,
                "label": self.label,
                "display": self.display,
                "main": self.main,
                "legacy": self.legacy,
                "equations": [equation.ordinal for equation in self.equations],
            }
        )
        return data


MarkdownBlock = Union[GenericBlock, EquationBlock, TheoremCalloutBlock]

_KINDS_BY_TAG = {kind.value: kind for kind in (BlockKind.EQUATION, BlockKind.THEOREM)}


def block_from_json(data: Dict[str, Any]) -> MarkdownBlock:
    """Rebuild a block from its serialized form.

    Nested equations of a theorem callout are linked back by
    :func:`mathref.models.page.page_from_record`, which sees every block.
    """

    common = {
        "ordinal": int(data["ordinal"]),
        "position": Span.from_json(data["position"]),
        "offsets": Span.from_json(data["offsets"]),
        "block_id": data.get("block_id"),
        "links": [Link.from_json(link) for link in data.get("links", [])],
    }
    block_type = data.get("type", "paragraph")
    kind = _KINDS_BY_TAG.get(block_type, BlockKind.GENERIC)
    if kind is BlockKind.EQUATION:
        return EquationBlock(
            **common,
            math_text=data.get("math_text", ""),
            manual_tag=data.get("manual_tag"),
            label=data.get("label"),
            display=data.get("display"),
        )
    if kind is BlockKind.THEOREM:
        settings = data.get("settings")
        return TheoremCalloutBlock(
            **common,
            settings=TheoremCalloutSettings.from_json(settings) if settings else None,
            label=data.get("label"),
            display=data.get("display"),
            main=bool(data.get("main", False)),
        )
    return GenericBlock(**common, block_type=block_type)


def is_equation(block: object) -> bool:
    return getattr(block, "kind", None) is BlockKind.EQUATION


def is_theorem(block: object) -> bool:
    return getattr(block, "kind", None) is BlockKind.THEOREM


__all__ = [
    "BlockKind",
    "EquationBlock",
    "GenericBlock",
    "MarkdownBlock",
    "TheoremCalloutBlock",
    "TheoremCalloutSettings",
    "block_from_json",
    "is_equation",
    "is_theorem",
]
