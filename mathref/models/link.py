from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SubpathType(str, Enum):
    HEADING = "heading"
    BLOCK = "block"


@dataclass(frozen=True, slots=True)
class Link:
    """A normalized reference to a document, optionally narrowed by a subpath.

    Two links are equal when they point at the same target and carry the same
    display text. Links read from frontmatter ignore display text when compared.
    """

    path: str
    subpath: Optional[str] = None
    subpath_type: Optional[SubpathType] = None
    embed: bool = False
    display: Optional[str] = None
    frontmatter: bool = False

    @classmethod
    def infer(cls, expression: str, *, display: Optional[str] = None, frontmatter: bool = False) -> "Link":
        """Parse ``[[path#subpath|alias]]``, ``![[..]]`` or a bare ``path#subpath``."""

        text = expression.strip()
        embed = text.startswith("!")
        if embed:
            text = text[1:].lstrip()
        if text.startswith("[[") and text.endswith("]]"):
            text = text[2:-2]

        if "|" in text:
            text, alias = text.split("|", 1)
            if display is None and alias.strip():
                display = alias.strip()

        path, _, subpath = text.partition("#")
        subpath_type: Optional[SubpathType] = None
        normalized_subpath: Optional[str] = None
        if subpath.strip():
            subpath = subpath.strip()
            if subpath.startswith("^"):
                subpath_type = SubpathType.BLOCK
                normalized_subpath = subpath[1:]
            else:
                subpath_type = SubpathType.HEADING
                normalized_subpath = subpath

        return cls(
            path=normalize_path(path),
            subpath=normalized_subpath,
            subpath_type=subpath_type,
            embed=embed,
            display=display,
            frontmatter=frontmatter,
        )

    def target_key(self) -> tuple:
        return (self.path, self.subpath, self.subpath_type, self.embed)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        if self.target_key() != other.target_key():
            return False
        if self.frontmatter or other.frontmatter:
            return True
        return self.display == other.display

    def __hash__(self) -> int:
        return hash(self.target_key())

    def to_json(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "subpath": self.subpath,
            "subpath_type": self.subpath_type.value if self.subpath_type else None,
            "embed": self.embed,
            "display": self.display,
            "frontmatter": self.frontmatter,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Link":
        subpath_type = data.get("subpath_type")
        return cls(
            path=data["path"],
            subpath=data.get("subpath"),
            subpath_type=SubpathType(subpath_type) if subpath_type else None,
            embed=bool(data.get("embed", False)),
            display=data.get("display"),
            frontmatter=bool(data.get("frontmatter", False)),
        )


def normalize_path(path: str) -> str:
    """Collapse separators and surrounding whitespace of a link path."""

    cleaned = path.strip().replace("\\", "/")
    while "//" in cleaned:
        cleaned = cleaned.replace("//", "/")
    if cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return cleaned


def add_link(target: list, incoming: Link) -> bool:
    """Append ``incoming`` unless a structurally equal link is already present."""

    if any(existing == incoming for existing in target):
        return False
    target.append(incoming)
    return True


__all__ = ["Link", "SubpathType", "add_link", "normalize_path"]
