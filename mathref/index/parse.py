from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from mathref.models.block import TheoremCalloutSettings


_TAG_PATTERN = re.compile(r"\\tag\*?\{((?:[^{}]|\{[^{}]*\})*)\}")
_MARKDOWN_COMMENT_PATTERN = re.compile(r"%%(.*?)%%", re.DOTALL)
_CALLOUT_HEADER_PATTERN = re.compile(
    r"^\s*>\s*\[!(?P<kind>[^\]|]+)(?:\|(?P<meta>[^\]]*))?\](?P<fold>[+-])?\s*(?P<title>.*?)\s*$"
)
_QUOTE_PREFIX_PATTERN = re.compile(r"^>\s?")
_BLOCK_ID_PATTERN = re.compile(r"(?:^|\s)\^([A-Za-z0-9-]+)\s*$")

THEOREM_KINDS: Dict[str, str] = {
    "axiom": "axiom",
    "axm": "axiom",
    "definition": "definition",
    "def": "definition",
    "lemma": "lemma",
    "lem": "lemma",
    "proposition": "proposition",
    "prop": "proposition",
    "theorem": "theorem",
    "thm": "theorem",
    "corollary": "corollary",
    "cor": "corollary",
    "claim": "claim",
    "clm": "claim",
    "assumption": "assumption",
    "asm": "assumption",
    "example": "example",
    "exm": "example",
    "exercise": "exercise",
    "exr": "exercise",
    "conjecture": "conjecture",
    "cnj": "conjecture",
    "hypothesis": "hypothesis",
    "hyp": "hypothesis",
    "remark": "remark",
    "rmk": "remark",
}


@dataclass(frozen=True, slots=True)
class LatexComment:
    non_comment: str
    comment: Optional[str]


def parse_latex_comment(line: str) -> LatexComment:
    """Split a LaTeX line at its first unescaped ``%``."""

    index = 0
    while True:
        index = line.find("%", index)
        if index == -1:
            return LatexComment(non_comment=line, comment=None)
        backslashes = 0
        cursor = index - 1
        while cursor >= 0 and line[cursor] == "\\":
            backslashes += 1
            cursor -= 1
        if backslashes % 2 == 0:
            return LatexComment(non_comment=line[:index], comment=line[index + 1 :].strip())
        index += 1


def parse_yaml_like(text: str) -> Dict[str, str]:
    """Parse ``key: value`` pairs, one per line; later keys win."""

    result: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or ":" not in line:
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        if not key or " " in key:
            continue
        result[key] = value.strip()
    return result


def parse_markdown_comment(text: str) -> List[str]:
    """Return the lines found inside ``%% ... %%`` comments, in order."""

    lines: List[str] = []
    for match in _MARKDOWN_COMMENT_PATTERN.finditer(text):
        lines.extend(match.group(1).split("\n"))
    return lines


def read_latex_metadata(math_text: str) -> Dict[str, str]:
    metadata: Dict[str, str] = {}
    for line in math_text.split("\n"):
        comment = parse_latex_comment(line).comment
        if not comment:
            continue
        metadata.update(parse_yaml_like(comment))
    return metadata


def extract_manual_tag(math_text: str) -> Optional[str]:
    match = _TAG_PATTERN.search(math_text)
    return match.group(1) if match else None


def strip_block_id(text: str) -> str:
    """Drop a trailing ``^block-id`` anchor."""

    return _BLOCK_ID_PATTERN.sub("", text)


def read_block_id(line: str) -> Optional[str]:
    match = _BLOCK_ID_PATTERN.search(line)
    return match.group(1) if match else None


def trim_math_text(text: str) -> str:
    """Strip surrounding ``$$`` delimiters and whitespace from display math."""

    trimmed = strip_block_id(text).strip()
    if trimmed.startswith("$$"):
        trimmed = trimmed[2:]
    if trimmed.endswith("$$"):
        trimmed = trimmed[:-2]
    return trimmed.strip()


def strip_quote_prefix(line: str) -> str:
    """Remove one leading ``>`` and at most one following space."""

    return _QUOTE_PREFIX_PATTERN.sub("", line, count=1)


def read_theorem_callout_settings(header: str, exclude_example: bool = False) -> Optional[TheoremCalloutSettings]:
    """Parse a callout header line into theorem settings, or ``None``."""

    match = _CALLOUT_HEADER_PATTERN.match(header)
    if not match:
        return None

    raw_kind = match.group("kind").strip().lower()
    meta = (match.group("meta") or "").strip()
    title = match.group("title") or None
    fold = match.group("fold")

    if raw_kind == "math":
        return _read_legacy_settings(meta, fold, title, exclude_example)

    kind = THEOREM_KINDS.get(raw_kind)
    if kind is None or (exclude_example and kind == "example"):
        return None
    return TheoremCalloutSettings(kind=kind, number=meta or "auto", title=title, fold=fold)


def _read_legacy_settings(
    meta: str, fold: Optional[str], title: Optional[str], exclude_example: bool
) -> Optional[TheoremCalloutSettings]:
    try:
        data = json.loads(meta)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    kind = THEOREM_KINDS.get(str(data.get("type", "")).strip().lower())
    if kind is None or (exclude_example and kind == "example"):
        return None
    number = data.get("number", "auto")
    return TheoremCalloutSettings(
        kind=kind,
        number=str(number) if number is not None else "auto",
        title=data.get("title") or title,
        fold=fold,
        legacy=True,
    )


def document_title(path: str) -> str:
    """Name of a document without folders or extension."""

    return PurePosixPath(path.replace("\\", "/")).stem or path


__all__ = [
    "LatexComment",
    "THEOREM_KINDS",
    "document_title",
    "extract_manual_tag",
    "parse_latex_comment",
    "parse_markdown_comment",
    "parse_yaml_like",
    "read_latex_metadata",
    "read_theorem_callout_settings",
    "read_block_id",
    "strip_block_id",
    "strip_quote_prefix",
    "trim_math_text",
]
