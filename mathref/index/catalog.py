from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from mathref.models.block import MarkdownBlock
from mathref.models.link import normalize_path
from mathref.models.page import MarkdownPage

logger = logging.getLogger(__name__)


def block_token(path: str, ordinal: int) -> str:
    """Identity token of a block, stable across renders of the same index."""

    return f"{path}#{ordinal}"


class MathIndex:
    """All indexed pages, keyed by path.

    Pages are swapped in whole; a reader holding a page keeps a consistent
    snapshot even while a newer one is published.
    """

    def __init__(self) -> None:
        self._pages: Dict[str, MarkdownPage] = {}
        self._tokens: Dict[str, MarkdownBlock] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def paths(self) -> List[str]:
        return sorted(self._pages)

    def pages(self) -> Iterable[MarkdownPage]:
        return list(self._pages.values())

    def load(self, path: str) -> Optional[MarkdownPage]:
        """Return the indexed page, or ``None`` if the document is not indexed yet."""

        return self._pages.get(path)

    def publish(self, page: MarkdownPage) -> None:
        self._drop_tokens(page.path)
        self._pages[page.path] = page
        for block in page.blocks:
            self._tokens[block_token(page.path, block.ordinal)] = block
        logger.debug("Published %s with %s blocks", page.path, len(page.blocks))

    def remove(self, path: str) -> bool:
        self._drop_tokens(path)
        return self._pages.pop(path, None) is not None

    def clear(self) -> None:
        self._pages.clear()
        self._tokens.clear()

    def get_block_by_token(self, token: str) -> Optional[MarkdownBlock]:
        return self._tokens.get(token)

    def resolve_path(self, linkpath: str, source_path: str | None = None) -> Optional[str]:
        """Map a link path onto an indexed document path.

        Tries the path as written, then with ``.md``, relative to the source
        folder, and finally any document with the same name, preferring the
        one closest to ``source_path``.
        """

        target = normalize_path(linkpath)
        if not target:
            return source_path if source_path in self._pages else None

        source_dir = PurePosixPath(source_path).parent if source_path else None
        candidates = [target, f"{target}.md"]
        if source_dir is not None and str(source_dir) not in {"", "."}:
            candidates += [str(source_dir / target), f"{source_dir / target}.md"]
        for candidate in candidates:
            if candidate in self._pages:
                return candidate

        wanted = PurePosixPath(target)
        matches = [
            path
            for path in self._pages
            if PurePosixPath(path).stem == wanted.stem
            and (wanted.suffix in {"", ".md"} or PurePosixPath(path).name == wanted.name)
            and str(PurePosixPath(path).with_suffix("")).endswith(str(wanted.with_suffix("")))
        ]
        if not matches:
            return None

        def closeness(path: str) -> tuple:
            shared = 0
            if source_dir is not None:
                for left, right in zip(PurePosixPath(path).parent.parts, source_dir.parts):
                    if left != right:
                        break
                    shared += 1
            return (-shared, len(PurePosixPath(path).parts), path)

        return sorted(matches, key=closeness)[0]

    def _drop_tokens(self, path: str) -> None:
        previous = self._pages.get(path)
        if previous is None:
            return
        for block in previous.blocks:
            self._tokens.pop(block_token(path, block.ordinal), None)


__all__ = ["MathIndex", "block_token"]
