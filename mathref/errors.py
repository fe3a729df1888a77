from __future__ import annotations


class MathIndexError(Exception):
    """Base class for indexing and resolution failures."""


class OutlineUnavailableError(MathIndexError):
    """Raised when the outline for a document has not been produced yet."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Outline not available for {path}")
        self.path = path


class PositionError(MathIndexError):
    """A reported position does not map onto the indexed document."""


__all__ = ["MathIndexError", "OutlineUnavailableError", "PositionError"]
