from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class Span:
    """Inclusive line range, or a character range (end exclusive) when used for offsets."""

    start: int
    end: int

    def contains(self, point: int) -> bool:
        return self.start <= point <= self.end

    def contains_offset(self, offset: int) -> bool:
        """Half-open test for character spans, whose end is exclusive."""

        return self.start <= offset < self.end

    def covers(self, other: "Span") -> bool:
        return self.start <= other.start and other.end <= self.end

    def to_json(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Span":
        return cls(start=int(data["start"]), end=int(data["end"]))


__all__ = ["Span"]
