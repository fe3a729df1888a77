from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class IndexStatus(str, Enum):
    QUEUED = "queued"
    INDEXING = "indexing"
    DEFERRED = "deferred"
    READY = "ready"
    FAILED = "failed"


@dataclass(slots=True)
class DocumentState:
    path: str
    status: IndexStatus
    updated_at: datetime
    generation: int = 0
    attempts: int = 0
    error: Optional[str] = None
    block_count: int = 0
    equation_count: int = 0


__all__ = ["DocumentState", "IndexStatus"]
