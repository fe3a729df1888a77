from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from mathref.resolver.queries import (
    AnchoredQuery,
    BlockIdQuery,
    LineQuery,
    OffsetQuery,
    PositionQuery,
    ResolveRequest,
)

QueryMode = Literal["line", "offset", "id"]


class IndexRequest(BaseModel):
    """Client payload asking for a document to be (re)indexed."""

    path: str = Field(min_length=1)
    text: str | None = Field(default=None, description="Latest source; read from the vault when omitted")


class PositionPayload(BaseModel):
    """A rendered element's position, in one of the resolver's query modes."""

    source_path: str = Field(min_length=1)
    mode: QueryMode = "line"
    line: int | None = Field(default=None, ge=0)
    end_line: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    token: str | None = None
    anchor: str | None = Field(default=None, description="Link text of the embed or hover preview, if any")
    sibling_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_mode(self) -> "PositionPayload":
        if self.mode == "line" and self.line is None and self.offset is None:
            raise ValueError("line mode needs a line or a fallback offset")
        if self.mode == "offset" and self.offset is None:
            raise ValueError("offset mode needs an offset")
        if self.mode == "id" and not self.token:
            raise ValueError("id mode needs a token")
        if self.mode == "id" and self.anchor:
            raise ValueError("id mode cannot be anchored")
        return self

    def to_request(self) -> ResolveRequest:
        query: PositionQuery
        if self.mode == "id":
            query = BlockIdQuery(token=self.token or "")
        elif self.mode == "offset":
            query = OffsetQuery(offset=self.offset or 0)
        else:
            query = LineQuery(line=self.line, end_line=self.end_line, offset=self.offset)
        if self.anchor and not isinstance(query, BlockIdQuery):
            query = AnchoredQuery(anchor=self.anchor, relative=query)
        return ResolveRequest(source_path=self.source_path, query=query, sibling_index=self.sibling_index)


class ExportPairsRequest(BaseModel):
    source_path: str = Field(min_length=1)
    element_count: int = Field(ge=0)


class ResolveResponse(BaseModel):
    match: Optional[dict] = None


__all__ = ["ExportPairsRequest", "IndexRequest", "PositionPayload", "QueryMode", "ResolveResponse"]
