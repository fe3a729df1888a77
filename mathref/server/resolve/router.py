from __future__ import annotations


from fastapi import APIRouter, Depends, HTTPException

from mathref.resolver.export import pair_equations_for_export
from mathref.server.documents import get_index_service
from mathref.server.documents.service import IndexService
from mathref.server.models import ExportPairsRequest, PositionPayload, ResolveResponse


router = APIRouter(prefix="/api", tags=["resolve"])


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_position(payload: PositionPayload, service: IndexService = Depends(get_index_service)):
    block = service.resolver.resolve(payload.to_request())
    return ResolveResponse(match=block.to_json() if block is not None else None)


@router.post("/export/pairs")
async def export_pairs(payload: ExportPairsRequest, service: IndexService = Depends(get_index_service)):
    page = service.load(payload.source_path)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not ready")
    pairs = pair_equations_for_export(page, payload.element_count)
    return {
        "source_path": payload.source_path,
        "pairs": [
            {"element_index": pair.element_index, "token": pair.token, "ordinal": pair.block.ordinal}
            for pair in pairs
        ],
        "unresolved": max(payload.element_count - len(pairs), 0),
    }


__all__ = ["router"]
