from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request
from sse_starlette import EventSourceResponse

from mathref.server.documents.service import IndexService
from mathref.server.models import IndexRequest
from mathref.server.settings import Settings, get_settings


router = APIRouter(prefix="/api", tags=["documents"])


def _resolve_service(settings: Settings) -> IndexService:
    global _INDEX_SERVICE
    if _INDEX_SERVICE is None:
        _INDEX_SERVICE = IndexService(settings)
    return _INDEX_SERVICE


def get_index_service(settings: Settings = Depends(get_settings)) -> IndexService:
    return _resolve_service(settings)


def get_index_service_instance(settings: Settings) -> IndexService:
    return _resolve_service(settings)


def reset_index_service() -> None:
    global _INDEX_SERVICE
    _INDEX_SERVICE = None


_INDEX_SERVICE: IndexService | None = None


def _state_payload(service: IndexService, path: str) -> dict:
    state = service.state(path)
    if state is None:
        return {"path": path, "status": None}
    return {
        "path": state.path,
        "status": state.status,
        "generation": state.generation,
        "attempts": state.attempts,
        "error": state.error,
        "block_count": state.block_count,
        "equation_count": state.equation_count,
        "updated_at": state.updated_at.isoformat(),
    }


@router.post("/index")
async def index_document(payload: IndexRequest, service: IndexService = Depends(get_index_service)):
    service.request_reindex(payload.path, payload.text)
    return _state_payload(service, payload.path)


@router.post("/index/{path:path}/outline-ready")
async def outline_ready(path: str, service: IndexService = Depends(get_index_service)):
    task = service.notify_outline_ready(path)
    return {"path": path, "scheduled": task is not None}


@router.get("/documents")
async def list_documents(service: IndexService = Depends(get_index_service)):
    return {"documents": [_state_payload(service, state.path) for state in service.states()]}


@router.get("/pages/{path:path}/equations")
async def list_equations(
    path: str,
    start: int | None = None,
    end: int | None = None,
    service: IndexService = Depends(get_index_service),
):
    page = service.load(path)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not ready")
    if start is None and end is None:
        equations = page.equation_blocks()
    else:
        equations = page.get_equation_blocks_in_range(start or 0, page.position.end if end is None else end)
    return {"path": path, "equations": [equation.to_json() for equation in equations]}


@router.get("/pages/{path:path}")
async def get_page(path: str, service: IndexService = Depends(get_index_service)):
    page = service.load(path)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not ready")
    return page.to_json()


@router.delete("/pages/{path:path}")
async def delete_page(path: str, service: IndexService = Depends(get_index_service)):
    if not service.remove(path):
        raise HTTPException(status_code=404, detail="Page not indexed")
    return {"status": "deleted", "path": path}


@router.get("/events")
async def index_events(request: Request, service: IndexService = Depends(get_index_service)):
    return EventSourceResponse(service.events.subscribe(request))


__all__ = ["router", "get_index_service", "get_index_service_instance", "reset_index_service"]
