"""CSV/XLSX export and CSV import endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from capmatrix.api.dependencies import get_grid_store
from capmatrix.services.grid_service import GridService
from capmatrix.services.grid_store import GridStore, ImportOutcome

router = APIRouter(tags=["exchange"])


def _service(store: GridStore) -> GridService:
    return GridService(store)


def _serialize_outcome(outcome: ImportOutcome) -> dict[str, object]:
    return {
        "ok": outcome.ok,
        "message": outcome.message,
        "dimension_count": outcome.dimension_count,
        "subject_count": outcome.subject_count,
    }


@router.get("/exports/grid")
def export_grid(
    format: str = Query(default="csv"),
    store: GridStore = Depends(get_grid_store),
) -> Response:
    exported = _service(store).export_grid(format_name=format)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.post("/imports/grid")
def import_grid_file(
    file: UploadFile = File(...),
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    raw = file.file.read()
    return _serialize_outcome(_service(store).import_grid(raw))


@router.post("/imports/grid:raw")
@router.post("/imports/grid/raw")
async def import_grid_raw(request: Request, store: GridStore = Depends(get_grid_store)) -> dict[str, object]:
    raw = await request.body()
    outcome = await run_in_threadpool(_service(store).import_grid, raw)
    return _serialize_outcome(outcome)
