"""Dimension, subject and matrix cell endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from capmatrix.api.dependencies import get_grid_store
from capmatrix.services.grid_service import GridService
from capmatrix.services.grid_store import GridStore

router = APIRouter(tags=["grid"])


class DimensionCreatePayload(BaseModel):
    name: str = Field(max_length=255)


class DimensionUpdatePayload(BaseModel):
    name: str = Field(max_length=255)


class SubjectCreatePayload(BaseModel):
    name: str = Field(max_length=255)


class SubjectUpdatePayload(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    color: str | None = Field(default=None, max_length=64)


class ReorderPayload(BaseModel):
    old_index: int
    new_index: int


class ScorePayload(BaseModel):
    # Accepts anything; the store coerces non-numeric input to 0.
    value: float | int | str | None = None


class DescriptionPayload(BaseModel):
    text: str = Field(max_length=10000)


def _grid_service(store: GridStore) -> GridService:
    return GridService(store)


@router.get("/grid")
def get_grid(store: GridStore = Depends(get_grid_store)) -> dict[str, object]:
    return _grid_service(store).read_grid()


@router.get("/grid/leader")
def get_leader(store: GridStore = Depends(get_grid_store)) -> dict[str, object]:
    return _grid_service(store).read_leader()


@router.get("/grid/radar")
def get_radar(store: GridStore = Depends(get_grid_store)) -> dict[str, object]:
    return _grid_service(store).read_radar()


@router.post("/grid/reset")
def reset_grid(store: GridStore = Depends(get_grid_store)) -> dict[str, object]:
    store.reset()
    return _grid_service(store).read_grid()


@router.post("/dimensions", status_code=status.HTTP_201_CREATED)
def create_dimension(
    payload: DimensionCreatePayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    service = _grid_service(store)
    return service.serialize_dimension(service.create_dimension(payload.name))


@router.patch("/dimensions/{dimension_id}")
def update_dimension(
    dimension_id: str,
    payload: DimensionUpdatePayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    service = _grid_service(store)
    return service.serialize_dimension(service.rename_dimension(dimension_id, payload.name))


@router.delete("/dimensions/{dimension_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dimension(dimension_id: str, store: GridStore = Depends(get_grid_store)) -> Response:
    _grid_service(store).delete_dimension(dimension_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/dimensions/reorder")
def reorder_dimensions(
    payload: ReorderPayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, list[str]]:
    return {"order": store.reorder_dimensions(payload.old_index, payload.new_index)}


@router.post("/subjects", status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreatePayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    service = _grid_service(store)
    return service.serialize_subject(service.create_subject(payload.name))


@router.patch("/subjects/{subject_id}")
def update_subject(
    subject_id: str,
    payload: SubjectUpdatePayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    service = _grid_service(store)
    return service.serialize_subject(service.update_subject(subject_id, payload.name, payload.color))


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(subject_id: str, store: GridStore = Depends(get_grid_store)) -> Response:
    _grid_service(store).delete_subject(subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/subjects/reorder")
def reorder_subjects(
    payload: ReorderPayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, list[str]]:
    return {"order": store.reorder_subjects(payload.old_index, payload.new_index)}


@router.put("/subjects/{subject_id}/scores/{dimension_id}")
def put_score(
    subject_id: str,
    dimension_id: str,
    payload: ScorePayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    return _grid_service(store).update_score(subject_id, dimension_id, payload.value)


@router.put("/subjects/{subject_id}/descriptions/{dimension_id}")
def put_description(
    subject_id: str,
    dimension_id: str,
    payload: DescriptionPayload,
    store: GridStore = Depends(get_grid_store),
) -> dict[str, object]:
    return _grid_service(store).update_description(subject_id, dimension_id, payload.text)
