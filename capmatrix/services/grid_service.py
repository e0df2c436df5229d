"""Application service exposing grid store operations to the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from fastapi import HTTPException, status

from capmatrix.core.config import get_settings
from capmatrix.models.grid import Dimension, GridSnapshot, Subject
from capmatrix.services import aggregates
from capmatrix.services.csv_codec import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    export_csv_bytes,
    export_filename,
    export_xlsx_bytes,
)
from capmatrix.services.grid_store import GridStore, ImportOutcome

EXPORT_FORMATS = {"csv", "xlsx"}


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


class GridService:
    """Validation, serialization and export rules on top of ``GridStore``."""

    def __init__(self, store: GridStore) -> None:
        self.store = store
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_dimension(dimension: Dimension) -> dict[str, object]:
        return {"id": dimension.id, "name": dimension.name}

    @staticmethod
    def serialize_subject(subject: Subject, dimension_ids: list[str] | None = None) -> dict[str, object]:
        scores = subject.scores
        descriptions = subject.descriptions
        if dimension_ids is not None:
            scores = {key: scores.get(key, 0) for key in dimension_ids}
            descriptions = {key: descriptions[key] for key in dimension_ids if key in descriptions}
        return {
            "id": subject.id,
            "name": subject.name,
            "color": subject.color,
            "scores": scores,
            "descriptions": descriptions,
        }

    @staticmethod
    def serialize_overview(snapshot: GridSnapshot) -> dict[str, object]:
        summary = aggregates.overview(snapshot.dimensions, snapshot.subjects)
        return {
            "dimension_count": summary.dimension_count,
            "subject_count": summary.subject_count,
            "leader_id": summary.leader_id,
            "leader_name": summary.leader_name,
        }

    # ---------- Reads ----------
    def read_grid(self) -> dict[str, object]:
        snapshot = self.store.snapshot()
        dimension_ids = [dimension.id for dimension in snapshot.dimensions]
        return {
            "dimensions": [self.serialize_dimension(item) for item in snapshot.dimensions],
            "subjects": [self.serialize_subject(item, dimension_ids) for item in snapshot.subjects],
            "overview": self.serialize_overview(snapshot),
        }

    def read_leader(self) -> dict[str, object]:
        snapshot = self.store.snapshot()
        top = aggregates.leader(snapshot.dimensions, snapshot.subjects)
        totals = aggregates.subject_totals(snapshot.dimensions, snapshot.subjects)
        return {
            "leader": None if top is None else {"id": top.id, "name": top.name, "total": totals[top.id]},
            "totals": [
                {"id": subject.id, "name": subject.name, "total": totals[subject.id]}
                for subject in snapshot.subjects
            ],
        }

    def read_radar(self) -> dict[str, object]:
        snapshot = self.store.snapshot()
        return {
            "subjects": [
                {"id": subject.id, "name": subject.name, "color": subject.color} for subject in snapshot.subjects
            ],
            "rows": aggregates.radar_series(snapshot.dimensions, snapshot.subjects),
        }

    # ---------- Dimensions ----------
    def create_dimension(self, name: str) -> Dimension:
        dimension = self.store.add_dimension(name)
        if dimension is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Dimension name must not be blank.",
            )
        return dimension

    def rename_dimension(self, dimension_id: str, name: str) -> Dimension:
        dimension = self.store.rename_dimension(dimension_id, name)
        if dimension is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dimension not found.")
        return dimension

    def delete_dimension(self, dimension_id: str) -> None:
        if not self.store.delete_dimension(dimension_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dimension not found.")

    # ---------- Subjects ----------
    def create_subject(self, name: str) -> Subject:
        subject = self.store.add_subject(name)
        if subject is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Subject name must not be blank.",
            )
        return subject

    def update_subject(self, subject_id: str, name: str | None, color: str | None) -> Subject:
        subject = self.store.update_subject_details(subject_id, name or "", color or "")
        if subject is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")
        return subject

    def delete_subject(self, subject_id: str) -> None:
        if not self.store.delete_subject(subject_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")

    # ---------- Matrix ----------
    def _ensure_cell(self, subject_id: str, dimension_id: str) -> None:
        if self.store.find_subject(subject_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")
        if self.store.find_dimension(dimension_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dimension not found.")

    def update_score(self, subject_id: str, dimension_id: str, value: object) -> dict[str, object]:
        self._ensure_cell(subject_id, dimension_id)
        score = self.store.set_score(subject_id, dimension_id, value)
        if score is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Matrix cell not found.")
        return {"subject_id": subject_id, "dimension_id": dimension_id, "score": score}

    def update_description(self, subject_id: str, dimension_id: str, text: str) -> dict[str, object]:
        self._ensure_cell(subject_id, dimension_id)
        saved = self.store.set_description(subject_id, dimension_id, text)
        if saved is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Matrix cell not found.")
        return {"subject_id": subject_id, "dimension_id": dimension_id, "description": saved}

    # ---------- Exchange ----------
    def export_grid(self, *, format_name: str, today: date | None = None) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in EXPORT_FORMATS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="format must be one of: csv, xlsx.",
            )

        snapshot = self.store.snapshot()
        filename = export_filename(
            today or date.today(),
            prefix=self.settings.export_filename_prefix,
            extension=normalized_format,
        )
        if normalized_format == "csv":
            return ExportFilePayload(
                media_type=CSV_MEDIA_TYPE,
                filename=filename,
                content=export_csv_bytes(snapshot.dimensions, snapshot.subjects),
            )
        return ExportFilePayload(
            media_type=XLSX_MEDIA_TYPE,
            filename=filename,
            content=export_xlsx_bytes(snapshot.dimensions, snapshot.subjects),
        )

    def import_grid(self, raw: bytes) -> ImportOutcome:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Import file must be UTF-8 encoded text.",
            ) from exc

        outcome = self.store.import_csv(text)
        if not outcome.ok:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=outcome.message)
        return outcome
