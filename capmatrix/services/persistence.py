"""Snapshot persistence for the grid store.

Two independent slots hold the dimension list and the subject list as JSON
arrays. Reads happen once at startup; writes follow every committed
mutation. Neither direction is allowed to take the process down: unreadable
slots fall back to defaults and failed writes are only logged.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from capmatrix.models.grid import MAX_SCORE, MIN_SCORE, Dimension, Subject
from capmatrix.repositories.state_repository import GridStateRepository

logger = logging.getLogger(__name__)

DIMENSIONS_SLOT = "dimensions"
SUBJECTS_SLOT = "subjects"


class DimensionRecord(BaseModel):
    id: str = Field(min_length=1)
    name: str


class SubjectRecord(BaseModel):
    id: str = Field(min_length=1)
    name: str
    color: str
    scores: dict[str, int] = Field(default_factory=dict)
    descriptions: dict[str, str] = Field(default_factory=dict)


_dimension_list = TypeAdapter(list[DimensionRecord])
_subject_list = TypeAdapter(list[SubjectRecord])


def dump_dimensions(dimensions: Sequence[Dimension]) -> str:
    return json.dumps(
        [{"id": item.id, "name": item.name} for item in dimensions],
        ensure_ascii=False,
    )


def dump_subjects(subjects: Sequence[Subject]) -> str:
    return json.dumps(
        [
            {
                "id": item.id,
                "name": item.name,
                "color": item.color,
                "scores": item.scores,
                "descriptions": item.descriptions,
            }
            for item in subjects
        ],
        ensure_ascii=False,
    )


class CorruptSnapshotError(ValueError):
    """Raised when a persisted slot cannot be turned back into entities."""


def parse_dimensions(payload: str) -> list[Dimension]:
    try:
        records = _dimension_list.validate_json(payload)
    except ValidationError as exc:
        raise CorruptSnapshotError(f"invalid dimensions slot: {exc.error_count()} error(s)") from exc
    if len({record.id for record in records}) != len(records):
        raise CorruptSnapshotError("duplicate dimension ids in slot")
    return [Dimension(id=record.id, name=record.name) for record in records]


def parse_subjects(payload: str) -> list[Subject]:
    try:
        records = _subject_list.validate_json(payload)
    except ValidationError as exc:
        raise CorruptSnapshotError(f"invalid subjects slot: {exc.error_count()} error(s)") from exc
    if len({record.id for record in records}) != len(records):
        raise CorruptSnapshotError("duplicate subject ids in slot")
    return [
        Subject(
            id=record.id,
            name=record.name,
            color=record.color,
            scores={key: min(max(value, MIN_SCORE), MAX_SCORE) for key, value in record.scores.items()},
            descriptions=dict(record.descriptions),
        )
        for record in records
    ]


class GridPersistence:
    """Persistence adapter backed by the ``grid_state_slots`` table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def read_slot(self, key: str) -> str | None:
        """Return the raw payload for ``key``; ``None`` when absent or unreadable."""

        try:
            with self._session_factory() as session:
                row = GridStateRepository(session).get_slot(key)
                return None if row is None else row.payload
        except SQLAlchemyError:
            logger.exception("Reading grid slot %r failed", key)
            return None

    def load_dimensions(self) -> list[Dimension] | None:
        payload = self.read_slot(DIMENSIONS_SLOT)
        if payload is None:
            return None
        try:
            return parse_dimensions(payload)
        except CorruptSnapshotError as exc:
            logger.warning("Ignoring persisted dimensions: %s", exc)
            return None

    def load_subjects(self) -> list[Subject] | None:
        payload = self.read_slot(SUBJECTS_SLOT)
        if payload is None:
            return None
        try:
            return parse_subjects(payload)
        except CorruptSnapshotError as exc:
            logger.warning("Ignoring persisted subjects: %s", exc)
            return None

    def save(self, dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> bool:
        """Write both slots in one transaction. Failures are logged, never raised."""

        try:
            with self._session_factory() as session:
                repo = GridStateRepository(session)
                repo.upsert_slot(DIMENSIONS_SLOT, dump_dimensions(dimensions))
                repo.upsert_slot(SUBJECTS_SLOT, dump_subjects(subjects))
                session.commit()
        except SQLAlchemyError:
            logger.exception("Writing grid snapshot failed; in-memory state kept")
            return False
        return True

    def clear(self) -> bool:
        try:
            with self._session_factory() as session:
                GridStateRepository(session).delete_slots([DIMENSIONS_SLOT, SUBJECTS_SLOT])
                session.commit()
        except SQLAlchemyError:
            logger.exception("Clearing grid snapshot failed")
            return False
        return True
