"""Process-wide owner of the dimension and subject collections."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from capmatrix.models.grid import DEFAULT_NEW_SCORE, Dimension, GridSnapshot, Subject
from capmatrix.services import aggregates, matrix
from capmatrix.services.csv_codec import CsvFormatError, parse_csv
from capmatrix.services.defaults import default_dimensions, default_subjects
from capmatrix.services.identity import IdentityAllocator
from capmatrix.services.persistence import GridPersistence

logger = logging.getLogger(__name__)

T = TypeVar("T")


def move_item(items: Sequence[T], old_index: int, new_index: int) -> list[T]:
    """Move one element from ``old_index`` to ``new_index``.

    Out-of-range indices or equal indices return an unmodified copy.
    """

    moved = list(items)
    length = len(moved)
    if old_index == new_index:
        return moved
    if not (0 <= old_index < length and 0 <= new_index < length):
        return moved
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


@dataclass(frozen=True, slots=True)
class ImportOutcome:
    ok: bool
    message: str
    dimension_count: int = 0
    subject_count: int = 0


class GridStore:
    """Ordered dimension and subject collections with their sparse matrices.

    Every public mutation runs under one lock, commits in a single assignment
    and then hands a snapshot to the persistence adapter. Entities returned to
    callers are copies; the live objects never leave the store.
    """

    def __init__(
        self,
        *,
        persistence: GridPersistence | None = None,
        allocator: IdentityAllocator | None = None,
        dimensions: Sequence[Dimension] | None = None,
        subjects: Sequence[Subject] | None = None,
    ) -> None:
        self.persistence = persistence
        self.allocator = allocator or IdentityAllocator()
        self._lock = threading.RLock()
        self._dimensions: list[Dimension] = (
            [item.copy() for item in dimensions] if dimensions is not None else default_dimensions()
        )
        self._subjects: list[Subject] = (
            [item.copy() for item in subjects] if subjects is not None else default_subjects()
        )
        self._register_ids()

    # ---------- Lifecycle ----------
    def _register_ids(self) -> None:
        self.allocator.register(item.id for item in self._dimensions)
        self.allocator.register(item.id for item in self._subjects)

    def _commit(self) -> None:
        if self.persistence is None:
            return
        self.persistence.save(self._dimensions, self._subjects)

    def load(self) -> None:
        """Rehydrate both collections; each slot falls back to defaults on its own."""

        with self._lock:
            dimensions = self.persistence.load_dimensions() if self.persistence else None
            subjects = self.persistence.load_subjects() if self.persistence else None
            if dimensions is None:
                logger.info("Using built-in default dimensions")
                dimensions = default_dimensions()
            if subjects is None:
                logger.info("Using built-in default subjects")
                subjects = default_subjects()
            self._dimensions = dimensions
            self._subjects = subjects
            self._register_ids()
            logger.info(
                "Grid loaded with %d dimension(s) and %d subject(s)",
                len(self._dimensions),
                len(self._subjects),
            )

    def reset(self) -> None:
        """Drop live and persisted state and restore the built-in defaults."""

        with self._lock:
            if self.persistence is not None:
                self.persistence.clear()
            self._dimensions = default_dimensions()
            self._subjects = default_subjects()
            self._register_ids()
            logger.info("Grid reset to defaults")
            self._commit()

    def snapshot(self) -> GridSnapshot:
        with self._lock:
            return GridSnapshot(
                dimensions=tuple(item.copy() for item in self._dimensions),
                subjects=tuple(item.copy() for item in self._subjects),
            )

    # ---------- Lookups ----------
    def _dimension(self, dimension_id: str) -> Dimension | None:
        return next((item for item in self._dimensions if item.id == dimension_id), None)

    def _subject(self, subject_id: str) -> Subject | None:
        return next((item for item in self._subjects if item.id == subject_id), None)

    def find_dimension(self, dimension_id: str) -> Dimension | None:
        with self._lock:
            found = self._dimension(dimension_id)
            return found.copy() if found else None

    def find_subject(self, subject_id: str) -> Subject | None:
        with self._lock:
            found = self._subject(subject_id)
            return found.copy() if found else None

    def dimension_ids(self) -> list[str]:
        with self._lock:
            return [item.id for item in self._dimensions]

    def subject_ids(self) -> list[str]:
        with self._lock:
            return [item.id for item in self._subjects]

    # ---------- Dimensions ----------
    def add_dimension(self, name: str) -> Dimension | None:
        clean = name.strip()
        if not clean:
            return None
        with self._lock:
            dimension = Dimension(id=self.allocator.dimension_id(clean), name=clean)
            subjects = [item.copy() for item in self._subjects]
            for subject in subjects:
                subject.scores[dimension.id] = DEFAULT_NEW_SCORE
            self._dimensions = [*self._dimensions, dimension]
            self._subjects = subjects
            self._commit()
            return dimension.copy()

    def rename_dimension(self, dimension_id: str, name: str) -> Dimension | None:
        clean = name.strip()
        with self._lock:
            dimension = self._dimension(dimension_id)
            if dimension is None:
                return None
            if clean:
                dimension.name = clean
                self._commit()
            return dimension.copy()

    def delete_dimension(self, dimension_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self._dimensions if item.id != dimension_id]
            if len(remaining) == len(self._dimensions):
                return False
            self._dimensions = remaining
            self._commit()
            return True

    def reorder_dimensions(self, old_index: int, new_index: int) -> list[str]:
        with self._lock:
            reordered = move_item(self._dimensions, old_index, new_index)
            if reordered != self._dimensions:
                self._dimensions = reordered
                self._commit()
            return [item.id for item in self._dimensions]

    # ---------- Subjects ----------
    def add_subject(self, name: str) -> Subject | None:
        clean = name.strip()
        if not clean:
            return None
        with self._lock:
            subject = Subject(
                id=self.allocator.subject_id(),
                name=clean,
                color=self.allocator.color(),
                scores={dimension.id: DEFAULT_NEW_SCORE for dimension in self._dimensions},
                descriptions={},
            )
            self._subjects = [*self._subjects, subject]
            self._commit()
            return subject.copy()

    def update_subject_details(self, subject_id: str, name: str, color: str) -> Subject | None:
        clean_name = name.strip()
        clean_color = color.strip()
        with self._lock:
            subject = self._subject(subject_id)
            if subject is None:
                return None
            if clean_name:
                subject.name = clean_name
            if clean_color:
                subject.color = clean_color
            self._commit()
            return subject.copy()

    def delete_subject(self, subject_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self._subjects if item.id != subject_id]
            if len(remaining) == len(self._subjects):
                return False
            self._subjects = remaining
            self._commit()
            return True

    def reorder_subjects(self, old_index: int, new_index: int) -> list[str]:
        with self._lock:
            reordered = move_item(self._subjects, old_index, new_index)
            if reordered != self._subjects:
                self._subjects = reordered
                self._commit()
            return [item.id for item in self._subjects]

    # ---------- Matrix ----------
    def get_score(self, subject_id: str, dimension_id: str) -> int:
        with self._lock:
            subject = self._subject(subject_id)
            return 0 if subject is None else matrix.get_score(subject, dimension_id)

    def set_score(self, subject_id: str, dimension_id: str, value: object) -> int | None:
        with self._lock:
            subject = self._subject(subject_id)
            if subject is None or self._dimension(dimension_id) is None:
                return None
            score = matrix.set_score(subject, dimension_id, value)
            self._commit()
            return score

    def get_description(self, subject_id: str, dimension_id: str) -> str | None:
        with self._lock:
            subject = self._subject(subject_id)
            return None if subject is None else matrix.get_description(subject, dimension_id)

    def set_description(self, subject_id: str, dimension_id: str, text: str) -> str | None:
        with self._lock:
            subject = self._subject(subject_id)
            if subject is None or self._dimension(dimension_id) is None:
                return None
            matrix.set_description(subject, dimension_id, text)
            self._commit()
            return text

    # ---------- Aggregates ----------
    def leader(self) -> Subject | None:
        with self._lock:
            top = aggregates.leader(self._dimensions, self._subjects)
            return top.copy() if top else None

    # ---------- CSV import ----------
    def import_csv(self, text: str) -> ImportOutcome:
        """Replace the whole grid with the parsed file, or change nothing."""

        with self._lock:
            try:
                parsed = parse_csv(
                    text,
                    prior_dimensions=self._dimensions,
                    prior_subjects=self._subjects,
                    allocator=self.allocator,
                )
            except CsvFormatError as exc:
                logger.warning("CSV import rejected: %s", exc)
                return ImportOutcome(ok=False, message=str(exc))

            self._dimensions = parsed.dimensions
            self._subjects = parsed.subjects
            self._commit()
            logger.info(
                "CSV import replaced grid: %d dimension(s), %d subject(s)",
                len(parsed.dimensions),
                len(parsed.subjects),
            )
            return ImportOutcome(
                ok=True,
                message="Import completed.",
                dimension_count=len(parsed.dimensions),
                subject_count=len(parsed.subjects),
            )
