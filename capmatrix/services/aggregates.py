"""Derived, read-only views over a grid snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from capmatrix.models.grid import Dimension, Subject
from capmatrix.services.matrix import get_score


@dataclass(frozen=True, slots=True)
class GridOverview:
    dimension_count: int
    subject_count: int
    leader_id: str | None
    leader_name: str | None


def subject_total(subject: Subject, dimensions: Sequence[Dimension]) -> int:
    # Scores keyed by deleted dimensions do not count.
    return sum(get_score(subject, dimension.id) for dimension in dimensions)


def subject_totals(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> dict[str, int]:
    return {subject.id: subject_total(subject, dimensions) for subject in subjects}


def leader(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> Subject | None:
    """Subject with the highest total; ties go to the earliest in display order."""

    best: Subject | None = None
    best_total = 0
    for subject in subjects:
        total = subject_total(subject, dimensions)
        if best is None or total > best_total:
            best = subject
            best_total = total
    return best


def overview(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> GridOverview:
    top = leader(dimensions, subjects)
    return GridOverview(
        dimension_count=len(dimensions),
        subject_count=len(subjects),
        leader_id=top.id if top else None,
        leader_name=top.name if top else None,
    )


def radar_series(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> list[dict[str, object]]:
    """One row per dimension, each subject's score keyed by subject id."""

    rows: list[dict[str, object]] = []
    for dimension in dimensions:
        row: dict[str, object] = {"dimension_id": dimension.id, "dimension": dimension.name}
        row["scores"] = {subject.id: get_score(subject, dimension.id) for subject in subjects}
        rows.append(row)
    return rows
