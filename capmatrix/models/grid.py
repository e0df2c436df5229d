"""In-memory domain types for the comparison grid."""

from __future__ import annotations

from dataclasses import dataclass, field

# Score given to every existing subject when a dimension is created,
# and to every existing dimension when a subject is created.
DEFAULT_NEW_SCORE = 5
MIN_SCORE = 0
MAX_SCORE = 10


@dataclass(slots=True)
class Dimension:
    """A named evaluation criterion (a matrix row)."""

    id: str
    name: str

    def copy(self) -> Dimension:
        return Dimension(id=self.id, name=self.name)


@dataclass(slots=True)
class Subject:
    """A named item under evaluation (a matrix column).

    ``scores`` and ``descriptions`` are sparse and keyed by dimension id.
    Keys of deleted dimensions may linger; readers go through the accessor
    helpers and only ask for current dimension ids.
    """

    id: str
    name: str
    color: str
    scores: dict[str, int] = field(default_factory=dict)
    descriptions: dict[str, str] = field(default_factory=dict)

    def copy(self) -> Subject:
        return Subject(
            id=self.id,
            name=self.name,
            color=self.color,
            scores=dict(self.scores),
            descriptions=dict(self.descriptions),
        )


@dataclass(frozen=True, slots=True)
class GridSnapshot:
    """Detached copy of both collections, safe to read outside the store lock."""

    dimensions: tuple[Dimension, ...]
    subjects: tuple[Subject, ...]
