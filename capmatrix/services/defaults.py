"""Built-in grid content used on first start, on corrupt state and on reset."""

from __future__ import annotations

from capmatrix.models.grid import Dimension, Subject

DEFAULT_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("detection", "Malware Detection"),
    ("performance", "Performance Impact"),
    ("false_positives", "False Positive Control"),
    ("cloud", "Cloud Analysis"),
    ("usability", "Ease of Use"),
    ("support", "Vendor Support"),
)

# (id, name, color, scores in DEFAULT_DIMENSIONS order)
DEFAULT_SUBJECTS: tuple[tuple[str, str, str, tuple[int, ...]], ...] = (
    ("defender", "Windows Defender", "#3b82f6", (8, 7, 7, 8, 9, 6)),
    ("kaspersky", "Kaspersky", "#10b981", (9, 7, 8, 9, 7, 7)),
    ("huorong", "Huorong", "#f59e0b", (7, 9, 8, 6, 8, 6)),
)


def default_dimensions() -> list[Dimension]:
    return [Dimension(id=dimension_id, name=name) for dimension_id, name in DEFAULT_DIMENSIONS]


def default_subjects() -> list[Subject]:
    dimension_ids = [dimension_id for dimension_id, _name in DEFAULT_DIMENSIONS]
    return [
        Subject(
            id=subject_id,
            name=name,
            color=color,
            scores=dict(zip(dimension_ids, scores, strict=True)),
            descriptions={},
        )
        for subject_id, name, color, scores in DEFAULT_SUBJECTS
    ]
