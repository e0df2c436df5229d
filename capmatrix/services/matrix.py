"""Score and description access over a subject's sparse matrix maps."""

from __future__ import annotations

import math

from capmatrix.models.grid import MAX_SCORE, MIN_SCORE, Subject


def _as_finite_number(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def clamp_score(value: object) -> int:
    """Manual-entry rule: non-numeric becomes 0, numbers are clamped to [0, 10]."""

    number = _as_finite_number(value)
    if number is None:
        return MIN_SCORE
    number = min(max(number, MIN_SCORE), MAX_SCORE)
    return int(round(number))


def parse_imported_score(raw: str) -> int:
    """Import rule: non-numeric or out-of-range text becomes 0."""

    number = _as_finite_number(raw)
    if number is None or math.isinf(number):
        return MIN_SCORE
    if number < MIN_SCORE or number > MAX_SCORE:
        return MIN_SCORE
    return int(round(number))


def get_score(subject: Subject, dimension_id: str) -> int:
    return subject.scores.get(dimension_id, 0)


def set_score(subject: Subject, dimension_id: str, value: object) -> int:
    score = clamp_score(value)
    subject.scores[dimension_id] = score
    return score


def get_description(subject: Subject, dimension_id: str) -> str | None:
    return subject.descriptions.get(dimension_id)


def set_description(subject: Subject, dimension_id: str, text: str) -> str:
    subject.descriptions[dimension_id] = text
    return text
