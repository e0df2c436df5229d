"""Identifier and display-color minting for grid entities."""

from __future__ import annotations

import random
import re
import string
from collections.abc import Callable, Iterable

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 9

_WHITESPACE_RE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Lower-case ``name`` and collapse whitespace runs into underscores."""

    return _WHITESPACE_RE.sub("_", name.strip().lower())


class IdentityAllocator:
    """Mints collision-resistant string ids and pseudo-random colors.

    Every id handed out (or registered from loaded state) is remembered, so an
    id is never issued twice within one process, even after the entity that
    carried it has been deleted.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)
        self._issued: set[str] = set()

    def register(self, ids: Iterable[str]) -> None:
        self._issued.update(ids)

    def is_issued(self, entity_id: str) -> bool:
        return entity_id in self._issued

    def _suffix(self) -> str:
        return "".join(self._random.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))

    def _claim(self, build: Callable[[str], str]) -> str:
        while True:
            candidate = build(self._suffix())
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    def subject_id(self) -> str:
        return self._claim(lambda suffix: suffix)

    def dimension_id(self, name: str) -> str:
        slug = slugify(name)
        return self._claim(lambda suffix: f"{slug}_{suffix}")

    def color(self) -> str:
        hue = self._random.randrange(360)
        return f"hsl({hue}, 70%, 50%)"
