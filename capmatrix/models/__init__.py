"""ORM and domain model package."""

from capmatrix.models.entities import GridStateSlot
from capmatrix.models.grid import Dimension, GridSnapshot, Subject

__all__ = [
    "Dimension",
    "GridSnapshot",
    "GridStateSlot",
    "Subject",
]
