"""Repository helpers for persisted grid state slots."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from capmatrix.models.entities import GridStateSlot


class GridStateRepository:
    """Slot-level persistence operations used by the grid persistence adapter."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_slot(self, key: str) -> GridStateSlot | None:
        return self.db.scalar(select(GridStateSlot).where(GridStateSlot.key == key))

    def upsert_slot(self, key: str, payload: str) -> GridStateSlot:
        row = self.get_slot(key)
        now = datetime.now(timezone.utc)
        if row is None:
            row = GridStateSlot(key=key, payload=payload, updated_at=now)
            self.db.add(row)
        else:
            row.payload = payload
            row.updated_at = now
        self.db.flush()
        return row

    def delete_slots(self, keys: list[str]) -> None:
        self.db.execute(delete(GridStateSlot).where(GridStateSlot.key.in_(keys)))
        self.db.flush()
