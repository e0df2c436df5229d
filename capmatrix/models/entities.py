"""ORM entities for grid persistence."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from capmatrix.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GridStateSlot(Base):
    """One serialized collection snapshot, addressed by slot key."""

    __tablename__ = "grid_state_slots"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
