"""Natural-language summary endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from capmatrix.api.dependencies import get_grid_store, get_summary_board, get_summary_generator
from capmatrix.services.grid_store import GridStore
from capmatrix.services.summary_service import SummaryBoard, SummaryGenerator, SummaryResult

router = APIRouter(prefix="/summary", tags=["summary"])


def _serialize(result: SummaryResult | None) -> dict[str, object]:
    if result is None:
        return {"text": None, "fallback": None, "generated_at": None}
    return {
        "text": result.text,
        "fallback": result.fallback,
        "generated_at": result.generated_at.isoformat(),
    }


@router.post("")
def generate_summary(
    store: GridStore = Depends(get_grid_store),
    generator: SummaryGenerator = Depends(get_summary_generator),
    board: SummaryBoard = Depends(get_summary_board),
) -> dict[str, object]:
    # Sync endpoint: runs on a worker thread and only holds the store lock
    # while copying the snapshot.
    result = generator.generate(store.snapshot())
    board.publish(result)
    return _serialize(result)


@router.get("")
def get_summary(board: SummaryBoard = Depends(get_summary_board)) -> dict[str, object]:
    return _serialize(board.latest)
