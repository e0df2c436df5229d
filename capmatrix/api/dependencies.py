"""Request dependencies resolving process-wide collaborators from app state."""

from fastapi import Request

from capmatrix.services.grid_store import GridStore
from capmatrix.services.summary_service import SummaryBoard, SummaryGenerator


def get_grid_store(request: Request) -> GridStore:
    return request.app.state.grid_store


def get_summary_generator(request: Request) -> SummaryGenerator:
    return request.app.state.summary_generator


def get_summary_board(request: Request) -> SummaryBoard:
    return request.app.state.summary_board
