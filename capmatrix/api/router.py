"""Top-level API router."""

from fastapi import APIRouter

from capmatrix.api.routes.exports import router as exports_router
from capmatrix.api.routes.grid import router as grid_router
from capmatrix.api.routes.health import router as health_router
from capmatrix.api.routes.summary import router as summary_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(grid_router)
api_router.include_router(exports_router)
api_router.include_router(summary_router)
