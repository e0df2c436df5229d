"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from capmatrix.api.router import api_router
from capmatrix.core.config import get_settings
from capmatrix.core.logging_config import configure_logging
from capmatrix.db.base import Base
from capmatrix.services.grid_store import GridStore
from capmatrix.services.identity import IdentityAllocator
from capmatrix.services.persistence import GridPersistence
from capmatrix.services.summary_service import SummaryBoard, SummaryGenerator

logger = logging.getLogger(__name__)


def _default_store() -> GridStore:
    from capmatrix.db.session import SessionLocal, engine

    settings = get_settings()
    if settings.database_auto_create:
        Base.metadata.create_all(bind=engine)
    return GridStore(
        persistence=GridPersistence(SessionLocal),
        allocator=IdentityAllocator(settings.random_seed),
    )


def create_app(
    *,
    store: GridStore | None = None,
    summary_generator: SummaryGenerator | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    A ``store`` passed in is used as-is; otherwise one backed by the configured
    database is built and loaded on startup.
    """

    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if store is None:
            app.state.grid_store = _default_store()
            app.state.grid_store.load()
        logger.info("%s started (%s)", settings.app_name, settings.app_env)
        yield

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )
    app.state.grid_store = store
    app.state.summary_generator = summary_generator or SummaryGenerator(settings)
    app.state.summary_board = SummaryBoard()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "status": "running"}

    return app


app = create_app()
