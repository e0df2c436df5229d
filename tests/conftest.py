from __future__ import annotations

from collections.abc import Generator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from capmatrix.core.config import get_settings
from capmatrix.db.base import Base
from capmatrix.db.dependencies import get_db_session
import capmatrix.models.entities  # noqa: F401
from capmatrix.main import create_app
from capmatrix.models.grid import Dimension, Subject
from capmatrix.services.grid_store import GridStore
from capmatrix.services.identity import IdentityAllocator
from capmatrix.services.persistence import GridPersistence
from capmatrix.services.summary_service import SummaryGenerator


class StubChatClient:
    """Stands in for the OpenAI client: ``client.chat.completions.create(...)``."""

    def __init__(self) -> None:
        self.reply: str | None = "## Analysis\nAll good."
        self.error: Exception | None = None
        self.calls: list[dict[str, object]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: object) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))])


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def persistence(session_factory: sessionmaker[Session]) -> GridPersistence:
    return GridPersistence(session_factory)


@pytest.fixture()
def store(persistence: GridPersistence) -> GridStore:
    grid = GridStore(persistence=persistence, allocator=IdentityAllocator(seed=1234))
    grid.load()
    return grid


@pytest.fixture()
def summary_client() -> StubChatClient:
    return StubChatClient()


@pytest.fixture()
def client(
    store: GridStore,
    db_session: Session,
    summary_client: StubChatClient,
) -> Generator[TestClient, None, None]:
    generator = SummaryGenerator(get_settings(), client=summary_client)
    app = create_app(store=store, summary_generator=generator)

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_store():
    """Factory for stores seeded with ``(id, name)`` dimensions and ``(id, name, scores)`` subjects."""

    def _build(
        dimensions: list[tuple[str, str]],
        subjects: list[tuple[str, str, dict[str, int]]],
        *,
        persistence: GridPersistence | None = None,
    ) -> GridStore:
        return GridStore(
            persistence=persistence,
            allocator=IdentityAllocator(seed=99),
            dimensions=[Dimension(id=dimension_id, name=name) for dimension_id, name in dimensions],
            subjects=[
                Subject(id=subject_id, name=name, color="#123456", scores=dict(scores))
                for subject_id, name, scores in subjects
            ],
        )

    return _build
