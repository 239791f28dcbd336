# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from task_tracker.config import Settings
from task_tracker.database import close_db, init_db, make_engine
from task_tracker.main import create_app
from task_tracker.store import TaskStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a fresh SQLite file; metrics off to keep apps independent."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tasks.sqlite'}",
        metrics_enabled=False,
    )


@pytest.fixture()
def engine(settings: Settings):
    engine = make_engine(settings.database_url)
    yield engine
    close_db(engine)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(engine, clock: FakeClock):
    session = init_db(engine)()
    try:
        yield TaskStore(session, clock=clock)
    finally:
        session.close()


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # Entering the context runs the lifespan: tables created, engine disposed on exit.
    with TestClient(app) as c:
        yield c
