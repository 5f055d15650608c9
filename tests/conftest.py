"""Shared fixtures: stores, a throwaway SQLite database and an API client."""

import os

# Must be set before database.connection is imported anywhere
os.environ["DB_ENGINE"] = "sqlite"
os.environ["DB_NAME"] = ":memory:"
os.environ["SERVER_TOKENS"] = "test-token,second-token"

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.services.stats import InMemoryStatRecordStore
from app.services.stats.sql_store import SqlStatRecordStore
from database.connection import create_app_engine, init_db


@pytest.fixture
def memory_store():
    return InMemoryStatRecordStore()


@pytest.fixture
def sql_engine(tmp_path):
    engine = create_app_engine(f"sqlite:///{tmp_path / 'stats.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sql_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=sql_engine)


@pytest.fixture
def sql_store(session_factory):
    return SqlStatRecordStore(session_factory)


@pytest.fixture
def player_id():
    return uuid.uuid4()


@pytest.fixture
def client(session_factory):
    from app.controllers.stats_controller import StatsController, get_stats_controller
    from database.connection import get_db
    from main import app

    controller = StatsController(SqlStatRecordStore(session_factory))

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stats_controller] = lambda: controller
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
