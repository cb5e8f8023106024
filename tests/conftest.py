import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from db import get_session, init_db
from repository import Repository


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return Repository(session_factory=lambda: get_session(engine))
