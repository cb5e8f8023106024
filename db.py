from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from config import database_url

_engine: Optional[Engine] = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(database_url(), echo=False)
    return _engine


def init_db(engine: Optional[Engine] = None) -> None:
    # Import models inside to avoid circular imports.
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())


@contextmanager
def get_session(engine: Optional[Engine] = None) -> Iterator[Session]:
    with Session(engine or get_engine(), expire_on_commit=False) as session:
        yield session
