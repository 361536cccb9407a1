"""Database engine and session factory.

Used only when STORE_BACKEND=sql. The engine is created from settings rather
than at import time so tests can point it at SQLite.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models.base import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings appropriate for the backend."""
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": echo,
    }

    # Pool settings only apply to server databases (not SQLite)
    if not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(database_url, **engine_kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create missing tables (development and tests)."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with session_scope(factory) as session:
            session.get(RecordDocument, ("requests", request_id))

    Automatically commits on success, rolls back on exception.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
