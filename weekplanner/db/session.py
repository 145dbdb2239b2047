from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from weekplanner.db.models import Base

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def build_engine(database_url: str) -> Engine:
    """Create an engine with SQLite-friendly connection args."""
    logger.info(f"Initializing database engine: {database_url}")
    url = database_url.lower()
    if "sqlite" not in url:
        return create_engine(database_url, echo=False, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in _MEMORY_URLS:
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        logger.warning("Using SQLite database (local development only)")
    return create_engine(database_url, echo=False, **kwargs)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.debug("Database schema ensured")


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Session context manager: commit on success, roll back and re-raise on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database session error, rolling back: {e}. Error type: {type(e).__name__}")
        session.rollback()
        raise
    finally:
        session.close()
