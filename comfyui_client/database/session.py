"""
Database session management
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)

engine: Engine = None

# Objects stay readable after the session closes
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def init_engine(database_url: str) -> Engine:
    """
    Create the engine for database_url and bind the session factory to it

    In-memory SQLite shares one connection across threads so every session
    sees the same database.
    """
    global engine

    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **options)
    else:
        engine = create_engine(database_url, echo=False)

    SessionLocal.configure(bind=engine)
    logger.debug(f"Database engine bound to {engine.url}")
    return engine


def init_db():
    """Initialize database tables"""
    if engine is None:
        raise RuntimeError("init_engine() must be called before init_db()")
    Base.metadata.create_all(bind=engine)


@contextmanager
def get_session() -> Session:
    """
    Get database session with automatic cleanup

    Usage:
        with get_session() as session:
            record = get_client_state_record(session)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
