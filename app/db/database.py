"""
Database engine and session handling for stored projects.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.db.models import Base

settings = get_settings()


def build_engine(database_url: str):
    """Engine for a database URL; Postgres gets NullPool, SQLite cross-thread access."""
    if database_url.startswith("postgresql"):
        return create_engine(database_url, poolclass=NullPool)
    return create_engine(database_url, connect_args={"check_same_thread": False})


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create the project tables if they do not exist."""
    Base.metadata.create_all(bind=bind or engine)


def drop_db(bind=None):
    """Drop every project table. Used by the demo seed script's --reset."""
    Base.metadata.drop_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error (scripts)."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
