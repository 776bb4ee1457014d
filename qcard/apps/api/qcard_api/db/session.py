"""Database session management.

Uses the unified engine builder; the URL comes from resolve_database_url()
(DATABASE_URL, DigitalOcean DATABASE_* parts, or the dev SQLite fallback).
"""

from typing import Generator

from sqlalchemy.orm import Session

from qcard_api.config.env import resolve_database_url
from qcard_api.db.engine import build_engine, build_sessionmaker

# Production fail-fast happens inside resolve_database_url()/build_engine().
DATABASE_URL = resolve_database_url()

engine = build_engine(DATABASE_URL)

SessionLocal = build_sessionmaker(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Yields:
        Session: SQLAlchemy session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
