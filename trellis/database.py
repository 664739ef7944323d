"""
Database connection and session management.
Uses SQLAlchemy for Postgres connections (SQLite for local development and tests).
"""

from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from trellis.config import get_config
from trellis.logger import get_logger

logger = get_logger("database")

# Base class for all our database models (must be defined before engine)
Base = declarative_base()

# Upper bound of the Integer columns (int4 on Postgres)
MAX_ROW_ID = 2_147_483_647


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared across the request thread pool."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


DATABASE_URL = get_config().database_url
engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
logger.info("database: engine created dialect=%s", engine.dialect.name)


def get_db() -> Iterator[Session]:
    """
    Dependency function that provides a database session.
    The session is closed when the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def dialect_name(db: Session) -> str:
    """Name of the dialect the session is bound to (postgresql, sqlite, ...)."""
    return db.get_bind().dialect.name


def upsert_insert(db: Session, model):
    """
    ``INSERT`` construct supporting ``on_conflict_do_update`` /
    ``on_conflict_do_nothing`` for the session's dialect.
    """
    name = dialect_name(db)
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Upsert not supported for dialect {name}")
    return insert(model.__table__)
