"""
Database engine, session factory and transaction helpers.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings
from .errors import StorageError
from .logging_config import db_logger

settings = get_settings()


def configure_sqlite(engine: Engine) -> Engine:
    """Make pysqlite transactional the way the enrollment logic expects.

    pysqlite defers BEGIN until the first DML statement and never issues it
    for SAVEPOINTs. Taking over transaction control lets every transaction
    start with BEGIN IMMEDIATE, so SQLite serializes writers up front, and
    turns on foreign keys so ON DELETE CASCADE is honoured.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL with pool settings from config."""
    if database_url.startswith("sqlite"):
        return configure_sqlite(
            create_engine(
                database_url,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        )
    return create_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Largest value an INTEGER column holds on every supported backend
INT32_MAX = 2_147_483_647


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, operation: str = "unknown") -> Iterator[Session]:
    """Run a block as one transaction: commit on success, roll back on error.

    Store failures that escape the block surface as StorageError so callers
    never see driver-specific exceptions. Domain errors raised inside the
    block are re-raised unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        db_logger.error("Transaction failed", error=e, operation=operation)
        raise StorageError("Database operation failed") from e
    except Exception:
        db.rollback()
        raise
