"""Database connection and session management using SQLModel."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlmodel import Session, SQLModel, create_engine

from .config import DATA_DIR

DB_PATH = DATA_DIR / "circulation.db"
SQLITE_URL = f"sqlite:///{DB_PATH}"

# check_same_thread=False lets each thread open its own Session on the shared engine;
# a single Session is never shared between threads.
engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for one unit of work: commits on success, rolls back on error."""
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db() -> None:
    """Create database tables."""
    # Import models to ensure they are registered with SQLModel.metadata
    from . import models  # noqa: F401

    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL;")

    SQLModel.metadata.create_all(engine)


def reset_database() -> None:
    """Delete the database file and recreate it."""
    engine.dispose()
    if DB_PATH.exists():
        DB_PATH.unlink()
    init_db()


def get_engine():
    """Return the global engine instance."""
    return engine
