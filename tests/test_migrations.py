"""Tests for Alembic schema management."""

import sqlite3

import pytest
from sqlmodel import create_engine

from circulation.database import init_db
from circulation.migrations import get_status, run_migrations, stamp_if_needed


@pytest.fixture
def db_file(tmp_path, monkeypatch):
    db_file = tmp_path / "circulation.db"
    monkeypatch.setattr("circulation.database.DB_PATH", db_file, raising=True)
    monkeypatch.setattr(
        "circulation.database.engine",
        create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False}),
        raising=True,
    )
    return db_file


def _tables(db_file):
    conn = sqlite3.connect(db_file)
    try:
        cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {row[0] for row in cur.fetchall()}
    finally:
        conn.close()


def test_status_of_missing_database(db_file):
    current, head = get_status()

    assert current is None
    assert head == "0001"


def test_upgrade_creates_schema(db_file):
    run_migrations(backup=False)

    assert {"books", "members", "alembic_version"} <= _tables(db_file)
    assert get_status() == ("0001", "0001")


def test_stamp_database_created_by_init_db(db_file):
    init_db()
    assert get_status()[0] is None

    stamp_if_needed()

    assert get_status() == ("0001", "0001")
    # Upgrading a stamped DB is a no-op
    run_migrations(backup=True)
    assert db_file.with_suffix(".db.bak").exists()
