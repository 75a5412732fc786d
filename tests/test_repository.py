"""Tests for the SQLite-backed stores."""

from datetime import date, timedelta

import pytest
from sqlmodel import Session, create_engine

from circulation.database import init_db
from circulation.engine import LendingEngine
from circulation.models import Book, Member
from circulation.repository import SqlBookStore, SqlMemberStore

TODAY = date(2026, 3, 2)


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Create a test database."""
    db_file = tmp_path / "test.db"
    monkeypatch.setattr("circulation.database.DB_PATH", db_file, raising=True)

    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False})
    monkeypatch.setattr("circulation.database.engine", engine, raising=True)

    init_db()
    return engine


@pytest.fixture
def seeded(test_db):
    with Session(test_db) as session:
        books = SqlBookStore(session)
        members = SqlMemberStore(session)
        for i in range(1, 7):
            books.save(Book(id=f"b{i}", title=f"Book {i}"))
        for member_id, name in (("m1", "Kertu"), ("m2", "Rasmus"), ("m3", "Liis")):
            members.save(Member(id=member_id, name=name))
        session.commit()
    return test_db


def _run(db, action):
    """Run action(engine) in its own session and commit, like one CLI command."""
    with Session(db) as session:
        engine = LendingEngine(SqlBookStore(session), SqlMemberStore(session), today=lambda: TODAY)
        result = action(engine)
        session.commit()
    return result


def _book(db, book_id):
    with Session(db) as session:
        book = SqlBookStore(session).find_by_id(book_id)
        return book.loaned_to, book.due_date, list(book.reservation_queue)


def test_book_store_roundtrip(test_db):
    with Session(test_db) as session:
        store = SqlBookStore(session)
        store.save(Book(id="b1", title="Clean Code"))
        session.commit()

    with Session(test_db) as session:
        store = SqlBookStore(session)
        assert store.exists_by_id("b1")
        assert not store.exists_by_id("b2")
        book = store.find_by_id("b1")
        assert book.title == "Clean Code"
        assert book.reservation_queue == []
        assert [b.id for b in store.find_all()] == ["b1"]

        store.delete(book)
        session.commit()

    with Session(test_db) as session:
        assert SqlBookStore(session).find_by_id("b1") is None


def test_queue_changes_are_persisted(test_db):
    with Session(test_db) as session:
        SqlBookStore(session).save(Book(id="b1", title="Clean Code", loaned_to="m1"))
        session.commit()

    with Session(test_db) as session:
        store = SqlBookStore(session)
        book = store.find_by_id("b1")
        book.reservation_queue.append("m2")
        book.reservation_queue.append("m3")
        store.save(book)
        session.commit()

    with Session(test_db) as session:
        assert SqlBookStore(session).find_by_id("b1").reservation_queue == ["m2", "m3"]


def test_count_by_loaned_to(test_db):
    with Session(test_db) as session:
        store = SqlBookStore(session)
        store.save(Book(id="b1", title="A", loaned_to="m1", due_date=TODAY))
        store.save(Book(id="b2", title="B", loaned_to="m1", due_date=TODAY))
        store.save(Book(id="b3", title="C", loaned_to="m2", due_date=TODAY))
        store.save(Book(id="b4", title="D"))

        assert store.count_by_loaned_to("m1") == 2
        assert store.count_by_loaned_to("m2") == 1
        assert store.count_by_loaned_to("m3") == 0


def test_member_store(test_db):
    with Session(test_db) as session:
        store = SqlMemberStore(session)
        store.save(Member(id="m1", name="Kertu"))
        store.save(Member(id="m2", name="Rasmus"))
        session.commit()

        assert store.exists_by_id("m1")
        assert store.find_by_id("m2").name == "Rasmus"
        assert [m.id for m in store.find_all()] == ["m1", "m2"]

        store.delete(store.find_by_id("m1"))
        session.commit()
        assert not store.exists_by_id("m1")
        assert store.find_by_id("m1") is None


def test_hand_off_across_sessions(seeded):
    assert _run(seeded, lambda e: e.borrow("b5", "m1")).ok
    assert _run(seeded, lambda e: e.reserve("b5", "m2")).ok
    assert _run(seeded, lambda e: e.reserve("b5", "m3")).ok

    result = _run(seeded, lambda e: e.return_book("b5", "m1"))

    assert result.ok
    assert result.next_member_id == "m2"
    assert _book(seeded, "b5") == ("m2", TODAY + timedelta(days=14), ["m3"])


def test_hand_off_skips_deleted_member_across_sessions(seeded):
    assert _run(seeded, lambda e: e.borrow("b6", "m1")).ok
    assert _run(seeded, lambda e: e.reserve("b6", "m2")).ok
    assert _run(seeded, lambda e: e.reserve("b6", "m3")).ok
    with Session(seeded) as session:
        members = SqlMemberStore(session)
        members.delete(members.find_by_id("m2"))
        session.commit()

    result = _run(seeded, lambda e: e.return_book("b6", "m1"))

    assert result.ok
    assert result.next_member_id == "m3"
    assert _book(seeded, "b6") == ("m3", TODAY + timedelta(days=14), [])


def test_rejected_borrow_leaves_row_unchanged(seeded):
    with Session(seeded) as session:
        store = SqlBookStore(session)
        book = store.find_by_id("b1")
        book.reservation_queue = ["m2"]
        store.save(book)
        session.commit()

    result = _run(seeded, lambda e: e.borrow("b1", "m3"))

    assert not result.ok
    assert _book(seeded, "b1") == (None, None, ["m2"])


def test_borrow_limit_uses_database_count(seeded):
    with Session(seeded) as session:
        store = SqlBookStore(session)
        for i in range(5):
            store.save(Book(id=f"x{i}", title=f"Extra {i}", loaned_to="m1", due_date=TODAY))
        session.commit()

    result = _run(seeded, lambda e: e.borrow("b1", "m1"))

    assert result.reason.value == "BORROW_LIMIT"
    assert _book(seeded, "b1") == (None, None, [])
