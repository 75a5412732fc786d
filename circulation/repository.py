"""Data Access Layer for Circulation.

SQLModel-backed implementations of the BookStore and MemberStore contracts.
Both share the caller's session; callers control when to commit.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import Session, func, select

from .models import Book, Member


class SqlBookStore:
    """BookStore over the `books` table."""

    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def find_by_id(self, book_id: str) -> Optional[Book]:
        return self.session.get(Book, book_id)

    def find_all(self) -> List[Book]:
        return list(self.session.exec(select(Book).order_by(Book.id)).all())

    def save(self, book: Book) -> Book:
        """Insert or update a book and flush so later queries in the session see it."""
        book = self.session.merge(book)
        self.session.flush()
        return book

    def delete(self, book: Book) -> None:
        existing = self.session.get(Book, book.id)
        if existing:
            self.session.delete(existing)
            self.session.flush()

    def exists_by_id(self, book_id: str) -> bool:
        return self.session.get(Book, book_id) is not None

    def count_by_loaned_to(self, member_id: str) -> int:
        statement = select(func.count()).select_from(Book).where(Book.loaned_to == member_id)
        return self.session.exec(statement).one()


class SqlMemberStore:
    """MemberStore over the `members` table."""

    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def find_by_id(self, member_id: str) -> Optional[Member]:
        return self.session.get(Member, member_id)

    def find_all(self) -> List[Member]:
        return list(self.session.exec(select(Member).order_by(Member.id)).all())

    def save(self, member: Member) -> Member:
        member = self.session.merge(member)
        self.session.flush()
        return member

    def delete(self, member: Member) -> None:
        existing = self.session.get(Member, member.id)
        if existing:
            self.session.delete(existing)
            self.session.flush()

    def exists_by_id(self, member_id: str) -> bool:
        return self.session.get(Member, member_id) is not None
