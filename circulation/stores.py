"""Store contracts used by the lending engine, plus in-memory implementations.

The engine only talks to these two protocols. `repository.py` provides the
SQLite-backed versions; the in-memory ones back the test suite and are handy
for trying out a lending policy without a database.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .models import Book, Member


class BookStore(Protocol):
    def find_by_id(self, book_id: str) -> Optional[Book]:
        ...

    def find_all(self) -> List[Book]:
        ...

    def save(self, book: Book) -> Book:
        ...

    def delete(self, book: Book) -> None:
        ...

    def exists_by_id(self, book_id: str) -> bool:
        ...

    def count_by_loaned_to(self, member_id: str) -> int:
        """Number of books currently loaned to member_id."""
        ...


class MemberStore(Protocol):
    def find_by_id(self, member_id: str) -> Optional[Member]:
        ...

    def find_all(self) -> List[Member]:
        ...

    def save(self, member: Member) -> Member:
        ...

    def delete(self, member: Member) -> None:
        ...

    def exists_by_id(self, member_id: str) -> bool:
        ...


def _copy_book(book: Book) -> Book:
    return Book(
        id=book.id,
        title=book.title,
        loaned_to=book.loaned_to,
        due_date=book.due_date,
        reservation_queue=list(book.reservation_queue),
    )


def _copy_member(member: Member) -> Member:
    return Member(id=member.id, name=member.name)


class InMemoryBookStore:
    """Dict-backed BookStore. Hands out copies so callers never alias stored state."""

    def __init__(self) -> None:
        self._books: Dict[str, Book] = {}

    def find_by_id(self, book_id: str) -> Optional[Book]:
        book = self._books.get(book_id)
        return _copy_book(book) if book else None

    def find_all(self) -> List[Book]:
        return [_copy_book(b) for b in self._books.values()]

    def save(self, book: Book) -> Book:
        self._books[book.id] = _copy_book(book)
        return book

    def delete(self, book: Book) -> None:
        self._books.pop(book.id, None)

    def exists_by_id(self, book_id: str) -> bool:
        return book_id in self._books

    def count_by_loaned_to(self, member_id: str) -> int:
        return sum(1 for b in self._books.values() if b.loaned_to == member_id)


class InMemoryMemberStore:
    def __init__(self) -> None:
        self._members: Dict[str, Member] = {}

    def find_by_id(self, member_id: str) -> Optional[Member]:
        member = self._members.get(member_id)
        return _copy_member(member) if member else None

    def find_all(self) -> List[Member]:
        return [_copy_member(m) for m in self._members.values()]

    def save(self, member: Member) -> Member:
        self._members[member.id] = _copy_member(member)
        return member

    def delete(self, member: Member) -> None:
        self._members.pop(member.id, None)

    def exists_by_id(self, member_id: str) -> bool:
        return member_id in self._members
