"""Catalog maintenance: plain create/rename/delete of books and members.

None of these touch lending state. Deleting a member leaves their loans and
queue positions in place; the engine treats them as ineligible from then on.
"""

from __future__ import annotations

from typing import List, Optional

from .logging_config import get_logger
from .models import Book, Member
from .results import Reason, Result
from .stores import BookStore, MemberStore

logger = get_logger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class Catalog:
    def __init__(self, books: BookStore, members: MemberStore):
        self.books = books
        self.members = members

    # --- Books ---

    def create_book(self, book_id: Optional[str], title: Optional[str]) -> Result:
        if _blank(book_id) or _blank(title):
            return Result.failure(Reason.INVALID_REQUEST)
        if self.books.exists_by_id(book_id):
            return Result.failure(Reason.INVALID_REQUEST)
        self.books.save(Book(id=book_id, title=title))
        logger.info(f"Added book {book_id}: {title}")
        return Result.success()

    def update_book(self, book_id: str, title: Optional[str]) -> Result:
        book = self.books.find_by_id(book_id)
        if book is None:
            return Result.failure(Reason.BOOK_NOT_FOUND)
        if _blank(title):
            return Result.failure(Reason.INVALID_REQUEST)
        book.title = title
        self.books.save(book)
        return Result.success()

    def delete_book(self, book_id: str) -> Result:
        book = self.books.find_by_id(book_id)
        if book is None:
            return Result.failure(Reason.BOOK_NOT_FOUND)
        self.books.delete(book)
        logger.info(f"Deleted book {book_id}")
        return Result.success()

    def find_book(self, book_id: str) -> Optional[Book]:
        return self.books.find_by_id(book_id)

    def all_books(self) -> List[Book]:
        return self.books.find_all()

    # --- Members ---

    def create_member(self, member_id: Optional[str], name: Optional[str]) -> Result:
        if _blank(member_id) or _blank(name):
            return Result.failure(Reason.INVALID_REQUEST)
        if self.members.exists_by_id(member_id):
            return Result.failure(Reason.INVALID_REQUEST)
        self.members.save(Member(id=member_id, name=name))
        logger.info(f"Added member {member_id}: {name}")
        return Result.success()

    def update_member(self, member_id: str, name: Optional[str]) -> Result:
        member = self.members.find_by_id(member_id)
        if member is None:
            return Result.failure(Reason.MEMBER_NOT_FOUND)
        if _blank(name):
            return Result.failure(Reason.INVALID_REQUEST)
        member.name = name
        self.members.save(member)
        return Result.success()

    def delete_member(self, member_id: str) -> Result:
        member = self.members.find_by_id(member_id)
        if member is None:
            return Result.failure(Reason.MEMBER_NOT_FOUND)
        self.members.delete(member)
        logger.info(f"Deleted member {member_id}")
        return Result.success()

    def all_members(self) -> List[Member]:
        return self.members.find_all()
