"""Lending engine: borrow, return, reserve and cancel over the book/member stores.

A book's lending state is the pair (loaned_to, reservation_queue). Every
operation here takes one valid pair to another, or rejects and leaves the
stored book untouched. Operations on the same book id are serialized with a
per-book lock so queue-head decisions see one snapshot. Granting a loan also
holds a per-member lock, always taken after the book lock, so the loan-limit
check and the loan it allows cannot interleave with another loan to the same
member.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Callable, Dict, Iterator, List, Optional

from .config import LendingPolicy
from .logging_config import get_logger
from .models import Book
from .results import MemberSummary, Reason, ReservationPosition, Result, ReturnResult
from .stores import BookStore, MemberStore

logger = get_logger(__name__)


class _LockEntry:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0  # holders plus waiters


class KeyedLocks:
    """One lock per key, kept only while some thread holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]


class LendingEngine:
    def __init__(
        self,
        books: BookStore,
        members: MemberStore,
        policy: Optional[LendingPolicy] = None,
        today: Callable[[], date] = date.today,
        book_locks: Optional[KeyedLocks] = None,
        member_locks: Optional[KeyedLocks] = None,
    ):
        self.books = books
        self.members = members
        self.policy = policy or LendingPolicy()
        self._today = today
        self._book_locks = book_locks or KeyedLocks()
        self._member_locks = member_locks or KeyedLocks()

    # --- Eligibility ---

    def can_borrow(self, member_id: str) -> bool:
        """True if the member exists and holds fewer than max_loans books right now."""
        if not self.members.exists_by_id(member_id):
            return False
        return self.books.count_by_loaned_to(member_id) < self.policy.max_loans

    # --- State-changing operations ---

    def borrow(self, book_id: str, member_id: str) -> Result:
        with self._book_locks.hold(book_id):
            book = self.books.find_by_id(book_id)
            if book is None:
                return self._reject("borrow", book_id, member_id, Reason.BOOK_NOT_FOUND)
            if not self.members.exists_by_id(member_id):
                return self._reject("borrow", book_id, member_id, Reason.MEMBER_NOT_FOUND)
            if book.loaned_to is not None:
                return self._reject("borrow", book_id, member_id, Reason.ALREADY_LOANED)

            queue = list(book.reservation_queue)
            if queue and queue[0] != member_id:
                return self._reject("borrow", book_id, member_id, Reason.RESERVATION_QUEUE)

            with self._member_locks.hold(member_id):
                # The head keeps their place if the limit check fails.
                if not self.can_borrow(member_id):
                    return self._reject("borrow", book_id, member_id, Reason.BORROW_LIMIT)

                if queue:
                    queue.pop(0)
                book.reservation_queue = queue
                self._lend(book, member_id)
                self.books.save(book)

        logger.info(f"Book {book_id} borrowed by {member_id} (due {book.due_date})")
        return Result.success()

    def return_book(self, book_id: str, member_id: str) -> ReturnResult:
        """Return a loan and hand the book to the first eligible member in the queue.

        Only the current holder can return. Queue entries that are no longer
        eligible (deleted member, or at the borrow limit) are dropped for good.
        """
        with self._book_locks.hold(book_id):
            book = self.books.find_by_id(book_id)
            if book is None or book.loaned_to is None or book.loaned_to != member_id:
                logger.debug(f"return rejected: book={book_id} member={member_id}")
                return ReturnResult.failure()

            book.loaned_to = None
            book.due_date = None

            queue = list(book.reservation_queue)
            next_member: Optional[str] = None
            while queue and next_member is None:
                candidate = queue.pop(0)
                with self._member_locks.hold(candidate):
                    if not self.can_borrow(candidate):
                        logger.info(f"Skipping ineligible reservation of {candidate} on book {book_id}")
                        continue
                    self._lend(book, candidate)
                    book.reservation_queue = queue
                    self.books.save(book)
                    next_member = candidate

            if next_member is None:
                book.reservation_queue = queue
                self.books.save(book)

        if next_member:
            logger.info(f"Book {book_id} returned by {member_id}, handed off to {next_member}")
        else:
            logger.info(f"Book {book_id} returned by {member_id}, now available")
        return ReturnResult.success(next_member)

    def reserve(self, book_id: str, member_id: str) -> Result:
        with self._book_locks.hold(book_id):
            book = self.books.find_by_id(book_id)
            if book is None:
                return self._reject("reserve", book_id, member_id, Reason.BOOK_NOT_FOUND)
            if not self.members.exists_by_id(member_id):
                return self._reject("reserve", book_id, member_id, Reason.MEMBER_NOT_FOUND)

            queue = list(book.reservation_queue)
            if member_id in queue:
                return self._reject("reserve", book_id, member_id, Reason.ALREADY_RESERVED)
            # The holder is never queued behind their own loan.
            if book.loaned_to == member_id:
                return self._reject("reserve", book_id, member_id, Reason.ALREADY_LOANED)

            if book.loaned_to is None and queue:
                # Available with a waiting queue: borrow/return hand-off should
                # never leave this state, so append rather than let anyone jump it.
                logger.warning(
                    f"Book {book_id} is available but has {len(queue)} queued reservation(s); "
                    f"appending {member_id}"
                )
                queue.append(member_id)
                book.reservation_queue = queue
                self.books.save(book)
                return Result.success()

            if book.loaned_to is None:
                with self._member_locks.hold(member_id):
                    if not self.can_borrow(member_id):
                        return self._reject("reserve", book_id, member_id, Reason.BORROW_LIMIT)
                    self._lend(book, member_id)
                    self.books.save(book)
                logger.info(f"Reservation of available book {book_id} became a loan to {member_id}")
                return Result.success()

            queue.append(member_id)
            book.reservation_queue = queue
            self.books.save(book)

        logger.info(f"{member_id} reserved book {book_id} (position {len(queue) - 1})")
        return Result.success()

    def cancel_reservation(self, book_id: str, member_id: str) -> Result:
        with self._book_locks.hold(book_id):
            book = self.books.find_by_id(book_id)
            if book is None:
                return self._reject("cancel", book_id, member_id, Reason.BOOK_NOT_FOUND)
            if not self.members.exists_by_id(member_id):
                return self._reject("cancel", book_id, member_id, Reason.MEMBER_NOT_FOUND)

            queue = list(book.reservation_queue)
            if member_id not in queue:
                return self._reject("cancel", book_id, member_id, Reason.NOT_RESERVED)
            queue.remove(member_id)
            book.reservation_queue = queue
            self.books.save(book)

        logger.info(f"{member_id} cancelled reservation on book {book_id}")
        return Result.success()

    def extend_loan(self, book_id: str, days: int) -> Result:
        """Move the due date by `days` (negative shortens it)."""
        if days == 0:
            return Result.failure(Reason.INVALID_EXTENSION)

        with self._book_locks.hold(book_id):
            book = self.books.find_by_id(book_id)
            if book is None:
                return Result.failure(Reason.BOOK_NOT_FOUND)
            if book.loaned_to is None:
                return Result.failure(Reason.NOT_LOANED)

            base = book.due_date or self._due_date()
            book.due_date = base + timedelta(days=days)
            self.books.save(book)

        logger.info(f"Loan on book {book_id} extended by {days} day(s) to {book.due_date}")
        return Result.success()

    # --- Queries ---

    def search_books(
        self,
        title_contains: Optional[str] = None,
        available_only: Optional[bool] = None,
        loaned_to: Optional[str] = None,
    ) -> List[Book]:
        """Filter the catalog. Each argument left as None is ignored.

        available_only=True keeps available books, False keeps loaned ones.
        """
        needle = title_contains.lower() if title_contains is not None else None
        matches = []
        for book in self.books.find_all():
            if needle is not None and needle not in book.title.lower():
                continue
            if loaned_to is not None and book.loaned_to != loaned_to:
                continue
            if available_only is not None and book.is_available != available_only:
                continue
            matches.append(book)
        return matches

    def overdue_books(self, today: Optional[date] = None) -> List[Book]:
        """Books on loan whose due date is strictly before `today`."""
        today = today or self._today()
        return [
            b for b in self.books.find_all()
            if b.loaned_to is not None and b.due_date is not None and b.due_date < today
        ]

    def member_summary(self, member_id: str) -> MemberSummary:
        if not self.members.exists_by_id(member_id):
            return MemberSummary.not_found()

        summary = MemberSummary(ok=True)
        for book in self.books.find_all():
            if book.loaned_to == member_id:
                summary.loans.append(book)
            if member_id in book.reservation_queue:
                summary.reservations.append(
                    ReservationPosition(book.id, book.reservation_queue.index(member_id))
                )
        return summary

    # --- Helpers ---

    def _due_date(self) -> date:
        return self._today() + timedelta(days=self.policy.loan_days)

    def _lend(self, book: Book, member_id: str) -> None:
        book.loaned_to = member_id
        book.due_date = self._due_date()

    def _reject(self, action: str, book_id: str, member_id: str, reason: Reason) -> Result:
        logger.debug(f"{action} rejected: book={book_id} member={member_id} reason={reason.value}")
        return Result.failure(reason)
