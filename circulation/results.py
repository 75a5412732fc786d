"""Outcome types returned by the lending engine and catalog.

Business failures are values, not exceptions: every operation returns one of
these and the caller decides how to present it.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import List, NamedTuple, Optional

from .models import Book


class Reason(str, Enum):
    """Machine-readable failure codes."""

    BOOK_NOT_FOUND = "BOOK_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    ALREADY_LOANED = "ALREADY_LOANED"
    RESERVATION_QUEUE = "RESERVATION_QUEUE"
    BORROW_LIMIT = "BORROW_LIMIT"
    ALREADY_RESERVED = "ALREADY_RESERVED"
    NOT_RESERVED = "NOT_RESERVED"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_EXTENSION = "INVALID_EXTENSION"
    NOT_LOANED = "NOT_LOANED"


class Result(NamedTuple):
    ok: bool
    reason: Optional[Reason] = None

    @classmethod
    def success(cls) -> "Result":
        return cls(True, None)

    @classmethod
    def failure(cls, reason: Reason) -> "Result":
        return cls(False, reason)


class ReturnResult(NamedTuple):
    """Outcome of a return. Failures carry no reason code."""

    ok: bool
    next_member_id: Optional[str] = None

    @classmethod
    def success(cls, next_member_id: Optional[str] = None) -> "ReturnResult":
        return cls(True, next_member_id)

    @classmethod
    def failure(cls) -> "ReturnResult":
        return cls(False, None)


class ReservationPosition(NamedTuple):
    book_id: str
    position: int  # 0 = next in line


@dataclasses.dataclass
class MemberSummary:
    ok: bool
    reason: Optional[Reason] = None
    loans: List[Book] = dataclasses.field(default_factory=list)
    reservations: List[ReservationPosition] = dataclasses.field(default_factory=list)

    @classmethod
    def not_found(cls) -> "MemberSummary":
        return cls(ok=False, reason=Reason.MEMBER_NOT_FOUND)
