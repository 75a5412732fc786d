"""Circulation core package.

Modules:
- engine: lending rules (borrow, return/hand-off, reserve, cancel)
- catalog: create/rename/delete of books and members
- stores: store contracts and in-memory stores
- repository: SQLite-backed stores
- database: engine and session management
- config: INI parsing and lending policy
"""

from .config import LendingPolicy
from .engine import LendingEngine
from .results import MemberSummary, Reason, ReservationPosition, Result, ReturnResult

__all__ = [
    "LendingEngine",
    "LendingPolicy",
    "MemberSummary",
    "Reason",
    "ReservationPosition",
    "Result",
    "ReturnResult",
]
