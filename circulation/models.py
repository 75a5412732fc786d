"""SQLModel database models for Circulation."""

from datetime import date
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.ext.mutable import MutableList
from sqlmodel import Field, SQLModel


class BookBase(SQLModel):
    title: str
    loaned_to: Optional[str] = Field(default=None, index=True)  # None = available
    due_date: Optional[date] = None  # only meaningful while loaned_to is set


class Book(BookBase, table=True):
    __tablename__ = "books"
    id: str = Field(primary_key=True)

    # Front of the list is next in line. Owned by this row, stored as a JSON array.
    reservation_queue: List[str] = Field(
        default_factory=list,
        sa_column=Column(MutableList.as_mutable(JSON), nullable=False),
    )

    @property
    def is_available(self) -> bool:
        return self.loaned_to is None


class MemberBase(SQLModel):
    name: str


class Member(MemberBase, table=True):
    __tablename__ = "members"
    id: str = Field(primary_key=True)
