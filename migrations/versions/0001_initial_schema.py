"""Initial schema: books, members

Revision ID: 0001
Revises: None
Create Date: 2026-10-19 00:00:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _table_exists(name: str) -> bool:
    conn = op.get_bind()
    result = conn.execute(
        sa.text("SELECT 1 FROM sqlite_master WHERE type='table' AND name=:n"),
        {"n": name},
    )
    return result.fetchone() is not None


def upgrade() -> None:
    # Guarded so a DB first created by init_db() (create_all) can be upgraded.
    if not _table_exists("members"):
        op.create_table(
            "members",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
        )

    if not _table_exists("books"):
        op.create_table(
            "books",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("loaned_to", sa.String(), nullable=True),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("reservation_queue", sa.JSON(), nullable=False),
        )
        op.create_index("ix_books_loaned_to", "books", ["loaned_to"])


def downgrade() -> None:
    op.drop_index("ix_books_loaned_to", table_name="books")
    op.drop_table("books")
    op.drop_table("members")
