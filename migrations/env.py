"""Alembic migration environment.

Imports the engine and metadata from the circulation package so that
migrations use the exact same database connection the application does.
"""

from __future__ import annotations

from alembic import context
from sqlmodel import SQLModel

from circulation import database

# Register tables on SQLModel.metadata before Alembic inspects it.
from circulation import models as _models  # noqa: F401

target_metadata = SQLModel.metadata


def run_migrations_online() -> None:
    """Run migrations with a real database connection."""
    with database.engine.connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=target_metadata,
            render_as_batch=True,  # SQLite cannot ALTER most columns in place
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    raise RuntimeError(
        "Offline migration mode is not supported. "
        "Run without --sql."
    )
else:
    run_migrations_online()
