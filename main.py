"""Circulation CLI entry point."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Tuple

import typer

from circulation.catalog import Catalog
from circulation.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOAN_DAYS,
    DEFAULT_MAX_LOANS,
    CirculationConfig,
    load_config,
    write_config,
)
from circulation.database import init_db, reset_database, session_scope
from circulation.engine import LendingEngine
from circulation.logging_config import setup_logging
from circulation.migrations import get_status, run_migrations, stamp_if_needed
from circulation.models import Book
from circulation.repository import SqlBookStore, SqlMemberStore
from circulation.results import Result


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Circulation library lending CLI")
logger = logging.getLogger("circulation")


def _ensure_config() -> CirculationConfig:
    try:
        config = load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: circulation init")
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid config.ini: {exc}")
        raise typer.Exit(code=1)
    setup_logging(config.logging.level, config.log_path)
    return config


@contextmanager
def _services() -> Iterator[Tuple[LendingEngine, Catalog]]:
    """Engine and catalog over one database session, committed on exit."""
    config = _ensure_config()
    init_db()
    with session_scope() as session:
        books = SqlBookStore(session)
        members = SqlMemberStore(session)
        yield LendingEngine(books, members, policy=config.lending), Catalog(books, members)


def _report(result: Result, message: str) -> None:
    if not result.ok:
        typer.echo(f"[ERROR] {result.reason.value}")
        raise typer.Exit(code=1)
    typer.echo(f"[OK] {message}")


def _describe(book: Book) -> str:
    if book.loaned_to is None:
        status = "available"
    else:
        status = f"loaned to {book.loaned_to} until {book.due_date}"
    line = f"  {book.id}: {book.title} ({status})"
    if book.reservation_queue:
        line += f" queue: {', '.join(book.reservation_queue)}"
    return line


@app.command()
def init(
    name: str = typer.Option("My Library", "--name", help="Library name"),
    max_loans: int = typer.Option(DEFAULT_MAX_LOANS, "--max-loans", help="Books a member may hold"),
    loan_days: int = typer.Option(DEFAULT_LOAN_DAYS, "--loan-days", help="Loan period in days"),
) -> None:
    """Write config.ini and create the database."""
    try:
        config_path = write_config(DEFAULT_CONFIG_PATH, name, max_loans, loan_days)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)
    init_db()
    stamp_if_needed()
    typer.echo(f"[OK] Config created at {config_path}")


@app.command()
def migrate(
    check: bool = typer.Option(False, "--check", help="Print status and exit (1 if not at head)"),
) -> None:
    """Run pending database migrations (or check status with --check)."""
    _ensure_config()
    current, head = get_status()

    if check:
        if current == head:
            typer.echo(f"[OK] Database at {head} (head).")
            raise typer.Exit(code=0)
        typer.echo(f"[WARN] Database behind: current {current}, head {head}")
        raise typer.Exit(code=1)

    if current == head:
        logger.info(f"Database already at {head} (head). Nothing to do.")
        raise typer.Exit(code=0)

    logger.info(f"Migrating database {current} -> {head} ...")
    run_migrations(backup=True)
    logger.info("Migration complete.")


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--confirm", help="Confirm destructive reset"),
) -> None:
    """Delete all books, members and loans."""
    if not confirm:
        typer.echo("[ERROR] This will delete your database. Use --confirm.")
        raise typer.Exit(code=1)
    _ensure_config()
    reset_database()
    stamp_if_needed()
    typer.echo("[INFO] Database reset.")


@app.command("add-book")
def add_book(book_id: str, title: str) -> None:
    """Add a book to the catalog."""
    with _services() as (_, catalog):
        result = catalog.create_book(book_id, title)
    _report(result, f"Added book {book_id}")


@app.command("rename-book")
def rename_book(book_id: str, title: str) -> None:
    """Change a book's title."""
    with _services() as (_, catalog):
        result = catalog.update_book(book_id, title)
    _report(result, f"Renamed book {book_id}")


@app.command("delete-book")
def delete_book(book_id: str) -> None:
    """Remove a book from the catalog."""
    with _services() as (_, catalog):
        result = catalog.delete_book(book_id)
    _report(result, f"Deleted book {book_id}")


@app.command("add-member")
def add_member(member_id: str, name: str) -> None:
    """Register a member."""
    with _services() as (_, catalog):
        result = catalog.create_member(member_id, name)
    _report(result, f"Added member {member_id}")


@app.command("rename-member")
def rename_member(member_id: str, name: str) -> None:
    """Change a member's name."""
    with _services() as (_, catalog):
        result = catalog.update_member(member_id, name)
    _report(result, f"Renamed member {member_id}")


@app.command("delete-member")
def delete_member(member_id: str) -> None:
    """Remove a member. Their loans and reservations are left in place."""
    with _services() as (_, catalog):
        result = catalog.delete_member(member_id)
    _report(result, f"Deleted member {member_id}")


@app.command()
def borrow(book_id: str, member_id: str) -> None:
    """Lend a book to a member."""
    with _services() as (engine, _):
        result = engine.borrow(book_id, member_id)
    _report(result, f"{book_id} loaned to {member_id}")


@app.command("return")
def return_(book_id: str, member_id: str) -> None:
    """Return a book; hands it to the next eligible reservation."""
    with _services() as (engine, _):
        result = engine.return_book(book_id, member_id)
    if not result.ok:
        typer.echo("[ERROR] Return rejected")
        raise typer.Exit(code=1)
    if result.next_member_id:
        typer.echo(f"[OK] {book_id} returned and handed off to {result.next_member_id}")
    else:
        typer.echo(f"[OK] {book_id} returned and is now available")


@app.command()
def reserve(book_id: str, member_id: str) -> None:
    """Reserve a book (an available book is loaned immediately)."""
    with _services() as (engine, _):
        result = engine.reserve(book_id, member_id)
    _report(result, f"{member_id} reserved {book_id}")


@app.command()
def cancel(book_id: str, member_id: str) -> None:
    """Cancel a member's reservation."""
    with _services() as (engine, _):
        result = engine.cancel_reservation(book_id, member_id)
    _report(result, f"Cancelled reservation of {member_id} on {book_id}")


@app.command()
def extend(
    book_id: str,
    days: int = typer.Argument(..., help="Days to add (negative to shorten)"),
) -> None:
    """Move the due date of a loan."""
    with _services() as (engine, _):
        result = engine.extend_loan(book_id, days)
    _report(result, f"Loan on {book_id} extended by {days} day(s)")


@app.command()
def books(
    title: Optional[str] = typer.Option(None, "--title", help="Title contains (case-insensitive)"),
    available: Optional[bool] = typer.Option(
        None, "--available/--loaned", help="Only available or only loaned books"
    ),
    holder: Optional[str] = typer.Option(None, "--holder", help="Only books loaned to this member"),
) -> None:
    """List books matching the filters."""
    with _services() as (engine, _):
        found = engine.search_books(title, available, holder)
        lines = [_describe(book) for book in found]

    typer.echo(f"Books ({len(lines)}):")
    for line in lines:
        typer.echo(line)


@app.command()
def overdue(
    today: Optional[datetime] = typer.Option(
        None, "--today", formats=["%Y-%m-%d"], help="Reference date (default: today)"
    ),
) -> None:
    """List loans past their due date."""
    with _services() as (engine, _):
        found = engine.overdue_books(today.date() if today else None)
        lines = [_describe(book) for book in found]

    typer.echo(f"Overdue books ({len(lines)}):")
    for line in lines:
        typer.echo(line)


@app.command()
def member(member_id: str) -> None:
    """Show a member's loans and reservation positions."""
    with _services() as (engine, _):
        summary = engine.member_summary(member_id)
        loans = [_describe(book) for book in summary.loans]

    if not summary.ok:
        typer.echo(f"[ERROR] {summary.reason.value}")
        raise typer.Exit(code=1)

    typer.echo(f"Member {member_id}")
    typer.echo(f"  Loans ({len(loans)}):")
    for line in loans:
        typer.echo(f"  {line}")
    typer.echo(f"  Reservations ({len(summary.reservations)}):")
    for position in summary.reservations:
        typer.echo(f"    {position.book_id}: #{position.position + 1} in queue")


@app.command()
def stats() -> None:
    """Show library statistics."""
    with _services() as (engine, catalog):
        all_books = catalog.all_books()
        book_count = len(all_books)
        loaned = len([b for b in all_books if b.loaned_to is not None])
        queued = sum(len(b.reservation_queue) for b in all_books)
        member_count = len(catalog.all_members())
        overdue_count = len(engine.overdue_books())
        policy = engine.policy

    typer.echo("Library Statistics:")
    typer.echo(f"  Books: {book_count} ({loaned} on loan)")
    typer.echo(f"  Members: {member_count}")
    typer.echo(f"  Reservations waiting: {queued}")
    typer.echo(f"  Overdue loans: {overdue_count}")
    typer.echo(f"  Policy: {policy.max_loans} books per member, {policy.loan_days}-day loans")


if __name__ == "__main__":
    app()
