import logging
import os
from datetime import date
from functools import wraps
from typing import Optional

import typer

from config import settings
from lending import reports
from lending.auth import AuthService
from lending.coordinator import LendingCoordinator
from lending.enums import Genre, TransactionStatus, UserRole
from lending.errors import LibraryError
from lending.models import Book, User
from lending.ui_helpers import (
    print_book_list,
    print_inventory_report,
    print_overdue_report,
    print_popular_report,
    print_transactions,
    print_user_report,
    set_output_mode,
)
from lending.validators import ISBNValidator, TextValidator


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        filename=settings.log_file,
    )


class CoordinatorManager:
    """One coordinator per data directory for the lifetime of the process."""

    _instance: Optional[LendingCoordinator] = None
    _data_dir: Optional[str] = None

    @classmethod
    def configure(cls, data_dir: Optional[str]) -> None:
        cls._data_dir = data_dir

    @classmethod
    def get_instance(cls) -> LendingCoordinator:
        data_dir = cls._data_dir or os.environ.get("LIBRARY_DATA_DIR") or settings.data_dir
        if cls._instance is None or str(cls._instance.data_dir) != str(data_dir):
            cls._instance = LendingCoordinator(data_dir)
        return cls._instance


def handle_errors(func):
    """Print domain errors as one line and exit with status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (LibraryError, ValueError) as e:
            print(f"Error: {e}")
            raise typer.Exit(code=1)
    return wrapper


def _parse_day(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value}")


# --- Typer CLI Application ---
app = typer.Typer(help=settings.app_name)
report_app = typer.Typer(help="Printed reports")
app.add_typer(report_app, name="report")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_dir: Optional[str] = typer.Option(
        None,
        "--data-dir",
        help="Directory holding books.csv, users.csv and transactions.csv",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
):
    """Global options for the CLI (output mode, data directory, logging)."""
    configure_logging(log_level)
    set_output_mode(output or settings.output_mode)
    CoordinatorManager.configure(data_dir)


@app.command("init")
@handle_errors
def cli_init():
    """Create empty tables in the data directory."""
    coordinator = CoordinatorManager.get_instance()
    print(f"Tables ready in {coordinator.data_dir}")


# ------------------------- Books ------------------------- #
@app.command("list")
@handle_errors
def cli_list():
    """List every book with its copy counts."""
    print_book_list(CoordinatorManager.get_instance().list_books())


@app.command("add")
@handle_errors
def cli_add(
    isbn: str,
    title: str,
    author: str,
    genre: str = typer.Option("fiction", "--genre", "-g", help="Genre name, e.g. 'science fiction'"),
    copies: int = typer.Option(1, "--copies", "-c", min=0, help="Total number of copies"),
    strict_isbn: bool = typer.Option(True, "--strict-isbn/--no-strict-isbn", help="Verify the ISBN checksum"),
):
    """Add a book to the catalog."""
    normalized = ISBNValidator.normalize_isbn(isbn)
    if strict_isbn and not ISBNValidator.is_valid_isbn(normalized):
        raise ValueError(f"Invalid ISBN: {isbn}")
    for label, value in (("title", title), ("author", author)):
        if not TextValidator.validate_field(value):
            raise ValueError(f"Invalid {label}: must be non-empty and contain no commas")
    book = Book.new(normalized or isbn, title, author, Genre.parse(genre), copies)
    CoordinatorManager.get_instance().add_book(book)
    print(f"Successfully added: {book.title} by {book.author}")


@app.command("remove")
@handle_errors
def cli_remove(isbn: str):
    """Remove a book by ISBN."""
    if CoordinatorManager.get_instance().remove_book(isbn):
        print(f"Book with ISBN {isbn} has been removed.")
    else:
        print(f"Book with ISBN {isbn} not found.")


@app.command("find")
@handle_errors
def cli_find(isbn: str):
    """Find a book by ISBN and show its details."""
    book = CoordinatorManager.get_instance().find_book(isbn)
    if book:
        print("Book Found")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"ISBN: {book.isbn}")
        print(f"Genre: {book.genre.display_name}")
        print(f"Available: {book.available_copies}/{book.total_copies}")
    else:
        print(f"Book with ISBN {isbn} not found.")


@app.command("search")
@handle_errors
def cli_search(query: str):
    """Search by title or author substring (case-sensitive) or exact ISBN."""
    books = CoordinatorManager.get_instance().search_books(query)
    if not books:
        print(f"No books matching '{query}'.")
        return
    print_book_list(books)


@app.command("restock")
@handle_errors
def cli_restock(isbn: str, total: int = typer.Argument(..., min=0)):
    """Change the total number of copies of a book."""
    book = CoordinatorManager.get_instance().catalog.restock(isbn, total)
    print(f"{book.isbn}: {book.available_copies}/{book.total_copies} available")


# ------------------------- Users ------------------------- #
@app.command("add-user")
@handle_errors
def cli_add_user(
    name: str,
    email: str,
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    role: str = typer.Option("member", "--role", "-r", help="admin | librarian | member | guest"),
):
    """Register a user."""
    if not TextValidator.validate_field(name):
        raise ValueError("Invalid name: must be non-empty and contain no commas")
    if not TextValidator.validate_email(email):
        raise ValueError(f"Invalid email: {email}")
    user = User.create(name, email, password, UserRole.parse(role))
    CoordinatorManager.get_instance().add_user(user)
    print(f"Created user {user.user_id} ({user.role.display_name})")


@app.command("users")
@handle_errors
def cli_users():
    """List users."""
    users = CoordinatorManager.get_instance().users.list_all()
    if not users:
        print("No users.")
        return
    for u in users:
        state = "active" if u.active else "inactive"
        print(f"{u.user_id} - {u.name} <{u.email}> {u.role.name} ({state})")


@app.command("deactivate-user")
@handle_errors
def cli_deactivate_user(user_id: str):
    """Deactivate a user; they can no longer borrow or log in."""
    if CoordinatorManager.get_instance().deactivate_user(user_id):
        print(f"User {user_id} has been deactivated.")
    else:
        print(f"User {user_id} not found.")


@app.command("login")
@handle_errors
def cli_login(email: str, password: str = typer.Option(..., prompt=True, hide_input=True)):
    """Check a user's credentials."""
    auth = AuthService(CoordinatorManager.get_instance().users)
    user = auth.authenticate(email, password)
    if user is None:
        print("Invalid email or password.")
        raise typer.Exit(code=1)
    print(f"Welcome, {user.name} ({user.role.display_name})")


# ------------------------- Lending ------------------------- #
@app.command("borrow")
@handle_errors
def cli_borrow(
    user_id: str,
    isbn: str,
    days: Optional[int] = typer.Option(None, "--days", "-d", min=0, help="Loan period in days"),
):
    """Lend a copy of a book to a user."""
    transaction = CoordinatorManager.get_instance().borrow(user_id, isbn, days)
    print(f"Loan {transaction.transaction_id} created, due {transaction.due_date}")


@app.command("return")
@handle_errors
def cli_return(transaction_id: str):
    """Return a borrowed book."""
    transaction = CoordinatorManager.get_instance().return_book(transaction_id)
    print(f"Loan {transaction.transaction_id} returned on {transaction.return_date}")


@app.command("renew")
@handle_errors
def cli_renew(
    transaction_id: str,
    days: Optional[int] = typer.Option(None, "--days", "-d", min=0, help="Extension in days"),
):
    """Extend the due date of an active loan."""
    coordinator = CoordinatorManager.get_instance()
    if coordinator.renew(transaction_id, days):
        transaction = coordinator.ledger.find_by_id(transaction_id)
        print(f"Loan {transaction_id} renewed until {transaction.due_date}")
    else:
        print(f"Loan {transaction_id} cannot be renewed.")
        raise typer.Exit(code=1)


@app.command("set-status")
@handle_errors
def cli_set_status(transaction_id: str, status: str):
    """Administrative status override (e.g. LOST, RESERVED)."""
    transaction = CoordinatorManager.get_instance().override_status(
        transaction_id, TransactionStatus.parse(status)
    )
    print(f"Loan {transaction.transaction_id} is now {transaction.status.name}")


@app.command("loans")
@handle_errors
def cli_loans(user_id: str):
    """List a user's loans."""
    print_transactions(CoordinatorManager.get_instance().user_transactions(user_id))


@app.command("overdue")
@handle_errors
def cli_overdue(as_of: Optional[str] = typer.Option(None, "--as-of", help="Date to check against (YYYY-MM-DD)")):
    """List overdue loans."""
    loans = CoordinatorManager.get_instance().overdue_loans(_parse_day(as_of))
    print_transactions(loans, empty_message="No overdue loans.")


@app.command("notify-overdue")
@handle_errors
def cli_notify_overdue():
    """Send (log) a notice for every overdue loan."""
    count = CoordinatorManager.get_instance().notify_overdue()
    print(f"Sending notifications for {count} overdue books")


@app.command("audit")
@handle_errors
def cli_audit():
    """Compare each book's available count with its active loans."""
    mismatches = CoordinatorManager.get_instance().audit_availability()
    if not mismatches:
        print("All availability counts match active loans.")
        return
    for m in mismatches:
        print(f"{m.isbn}: stored {m.stored}, expected {m.expected}")
    raise typer.Exit(code=1)


# ------------------------- Reports ------------------------- #
@report_app.command("inventory")
@handle_errors
def cli_report_inventory():
    """Inventory of all books."""
    print_inventory_report(reports.inventory_report(CoordinatorManager.get_instance().catalog))


@report_app.command("overdue")
@handle_errors
def cli_report_overdue(as_of: Optional[str] = typer.Option(None, "--as-of")):
    """Overdue loans with days overdue."""
    coordinator = CoordinatorManager.get_instance()
    day = _parse_day(as_of) or coordinator.today()
    print_overdue_report(reports.overdue_report(coordinator.ledger, day))


@report_app.command("popular")
@handle_errors
def cli_report_popular(top: int = typer.Option(10, "--top", "-n", min=1, help="How many books to list")):
    """Most borrowed books."""
    coordinator = CoordinatorManager.get_instance()
    print_popular_report(reports.popular_books_report(coordinator.catalog, coordinator.ledger, top))


@report_app.command("user")
@handle_errors
def cli_report_user(user_id: str):
    """Activity report for one user."""
    coordinator = CoordinatorManager.get_instance()
    print_user_report(reports.user_report(coordinator.users, coordinator.ledger, user_id, coordinator.today()))


if __name__ == "__main__":
    app()
