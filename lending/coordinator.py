"""Lending coordinator: borrow and return as single logical operations.

The catalog and the ledger live in separate files, so the storage layer
cannot keep ``available_copies`` in step with the loan records by itself.
Every operation here that touches both tables holds the catalog lock and
then the ledger lock for its whole check-then-write sequence. The two file
writes are still separate: if the second one fails the first is not undone,
the partial state is logged and the error propagates.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from config import settings
from lending.catalog import BookCatalog
from lending.enums import TransactionStatus
from lending.errors import (
    BookUnavailableError,
    IneligibleBorrowerError,
    InvalidTransactionStateError,
    LibraryError,
    NotFoundError,
)
from lending.ledger import LoanLedger
from lending.models import Book, Transaction, User
from lending.users import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityMismatch:
    isbn: str
    stored: int
    expected: int


class LendingCoordinator:
    """Owns the cross-table rules between books, users and loans."""

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        *,
        today: Callable[[], date] = date.today,
        max_active_loans: Optional[int] = None,
        default_loan_days: Optional[int] = None,
        default_renewal_days: Optional[int] = None,
    ) -> None:
        self.data_dir = Path(data_dir or settings.data_dir)
        self.today = today
        self.max_active_loans = max_active_loans if max_active_loans is not None else settings.max_active_loans
        self.default_loan_days = default_loan_days if default_loan_days is not None else settings.default_loan_days
        self.default_renewal_days = (
            default_renewal_days if default_renewal_days is not None else settings.default_renewal_days
        )

        self.catalog = BookCatalog.at(self.data_dir / settings.books_file)
        self.users = UserDirectory.at(self.data_dir / settings.users_file)
        self.ledger = LoanLedger.at(self.data_dir / settings.transactions_file, today)
        self.initialize()

    def initialize(self) -> None:
        """Create any missing table file with just its header."""
        for store in (self.catalog.store, self.users.store, self.ledger.store):
            store.initialize()

    @contextmanager
    def _lending_section(self) -> Iterator[None]:
        # lock order is catalog then ledger, everywhere
        with self.catalog.store.locked(), self.ledger.store.locked():
            yield

    # ------------------------- Lending ------------------------- #
    def borrow(self, user_id: str, isbn: str, loan_days: Optional[int] = None) -> Transaction:
        """Lend one copy of ``isbn`` to ``user_id`` and return the new loan."""
        loan_days = self.default_loan_days if loan_days is None else loan_days
        with self._lending_section():
            try:
                user = self.users.find_by_id(user_id)
            except NotFoundError:
                raise IneligibleBorrowerError(f"User {user_id} does not exist") from None
            if not user.active:
                raise IneligibleBorrowerError(f"User {user_id} is inactive")
            if not self.can_borrow(user):
                raise IneligibleBorrowerError(
                    f"User {user_id} already has {self.max_active_loans} active loans"
                )

            try:
                book = self.catalog.find_by_isbn(isbn)
            except NotFoundError:
                raise BookUnavailableError(f"Book with ISBN {isbn} does not exist") from None
            if not book.is_available:
                raise BookUnavailableError(f"No copies of {isbn} are available")

            transaction = self.ledger.create(user_id, isbn, loan_days)
            try:
                self.catalog.adjust_availability(isbn, -1)
            except LibraryError:
                logger.error(
                    f"Loan {transaction.transaction_id} recorded but availability of {isbn} "
                    f"was not decremented"
                )
                raise
        logger.info(f"User {user_id} borrowed {isbn} until {transaction.due_date}")
        return transaction

    def return_book(self, transaction_id: str) -> Transaction:
        """Complete an ACTIVE or RENEWED loan and put the copy back."""
        with self._lending_section():
            transaction = self.ledger.find_by_id(transaction_id)
            if not transaction.is_active:
                raise InvalidTransactionStateError(
                    f"Transaction {transaction_id} is {transaction.status.name}, not ACTIVE or RENEWED"
                )
            # refuses before any write if the count is already at total
            self.catalog.find_by_isbn(transaction.isbn).with_delta(+1)

            transaction = self.ledger.complete(transaction_id)
            try:
                self.catalog.adjust_availability(transaction.isbn, +1)
            except LibraryError:
                logger.error(
                    f"Loan {transaction_id} completed but availability of {transaction.isbn} "
                    f"was not incremented"
                )
                raise
        logger.info(f"Loan {transaction_id} returned ({transaction.isbn})")
        return transaction

    def renew(self, transaction_id: str, extension_days: Optional[int] = None) -> bool:
        extension_days = self.default_renewal_days if extension_days is None else extension_days
        with self._lending_section():
            return self.ledger.renew(transaction_id, extension_days)

    def can_borrow(self, user: User) -> bool:
        """ADMIN and LIBRARIAN always; others while under the active-loan cap."""
        if user.role.unlimited_loans:
            return True
        return self.ledger.count_active(user.user_id) < self.max_active_loans

    def override_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        """Force a status (e.g. LOST) and keep the book count in step.

        Completing a loan goes through ``return_book``; a completed loan is final.
        """
        if status is TransactionStatus.COMPLETED:
            raise InvalidTransactionStateError("Use return_book to complete a loan")
        with self._lending_section():
            transaction = self.ledger.find_by_id(transaction_id)
            if transaction.status is TransactionStatus.COMPLETED:
                raise InvalidTransactionStateError(f"Transaction {transaction_id} is already completed")
            delta = int(transaction.is_active) - int(status.counts_as_active)
            if delta:
                self.catalog.find_by_isbn(transaction.isbn).with_delta(delta)
            transaction = self.ledger.set_status(transaction_id, status)
            if delta:
                self.catalog.adjust_availability(transaction.isbn, delta)
        return transaction

    # ------------------------- Queries ------------------------- #
    def user_transactions(self, user_id: str) -> List[Transaction]:
        return self.ledger.list_by_user(user_id)

    def overdue_loans(self, as_of: Optional[date] = None) -> List[Transaction]:
        return self.ledger.list_overdue(as_of or self.today())

    def notify_overdue(self, as_of: Optional[date] = None) -> int:
        """Log one line per overdue loan. Returns how many there were."""
        as_of = as_of or self.today()
        overdue = self.overdue_loans(as_of)
        for t in overdue:
            logger.warning(
                f"Overdue: loan {t.transaction_id}, user {t.user_id}, book {t.isbn}, "
                f"{t.days_overdue(as_of)} days late"
            )
        logger.info(f"Sending notifications for {len(overdue)} overdue books")
        return len(overdue)

    def audit_availability(self) -> List[AvailabilityMismatch]:
        """Books whose stored count differs from total minus active loans."""
        with self._lending_section():
            active = self.ledger.active_by_isbn()
            mismatches = [
                AvailabilityMismatch(b.isbn, b.available_copies, b.total_copies - active.get(b.isbn, 0))
                for b in self.catalog.list_all()
                if b.available_copies != b.total_copies - active.get(b.isbn, 0)
            ]
        for m in mismatches:
            logger.warning(f"Availability mismatch for {m.isbn}: stored {m.stored}, expected {m.expected}")
        return mismatches

    # ------------------------- Catalog management ------------------------- #
    def add_book(self, book: Book) -> None:
        self.catalog.add(book)

    def remove_book(self, isbn: str) -> bool:
        """Delete a book. Refused while any copy is on loan."""
        with self._lending_section():
            on_loan = self.ledger.active_by_isbn().get(isbn, 0)
            if on_loan:
                raise ValueError(f"Book with ISBN {isbn} has {on_loan} copies on loan.")
            return self.catalog.remove(isbn)

    def find_book(self, isbn: str) -> Optional[Book]:
        try:
            return self.catalog.find_by_isbn(isbn)
        except NotFoundError:
            return None

    def list_books(self) -> List[Book]:
        return self.catalog.list_all()

    def search_books(self, query: str) -> List[Book]:
        return self.catalog.search(query)

    # ------------------------- Users ------------------------- #
    def add_user(self, user: User) -> None:
        self.users.add(user)

    def deactivate_user(self, user_id: str) -> bool:
        return self.users.deactivate(user_id)
