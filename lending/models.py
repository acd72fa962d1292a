"""Record types for books, users and loan transactions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from lending.enums import Genre, TransactionStatus, UserRole
from lending.errors import AvailabilityInvariantError, InvalidTransactionStateError
from lending.passwords import hash_password, verify_password


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Book:
    """A catalogued title and its copy counts."""

    isbn: str
    title: str
    author: str
    genre: Genre
    total_copies: int
    available_copies: int

    @classmethod
    def new(cls, isbn: str, title: str, author: str, genre: Genre, total_copies: int) -> "Book":
        """Build a book with every copy on the shelf."""
        if total_copies < 0:
            raise ValueError("total_copies must be >= 0")
        return cls(isbn.strip(), title.strip(), author.strip(), genre, total_copies, total_copies)

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0

    def with_delta(self, delta: int) -> int:
        """Return available_copies + delta, refusing values outside 0..total."""
        updated = self.available_copies + delta
        if updated < 0 or updated > self.total_copies:
            raise AvailabilityInvariantError(
                f"Book {self.isbn}: available {self.available_copies} {delta:+d} "
                f"leaves {updated} outside 0..{self.total_copies}"
            )
        return updated

    def __str__(self) -> str:
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"


@dataclass
class User:
    user_id: str
    name: str
    email: str
    password_hash: str
    role: UserRole
    active: bool = True

    @classmethod
    def create(cls, name: str, email: str, password: str, role: UserRole = UserRole.MEMBER) -> "User":
        return cls(new_id(), name.strip(), email.strip(), hash_password(password), role, True)

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)


@dataclass
class Transaction:
    """One loan of one copy.

    Lifecycle: created ACTIVE; ``renew`` moves ACTIVE/RENEWED to RENEWED and
    pushes the due date; ``complete`` stamps the return date and is terminal.
    OVERDUE, LOST and RESERVED are only ever set by direct assignment.
    """

    transaction_id: str
    user_id: str
    isbn: str
    borrow_date: date
    due_date: date
    return_date: Optional[date] = None
    status: TransactionStatus = TransactionStatus.ACTIVE

    @classmethod
    def open(cls, user_id: str, isbn: str, loan_period_days: int, today: date,
             transaction_id: Optional[str] = None) -> "Transaction":
        if loan_period_days < 0:
            raise ValueError("loan_period_days must be >= 0")
        return cls(
            transaction_id=transaction_id or new_id(),
            user_id=user_id,
            isbn=isbn,
            borrow_date=today,
            due_date=today + timedelta(days=loan_period_days),
        )

    @property
    def is_active(self) -> bool:
        return self.status.counts_as_active

    def complete(self, today: date) -> None:
        if self.status is TransactionStatus.COMPLETED:
            raise InvalidTransactionStateError(f"Transaction {self.transaction_id} is already completed")
        self.return_date = today
        self.status = TransactionStatus.COMPLETED

    def renew(self, extension_days: int) -> bool:
        """Extend the due date. Returns False if the status does not allow it."""
        if extension_days < 0:
            raise ValueError("extension_days must be >= 0")
        if not self.status.counts_as_active:
            return False
        self.due_date = self.due_date + timedelta(days=extension_days)
        self.status = TransactionStatus.RENEWED
        return True

    def is_overdue(self, as_of: date) -> bool:
        return as_of > self.due_date and self.status is not TransactionStatus.COMPLETED

    def days_overdue(self, as_of: date) -> int:
        return (as_of - self.due_date).days if self.is_overdue(as_of) else 0
