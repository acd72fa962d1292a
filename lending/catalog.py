"""Book catalog: owns Book records and the available-copy count."""

from __future__ import annotations

import logging
from typing import List

from lending.codec import BOOK_CODEC
from lending.errors import AvailabilityInvariantError, NotFoundError
from lending.models import Book
from lending.table_store import TableStore

logger = logging.getLogger(__name__)


class BookCatalog:

    def __init__(self, store: TableStore[Book]) -> None:
        self.store = store

    @classmethod
    def at(cls, path) -> "BookCatalog":
        return cls(TableStore(path, BOOK_CODEC))

    # ------------------------- Core operations ------------------------- #
    def add(self, book: Book) -> None:
        """Append a new book. Prevent duplicates by ISBN."""
        _check_counts(book)
        with self.store.locked():
            if self.store.exists(book.isbn):
                raise ValueError(f"Book with ISBN {book.isbn} already exists.")
            self.store.append(book)
        logger.info(f"Added book {book.isbn} ({book.total_copies} copies)")

    def update(self, book: Book) -> bool:
        """Full replace by ISBN. Returns False if the ISBN is unknown."""
        _check_counts(book)
        return self.store.update_by_key(book)

    def remove(self, isbn: str) -> bool:
        removed = self.store.delete_by_key(isbn)
        if removed:
            logger.info(f"Removed book {isbn}")
        return removed > 0

    def find_by_isbn(self, isbn: str) -> Book:
        try:
            return self.store.find_by_key(isbn)
        except NotFoundError:
            raise NotFoundError(f"Book with ISBN {isbn} not found.") from None

    def list_all(self) -> List[Book]:
        return self.store.load_all()

    def search(self, query: str) -> List[Book]:
        """Case-sensitive substring match on title or author, or exact ISBN. File order."""
        return [
            book for book in self.store.load_all()
            if query in book.title or query in book.author or book.isbn == query
        ]

    def adjust_availability(self, isbn: str, delta: int) -> Book:
        """Apply ``delta`` to available_copies and persist.

        A result outside 0..total_copies raises AvailabilityInvariantError and
        nothing is written.
        """
        with self.store.locked():
            book = self.find_by_isbn(isbn)
            book.available_copies = book.with_delta(delta)
            self.store.update_by_key(book)
        logger.debug(f"Book {isbn} availability {delta:+d} -> {book.available_copies}")
        return book

    def restock(self, isbn: str, total_copies: int) -> Book:
        """Change total_copies, keeping the number of copies out on loan."""
        with self.store.locked():
            book = self.find_by_isbn(isbn)
            on_loan = book.total_copies - book.available_copies
            if total_copies < on_loan:
                raise AvailabilityInvariantError(
                    f"Book {isbn} has {on_loan} copies on loan; cannot set total to {total_copies}"
                )
            book.total_copies = total_copies
            book.available_copies = total_copies - on_loan
            self.store.update_by_key(book)
        logger.info(f"Restocked {isbn}: {book.available_copies}/{book.total_copies}")
        return book


def _check_counts(book: Book) -> None:
    if not 0 <= book.available_copies <= book.total_copies:
        raise AvailabilityInvariantError(
            f"Book {book.isbn}: available {book.available_copies} outside 0..{book.total_copies}"
        )
