"""Exceptions raised by the lending core.

Everything derives from ``LibraryError`` so the CLI can catch one type.
Storage failures are chained to the underlying ``OSError``.
"""

from __future__ import annotations

from typing import Optional


class LibraryError(Exception):
    """Base class for every error the library core raises."""


class NotFoundError(LibraryError):
    """A key lookup missed, or a table file does not exist."""


class MalformedRecordError(LibraryError):
    """A line could not be decoded (or a value could not be encoded)."""

    def __init__(self, message: str, line: Optional[str] = None) -> None:
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)
        self.line = line


class IOFailureError(LibraryError):
    """The underlying file operation failed."""


class IneligibleBorrowerError(LibraryError):
    """User is missing, inactive, or at the loan cap."""


class BookUnavailableError(LibraryError):
    """Book is missing or has no copies left."""


class InvalidTransactionStateError(LibraryError):
    """Return/renew attempted on a transaction in the wrong status."""


class AvailabilityInvariantError(LibraryError):
    """An availability delta would leave the count outside 0..total."""


class InactiveAccountError(LibraryError):
    """Credentials matched an account that has been deactivated."""
