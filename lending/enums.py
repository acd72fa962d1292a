"""Closed enumerations used by the records.

Each member keeps two spellings apart: ``name`` is the canonical token
written to disk, ``display_name`` is the human label. ``from_name`` only
accepts the canonical token; ``parse`` is the lenient reader for user input.
"""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

E = TypeVar("E", bound="LabelledEnum")


class LabelledEnum(Enum):

    @property
    def display_name(self) -> str:
        return self.name[0] + self.name[1:].lower().replace("_", " ")

    @classmethod
    def from_name(cls: Type[E], token: str) -> E:
        """Strict lookup of the stored token. Raises KeyError on a miss."""
        return cls[token]

    @classmethod
    def parse(cls: Type[E], text: str) -> E:
        """Accept 'science fiction', 'Science Fiction' or 'SCIENCE_FICTION'."""
        normalized = text.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Invalid {cls.__name__}: {text}") from None

    def __str__(self) -> str:
        return self.display_name


class Genre(LabelledEnum):
    FICTION = "fiction"
    NON_FICTION = "non_fiction"
    SCIENCE = "science"
    HISTORY = "history"
    BIOGRAPHY = "biography"
    MYSTERY = "mystery"
    ROMANCE = "romance"
    FANTASY = "fantasy"
    SCIENCE_FICTION = "science_fiction"
    HORROR = "horror"
    THRILLER = "thriller"
    POETRY = "poetry"
    DRAMA = "drama"
    CHILDREN = "children"
    YOUNG_ADULT = "young_adult"
    SELF_HELP = "self_help"
    TRAVEL = "travel"
    COOKBOOK = "cookbook"
    ART = "art"
    PHILOSOPHY = "philosophy"


class TransactionStatus(LabelledEnum):
    ACTIVE = "The book is currently checked out"
    COMPLETED = "The book has been returned"
    OVERDUE = "The book is past its due date"
    RENEWED = "The loan period has been extended"
    LOST = "The book has been reported as lost"
    RESERVED = "The book is reserved for pickup"

    @property
    def description(self) -> str:
        return self.value

    @property
    def counts_as_active(self) -> bool:
        """ACTIVE and RENEWED loans hold a copy and count toward the cap."""
        return self in (TransactionStatus.ACTIVE, TransactionStatus.RENEWED)


class UserRole(LabelledEnum):
    # declaration order is privilege order, highest first
    ADMIN = "Administrator"
    LIBRARIAN = "Librarian"
    MEMBER = "Member"
    GUEST = "Guest"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return list(UserRole).index(self)

    def has_privilege_over(self, other: "UserRole") -> bool:
        """True if this role is at least as privileged as ``other``."""
        return self.rank <= other.rank

    @property
    def unlimited_loans(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.LIBRARIAN)
