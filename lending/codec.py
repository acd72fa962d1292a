"""Line codec for the comma-delimited tables.

Fields are joined with a bare comma: no quoting, no escaping. A value that
contains the delimiter or a line break cannot be stored, so ``encode``
refuses it rather than writing a row that would not read back.
"""

from __future__ import annotations

from datetime import date
from typing import Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from lending.enums import Genre, LabelledEnum, TransactionStatus, UserRole
from lending.errors import MalformedRecordError
from lending.models import Book, Transaction, User

DELIMITER = ","

T = TypeVar("T")
E = TypeVar("E", bound=LabelledEnum)


# ------------------------- Field helpers ------------------------- #
def _text(value: str) -> str:
    if DELIMITER in value or "\n" in value or "\r" in value:
        raise MalformedRecordError("Field may not contain a comma or line break", value)
    return value


def _bool_out(value: bool) -> str:
    return "true" if value else "false"


def _bool_in(token: str) -> bool:
    if token == "true":
        return True
    if token == "false":
        return False
    raise ValueError(f"not a boolean: {token}")


def _date_out(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else ""


def _optional_date_in(token: str) -> Optional[date]:
    return date.fromisoformat(token) if token else None


def _enum_in(enum_cls: Type[E], token: str) -> E:
    try:
        return enum_cls.from_name(token)
    except KeyError:
        raise ValueError(f"unknown {enum_cls.__name__} {token}") from None


class RecordCodec(Generic[T]):
    """Fixed column order, one record per line, keyed by its first column."""

    header: Tuple[str, ...] = ()

    def fields(self, item: T) -> List[str]:
        raise NotImplementedError

    def build(self, parts: Sequence[str]) -> T:
        raise NotImplementedError

    def key(self, item: T) -> str:
        raise NotImplementedError

    @property
    def header_line(self) -> str:
        return DELIMITER.join(self.header)

    def encode(self, item: T) -> str:
        return DELIMITER.join(_text(field) for field in self.fields(item))

    def decode(self, line: str) -> T:
        line = line.rstrip("\r\n")
        parts = line.split(DELIMITER)
        if len(parts) != len(self.header):
            raise MalformedRecordError(
                f"Expected {len(self.header)} fields, got {len(parts)}", line
            )
        try:
            return self.build(parts)
        except ValueError as exc:
            raise MalformedRecordError(str(exc), line) from exc


class BookCodec(RecordCodec[Book]):
    header = ("ISBN", "Title", "Author", "Genre", "IsAvailable", "TotalCopies", "AvailableCopies")

    def fields(self, item: Book) -> List[str]:
        return [
            item.isbn,
            item.title,
            item.author,
            item.genre.name,
            _bool_out(item.is_available),
            str(item.total_copies),
            str(item.available_copies),
        ]

    def build(self, parts: Sequence[str]) -> Book:
        # IsAvailable is derived from AvailableCopies; only its spelling is checked
        _bool_in(parts[4])
        return Book(
            isbn=parts[0],
            title=parts[1],
            author=parts[2],
            genre=_enum_in(Genre, parts[3]),
            total_copies=int(parts[5]),
            available_copies=int(parts[6]),
        )

    def key(self, item: Book) -> str:
        return item.isbn


class UserCodec(RecordCodec[User]):
    header = ("UserId", "Name", "Email", "PasswordHash", "Role", "IsActive")

    def fields(self, item: User) -> List[str]:
        return [
            item.user_id,
            item.name,
            item.email,
            item.password_hash,
            item.role.name,
            _bool_out(item.active),
        ]

    def build(self, parts: Sequence[str]) -> User:
        return User(
            user_id=parts[0],
            name=parts[1],
            email=parts[2],
            password_hash=parts[3],
            role=_enum_in(UserRole, parts[4]),
            active=_bool_in(parts[5]),
        )

    def key(self, item: User) -> str:
        return item.user_id


class TransactionCodec(RecordCodec[Transaction]):
    header = ("TransactionId", "UserId", "ISBN", "BorrowDate", "DueDate", "ReturnDate", "Status")

    def fields(self, item: Transaction) -> List[str]:
        return [
            item.transaction_id,
            item.user_id,
            item.isbn,
            _date_out(item.borrow_date),
            _date_out(item.due_date),
            _date_out(item.return_date),
            item.status.name,
        ]

    def build(self, parts: Sequence[str]) -> Transaction:
        return Transaction(
            transaction_id=parts[0],
            user_id=parts[1],
            isbn=parts[2],
            borrow_date=date.fromisoformat(parts[3]),
            due_date=date.fromisoformat(parts[4]),
            return_date=_optional_date_in(parts[5]),
            status=_enum_in(TransactionStatus, parts[6]),
        )

    def key(self, item: Transaction) -> str:
        return item.transaction_id


BOOK_CODEC = BookCodec()
USER_CODEC = UserCodec()
TRANSACTION_CODEC = TransactionCodec()

_BY_TYPE = {Book: BOOK_CODEC, User: USER_CODEC, Transaction: TRANSACTION_CODEC}


def codec_for(entity_type: type) -> RecordCodec:
    return _BY_TYPE[entity_type]


def encode(entity) -> str:
    """Encode any Book, User or Transaction to its table line."""
    return codec_for(type(entity)).encode(entity)


def decode(line: str, entity_type: type):
    return codec_for(entity_type).decode(line)
