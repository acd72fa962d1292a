from datetime import date

import pytest

from lending import codec
from lending.codec import BOOK_CODEC, TRANSACTION_CODEC, USER_CODEC
from lending.enums import Genre, TransactionStatus, UserRole
from lending.errors import MalformedRecordError
from lending.models import Book, Transaction, User


def test_book_line_uses_canonical_genre_name():
    book = Book.new("9780306406157", "Dune", "Frank Herbert", Genre.SCIENCE_FICTION, 3)
    line = codec.encode(book)
    assert line == "9780306406157,Dune,Frank Herbert,SCIENCE_FICTION,true,3,3"
    assert BOOK_CODEC.decode(line) == book


def test_book_is_available_is_derived_from_count():
    decoded = BOOK_CODEC.decode("111,Title,Author,POETRY,true,2,0")
    assert decoded.available_copies == 0
    assert decoded.is_available is False
    assert codec.encode(decoded).split(",")[4] == "false"


@pytest.mark.parametrize("status", list(TransactionStatus))
def test_transaction_round_trip_every_status(status):
    t = Transaction("t-1", "u-1", "111", date(2024, 1, 1), date(2024, 1, 15), None, status)
    assert TRANSACTION_CODEC.decode(codec.encode(t)) == t


def test_transaction_return_date_empty_field():
    t = Transaction("t-1", "u-1", "111", date(2024, 1, 1), date(2024, 1, 15))
    line = codec.encode(t)
    assert line == "t-1,u-1,111,2024-01-01,2024-01-15,,ACTIVE"
    t.complete(date(2024, 1, 10))
    line = codec.encode(t)
    assert line.endswith(",2024-01-10,COMPLETED")
    assert TRANSACTION_CODEC.decode(line).return_date == date(2024, 1, 10)


@pytest.mark.parametrize("role", list(UserRole))
def test_user_round_trip_every_role(role):
    user = User("u-1", "Ada", "ada@example.com", "c2FsdA==", role, False)
    line = codec.encode(user)
    assert line.split(",")[4] == role.name
    assert USER_CODEC.decode(line) == user


def test_every_genre_survives():
    for genre in Genre:
        book = Book.new("1", "T", "A", genre, 1)
        assert BOOK_CODEC.decode(BOOK_CODEC.encode(book)).genre is genre


@pytest.mark.parametrize("line", [
    "111,Title,Author,POETRY,true,2",             # too few fields
    "111,Title,Author,POETRY,true,2,1,extra",     # too many fields
    "111,Title,Author,Poetry,true,2,1",           # display label, not the stored name
    "111,Title,Author,POETRY,yes,2,1",            # bad boolean
    "111,Title,Author,POETRY,true,two,1",         # bad integer
])
def test_malformed_book_lines(line):
    with pytest.raises(MalformedRecordError):
        BOOK_CODEC.decode(line)


def test_malformed_transaction_lines():
    with pytest.raises(MalformedRecordError):
        TRANSACTION_CODEC.decode("t,u,i,2024-13-01,2024-01-15,,ACTIVE")
    with pytest.raises(MalformedRecordError):
        TRANSACTION_CODEC.decode("t,u,i,2024-01-01,2024-01-15,,Active")


def test_encode_refuses_delimiter_in_value():
    book = Book.new("1", "Hello, World", "A", Genre.ART, 1)
    with pytest.raises(MalformedRecordError):
        codec.encode(book)


def test_encode_refuses_newline_in_value():
    user = User("u", "Ada\nLovelace", "ada@example.com", "h", UserRole.GUEST)
    with pytest.raises(MalformedRecordError):
        codec.encode(user)


def test_header_lines():
    assert BOOK_CODEC.header_line == "ISBN,Title,Author,Genre,IsAvailable,TotalCopies,AvailableCopies"
    assert USER_CODEC.header_line == "UserId,Name,Email,PasswordHash,Role,IsActive"
    assert TRANSACTION_CODEC.header_line == "TransactionId,UserId,ISBN,BorrowDate,DueDate,ReturnDate,Status"
