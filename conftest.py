from datetime import date, timedelta

import pytest

from lending.coordinator import LendingCoordinator
from lending.enums import Genre, UserRole
from lending.models import Book, User

START_DAY = date(2024, 3, 1)


class FakeClock:
    """Settable stand-in for date.today()."""

    def __init__(self, day: date = START_DAY) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day

    def advance(self, days: int) -> None:
        self.day = self.day + timedelta(days=days)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    # Each test gets its own tables
    return tmp_path / "data"


@pytest.fixture
def coordinator(data_dir, clock):
    return LendingCoordinator(data_dir, today=clock, max_active_loans=5, default_loan_days=14,
                              default_renewal_days=7)


@pytest.fixture
def make_book(coordinator):
    def _make(isbn="9780306406157", title="Dune", author="Frank Herbert", genre=Genre.SCIENCE_FICTION, copies=1):
        book = Book.new(isbn, title, author, genre, copies)
        coordinator.add_book(book)
        return book
    return _make


@pytest.fixture
def make_user(coordinator):
    def _make(name="Ada", email=None, role=UserRole.MEMBER, password="secret"):
        user = User.create(name, email or f"{name.lower()}@example.com", password, role)
        coordinator.add_user(user)
        return user
    return _make


@pytest.fixture
def start_day():
    return START_DAY
