from datetime import timedelta

import pytest
from rich.console import Console

from lending import reports, ui_helpers
from lending.errors import NotFoundError

ISBN = "9780306406157"


def test_inventory_report(coordinator, make_book, make_user):
    make_book(ISBN, copies=3)
    make_book("9780140449136", title="The Odyssey", author="Homer", copies=1)
    coordinator.borrow(make_user().user_id, ISBN)
    report = reports.inventory_report(coordinator.catalog)
    assert report["total_books"] == 2
    assert report["total_copies"] == 4
    assert report["available_copies"] == 3
    assert report["books"][0]["genre"] == "Science fiction"


def test_overdue_report(coordinator, make_book, make_user, start_day):
    make_book(ISBN, copies=2)
    u = make_user()
    t = coordinator.borrow(u.user_id, ISBN, 7)
    coordinator.borrow(u.user_id, ISBN, 30)
    report = reports.overdue_report(coordinator.ledger, start_day + timedelta(days=10))
    assert report["total_overdue"] == 1
    assert report["loans"][0]["transaction_id"] == t.transaction_id
    assert report["loans"][0]["days_overdue"] == 3


def test_user_report(coordinator, make_book, make_user, start_day):
    make_book(ISBN, copies=2)
    u = make_user()
    first = coordinator.borrow(u.user_id, ISBN, 7)
    coordinator.borrow(u.user_id, ISBN, 30)
    coordinator.return_book(first.transaction_id)
    report = reports.user_report(coordinator.users, coordinator.ledger, u.user_id, start_day)
    assert report["active_loans"] == 1
    assert report["overdue_loans"] == 0
    assert report["role"] == "Member"
    assert {row["status"] for row in report["loans"]} == {"Completed", "Active"}


def test_user_report_unknown_user(coordinator, start_day):
    with pytest.raises(NotFoundError):
        reports.user_report(coordinator.users, coordinator.ledger, "nope", start_day)


def test_popular_books_report(coordinator, make_book, make_user):
    make_book(ISBN, copies=2)
    make_book("9780140449136", title="The Odyssey", author="Homer", copies=1)
    make_book("0306406152", title="Gone", author="Nobody", copies=1)
    u = make_user()
    gone = coordinator.borrow(u.user_id, "0306406152")
    coordinator.return_book(gone.transaction_id)
    coordinator.remove_book("0306406152")

    coordinator.borrow(u.user_id, "9780140449136")
    first = coordinator.borrow(u.user_id, ISBN)
    coordinator.borrow(u.user_id, ISBN)
    coordinator.return_book(first.transaction_id)
    coordinator.borrow(u.user_id, ISBN)

    report = reports.popular_books_report(coordinator.catalog, coordinator.ledger, 10)
    assert [(r["isbn"], r["borrows"]) for r in report["books"]] == [(ISBN, 3), ("9780140449136", 1)]
    assert report["books"][0]["title"] == "Dune"

    top = reports.popular_books_report(coordinator.catalog, coordinator.ledger, 1)
    assert [r["isbn"] for r in top["books"]] == [ISBN]


def test_popular_books_report_rejects_non_positive_top(coordinator):
    with pytest.raises(ValueError):
        reports.popular_books_report(coordinator.catalog, coordinator.ledger, 0)


def test_rich_user_report_lists_loans(coordinator, make_book, make_user, start_day, monkeypatch, capsys):
    make_book(ISBN)
    u = make_user()
    coordinator.borrow(u.user_id, ISBN)
    monkeypatch.setenv("LIB_CLI_OUTPUT", "rich")
    monkeypatch.setattr(ui_helpers, "_console", Console(width=200))

    ui_helpers.print_user_report(reports.user_report(coordinator.users, coordinator.ledger, u.user_id, start_day))
    out = capsys.readouterr().out
    assert "User Activity" in out
    assert ISBN in out
    assert "Active" in out
