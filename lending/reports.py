"""Read-only report builders over the catalog, users and ledger.

Builders return plain dicts so the CLI can print them as text, JSON or a
rich table without touching storage again.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Any, Dict

from lending.catalog import BookCatalog
from lending.ledger import LoanLedger
from lending.users import UserDirectory


def inventory_report(catalog: BookCatalog) -> Dict[str, Any]:
    books = catalog.list_all()
    rows = [
        {
            "isbn": b.isbn,
            "title": b.title,
            "author": b.author,
            "genre": b.genre.display_name,
            "available": b.available_copies,
            "total": b.total_copies,
        }
        for b in books
    ]
    return {
        "books": rows,
        "total_books": len(books),
        "total_copies": sum(b.total_copies for b in books),
        "available_copies": sum(b.available_copies for b in books),
    }


def overdue_report(ledger: LoanLedger, as_of: date) -> Dict[str, Any]:
    overdue = ledger.list_overdue(as_of)
    rows = [
        {
            "transaction_id": t.transaction_id,
            "isbn": t.isbn,
            "user_id": t.user_id,
            "due_date": t.due_date.isoformat(),
            "days_overdue": t.days_overdue(as_of),
        }
        for t in overdue
    ]
    return {"as_of": as_of.isoformat(), "loans": rows, "total_overdue": len(rows)}


def user_report(users: UserDirectory, ledger: LoanLedger, user_id: str, as_of: date) -> Dict[str, Any]:
    """Activity of one user. Raises NotFoundError for an unknown id."""
    user = users.find_by_id(user_id)
    loans = ledger.list_by_user(user_id)
    rows = [
        {
            "transaction_id": t.transaction_id,
            "isbn": t.isbn,
            "borrow_date": t.borrow_date.isoformat(),
            "due_date": t.due_date.isoformat(),
            "return_date": t.return_date.isoformat() if t.return_date else "",
            "status": t.status.display_name,
            "overdue": t.is_overdue(as_of),
        }
        for t in loans
    ]
    return {
        "user_id": user.user_id,
        "name": user.name,
        "email": user.email,
        "role": user.role.display_name,
        "active": user.active,
        "loans": rows,
        "active_loans": sum(1 for t in loans if t.is_active),
        "overdue_loans": sum(1 for t in loans if t.is_overdue(as_of)),
    }


def popular_books_report(catalog: BookCatalog, ledger: LoanLedger, top_n: int = 10) -> Dict[str, Any]:
    """The ``top_n`` most borrowed books, counting every loan ever recorded.

    Ties keep the order in which the book was first borrowed. Loans of books
    no longer in the catalog are not listed.
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1")
    counts = Counter(t.isbn for t in ledger.list_all())
    books = {b.isbn: b for b in catalog.list_all()}
    ranked = sorted((isbn for isbn in counts if isbn in books), key=lambda isbn: -counts[isbn])
    rows = [
        {
            "isbn": isbn,
            "title": books[isbn].title,
            "author": books[isbn].author,
            "borrows": counts[isbn],
        }
        for isbn in ranked[:top_n]
    ]
    return {"top_n": top_n, "books": rows}
