import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"
OUTPUT_MODES = {"plain", "json", "rich"}

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, "plain").lower()
    return mode if mode in OUTPUT_MODES else "plain"


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def _rich_table(title: str, columns: List[str], rows: List[List[Any]]) -> None:
    table = Table(title=title, show_lines=False, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(value) for value in row))
    _console.print(table)


def print_book_list(books: List[Any]) -> None:
    """Print books in the current output mode.
    - plain: 'ISBN - Title by Author (available/total)' lines, or 'No books in library.'
    - json: array of book objects
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        _print_json([
            {
                "isbn": b.isbn,
                "title": b.title,
                "author": b.author,
                "genre": b.genre.name,
                "total_copies": b.total_copies,
                "available_copies": b.available_copies,
            }
            for b in books
        ])
    elif mode == "rich":
        _rich_table(
            "📚 Books",
            ["ISBN", "Title", "Author", "Genre", "Available", "Total"],
            [[b.isbn, b.title, b.author, b.genre.display_name, b.available_copies, b.total_copies] for b in books],
        )
    else:
        for b in books:
            print(f"{b.isbn} - {b.title} by {b.author} ({b.available_copies}/{b.total_copies})")


def print_transactions(transactions: List[Any], empty_message: str = "No loans found.") -> None:
    mode = get_output_mode()

    if not transactions:
        print(empty_message)
        return

    if mode == "json":
        _print_json([
            {
                "transaction_id": t.transaction_id,
                "user_id": t.user_id,
                "isbn": t.isbn,
                "borrow_date": t.borrow_date.isoformat(),
                "due_date": t.due_date.isoformat(),
                "return_date": t.return_date.isoformat() if t.return_date else None,
                "status": t.status.name,
            }
            for t in transactions
        ])
    elif mode == "rich":
        _rich_table(
            "🔖 Loans",
            ["Transaction", "User", "ISBN", "Borrowed", "Due", "Returned", "Status"],
            [
                [t.transaction_id, t.user_id, t.isbn, t.borrow_date, t.due_date, t.return_date or "",
                 t.status.display_name]
                for t in transactions
            ],
        )
    else:
        for t in transactions:
            print(f"{t.transaction_id} - {t.isbn} for {t.user_id}, due {t.due_date} [{t.status.name}]")


def print_inventory_report(report: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json(report)
        return
    if mode == "rich":
        _rich_table(
            "📦 Inventory",
            ["ISBN", "Title", "Author", "Available", "Total"],
            [[r["isbn"], r["title"], r["author"], r["available"], r["total"]] for r in report["books"]],
        )
        content = (
            f"[bold]Total Books:[/] {report['total_books']}\n"
            f"[bold]Copies Available:[/] {report['available_copies']}/{report['total_copies']}"
        )
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
        return

    print("=== Library Inventory Report ===")
    print(f"{'ISBN':<15} {'Title':<40} {'Author':<20} {'Available':<10} {'Total':<10}")
    print("-" * 80)
    for r in report["books"]:
        print(
            f"{r['isbn']:<15} {_truncate(r['title'], 37):<40} {_truncate(r['author'], 17):<20} "
            f"{r['available']:<10} {r['total']:<10}"
        )
    print("-" * 80)
    print(f"Total Books: {report['total_books']}")


def print_overdue_report(report: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json(report)
        return
    if mode == "rich":
        _rich_table(
            f"⏰ Overdue as of {report['as_of']}",
            ["ISBN", "User ID", "Due Date", "Days Overdue"],
            [[r["isbn"], r["user_id"], r["due_date"], r["days_overdue"]] for r in report["loans"]],
        )
        return

    print("=== Overdue Books Report ===")
    print(f"{'ISBN':<15} {'User ID':<38} {'Due Date':<12} {'Days Overdue':<12}")
    print("-" * 80)
    for r in report["loans"]:
        print(f"{r['isbn']:<15} {r['user_id']:<38} {r['due_date']:<12} {r['days_overdue']:<12}")
    print("-" * 80)
    print(f"Total Overdue: {report['total_overdue']}")


def print_user_report(report: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json(report)
        return
    if mode == "rich":
        content = (
            f"[bold]{report['name']}[/] <{report['email']}>\n"
            f"[bold]Role:[/] {report['role']}   [bold]Active:[/] {report['active']}\n"
            f"[bold]Active Loans:[/] {report['active_loans']}   [bold]Overdue:[/] {report['overdue_loans']}"
        )
        _console.print(Panel.fit(content, title="👤 User Activity", border_style="blue"))
        if report["loans"]:
            _rich_table(
                "🔖 Loans",
                ["ISBN", "Borrowed", "Due", "Returned", "Status", "Overdue"],
                [
                    [r["isbn"], r["borrow_date"], r["due_date"], r["return_date"], r["status"],
                     "yes" if r["overdue"] else ""]
                    for r in report["loans"]
                ],
            )
        return

    print("=== User Activity Report ===")
    print(f"User: {report['name']} ({report['email']})")
    print(f"Role: {report['role']}")
    print(f"Active Loans: {report['active_loans']}")
    print(f"Overdue Loans: {report['overdue_loans']}")
    for r in report["loans"]:
        flag = " OVERDUE" if r["overdue"] else ""
        print(f"  {r['isbn']} borrowed {r['borrow_date']}, due {r['due_date']} [{r['status']}]{flag}")


def print_popular_report(report: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json(report)
        return
    if mode == "rich":
        _rich_table(
            f"🏆 Top {report['top_n']} Books",
            ["ISBN", "Title", "Author", "Borrows"],
            [[r["isbn"], r["title"], r["author"], r["borrows"]] for r in report["books"]],
        )
        return

    print("=== Most Popular Books Report ===")
    print(f"{'ISBN':<15} {'Title':<40} {'Borrows':<10}")
    print("-" * 58)
    for r in report["books"]:
        print(f"{r['isbn']:<15} {_truncate(r['title'], 37):<40} {r['borrows']:<10}")
    print("-" * 58)


def _truncate(text: str, length: int) -> str:
    return text if len(text) <= length else text[: length - 3] + "..."
