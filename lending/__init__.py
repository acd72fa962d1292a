"""Library lending core.

Modules:
- codec: line encoding of Book, User and Transaction records
- table_store: one locked, file-backed table per entity type
- catalog: books and their available-copy counts
- ledger: loan transactions and their status changes
- coordinator: borrow / return across catalog and ledger
- users, auth, passwords: the user directory and its credentials
- reports, ui_helpers: read-only reports and CLI rendering
"""

__version__ = "1.0.0"
