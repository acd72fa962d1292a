"""Loan ledger: owns Transaction records and their status changes."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional

from lending.codec import TRANSACTION_CODEC
from lending.enums import TransactionStatus
from lending.errors import NotFoundError
from lending.models import Transaction, new_id
from lending.table_store import TableStore

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


class LoanLedger:
    """Create, complete and renew loans. Overdue is computed on every read."""

    def __init__(self, store: TableStore[Transaction], today: Clock = date.today) -> None:
        self.store = store
        self.today = today

    @classmethod
    def at(cls, path, today: Clock = date.today) -> "LoanLedger":
        return cls(TableStore(path, TRANSACTION_CODEC), today)

    # ------------------------- Core operations ------------------------- #
    def create(self, user_id: str, isbn: str, loan_period_days: int) -> Transaction:
        with self.store.locked():
            taken = {t.transaction_id for t in self.store.load_all()}
            # regenerate until the id is not already in use
            transaction_id = new_id()
            while transaction_id in taken:
                transaction_id = new_id()
            transaction = Transaction.open(user_id, isbn, loan_period_days, self.today(), transaction_id)
            self.store.append(transaction)
        logger.info(f"Opened loan {transaction.transaction_id}: user {user_id}, book {isbn}, due {transaction.due_date}")
        return transaction

    def find_by_id(self, transaction_id: str) -> Transaction:
        try:
            return self.store.find_by_key(transaction_id)
        except NotFoundError:
            raise NotFoundError(f"Transaction {transaction_id} not found.") from None

    def list_all(self) -> List[Transaction]:
        return self.store.load_all()

    def list_by_user(self, user_id: str) -> List[Transaction]:
        return [t for t in self.store.load_all() if t.user_id == user_id]

    def count_active(self, user_id: str) -> int:
        return sum(1 for t in self.list_by_user(user_id) if t.is_active)

    def active_by_isbn(self) -> dict:
        """ISBN -> number of ACTIVE/RENEWED loans."""
        counts: dict = {}
        for t in self.store.load_all():
            if t.is_active:
                counts[t.isbn] = counts.get(t.isbn, 0) + 1
        return counts

    def list_overdue(self, as_of: Optional[date] = None) -> List[Transaction]:
        as_of = as_of or self.today()
        return [t for t in self.store.load_all() if t.is_overdue(as_of)]

    def complete(self, transaction_id: str) -> Transaction:
        """Mark a loan returned today. Raises on a missing or completed loan."""
        with self.store.locked():
            transaction = self.find_by_id(transaction_id)
            transaction.complete(self.today())
            self.store.update_by_key(transaction)
        logger.info(f"Completed loan {transaction_id}")
        return transaction

    def renew(self, transaction_id: str, extension_days: int) -> bool:
        """Extend a loan. False if it is missing or not ACTIVE/RENEWED."""
        with self.store.locked():
            try:
                transaction = self.find_by_id(transaction_id)
            except NotFoundError:
                logger.warning(f"Renewal refused: transaction {transaction_id} not found")
                return False
            if not transaction.renew(extension_days):
                logger.warning(f"Renewal refused: transaction {transaction_id} is {transaction.status.name}")
                return False
            self.store.update_by_key(transaction)
        logger.info(f"Renewed loan {transaction_id} until {transaction.due_date}")
        return True

    def set_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        """Administrative override; bypasses the modelled transitions."""
        with self.store.locked():
            transaction = self.find_by_id(transaction_id)
            transaction.status = status
            self.store.update_by_key(transaction)
        logger.info(f"Loan {transaction_id} status set to {status.name}")
        return transaction
