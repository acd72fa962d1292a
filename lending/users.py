"""User directory over the users table."""

from __future__ import annotations

import logging
from typing import List, Optional

from lending.codec import USER_CODEC
from lending.errors import NotFoundError
from lending.models import User
from lending.table_store import TableStore

logger = logging.getLogger(__name__)


class UserDirectory:

    def __init__(self, store: TableStore[User]) -> None:
        self.store = store

    @classmethod
    def at(cls, path) -> "UserDirectory":
        return cls(TableStore(path, USER_CODEC))

    def add(self, user: User) -> None:
        """Append a user. E-mail is the login and must be unique (case-insensitive)."""
        with self.store.locked():
            if self.find_by_email(user.email) is not None:
                raise ValueError(f"User with email {user.email} already exists.")
            self.store.append(user)
        logger.info(f"Added user {user.user_id} ({user.role.name})")

    def update(self, user: User) -> bool:
        return self.store.update_by_key(user)

    def find_by_id(self, user_id: str) -> User:
        try:
            return self.store.find_by_key(user_id)
        except NotFoundError:
            raise NotFoundError(f"User {user_id} not found.") from None

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        return self.store.find_first(lambda u: u.email.lower() == wanted)

    def list_all(self) -> List[User]:
        return self.store.load_all()

    def deactivate(self, user_id: str) -> bool:
        """Returns False if the user does not exist."""
        with self.store.locked():
            try:
                user = self.find_by_id(user_id)
            except NotFoundError:
                return False
            user.active = False
            self.store.update_by_key(user)
        logger.info(f"Deactivated user {user_id}")
        return True
