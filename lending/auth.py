"""Authentication and authorization helpers.

Users log in with their e-mail address. Passwords are stored as salted
SHA-256 hashes (see ``lending.passwords``).
"""

from __future__ import annotations

import logging
from typing import Optional

from lending.enums import UserRole
from lending.errors import InactiveAccountError, NotFoundError
from lending.models import User
from lending.passwords import hash_password
from lending.users import UserDirectory

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, users: UserDirectory) -> None:
        self.users = users

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials are correct, else None.

        Correct credentials for a deactivated account raise InactiveAccountError.
        """
        user = self.users.find_by_email(email)
        if user is None or not user.verify_password(password):
            logger.warning(f"Failed login for {email}")
            return None
        if not user.active:
            raise InactiveAccountError(f"User account {email} is inactive")
        return user

    def change_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        try:
            user = self.users.find_by_id(user_id)
        except NotFoundError:
            return False
        if not user.verify_password(old_password):
            return False
        user.password_hash = hash_password(new_password)
        self.users.update(user)
        logger.info(f"Password changed for user {user_id}")
        return True

    @staticmethod
    def has_role(user: Optional[User], role: UserRole) -> bool:
        return user is not None and user.role is role
