import re
from typing import Optional

from lending.codec import DELIMITER


class ISBNValidator:
    """ISBN-10 / ISBN-13 normalization and checksum validation."""

    @staticmethod
    def normalize_isbn(raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return re.sub(r"[^0-9Xx]", "", raw).upper()

    @staticmethod
    def is_valid_isbn(isbn: Optional[str]) -> bool:
        s = ISBNValidator.normalize_isbn(isbn)
        if len(s) == 10:
            if not s[:9].isdigit():
                return False
            check = s[-1]
            if check == "X":
                check_val = 10
            elif check.isdigit():
                check_val = int(check)
            else:
                return False
            # weights 10..1 over all ten characters
            total = sum((10 - i) * int(ch) for i, ch in enumerate(s[:9])) + check_val
            return total % 11 == 0
        if len(s) == 13 and s.isdigit():
            total = sum((1 if i % 2 == 0 else 3) * int(ch) for i, ch in enumerate(s[:-1]))
            return (10 - (total % 10)) % 10 == int(s[-1])
        return False


class TextValidator:
    """Checks for free-text fields that end up in a table row."""

    @staticmethod
    def validate_field(text: Optional[str]) -> bool:
        """Non-empty and free of the delimiter and line breaks."""
        if text is None or not text.strip():
            return False
        return DELIMITER not in text and "\n" not in text and "\r" not in text

    @staticmethod
    def validate_email(email: Optional[str]) -> bool:
        if not TextValidator.validate_field(email):
            return False
        return re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email.strip()) is not None
