import pytest

from lending.validators import ISBNValidator, TextValidator


def test_normalize_isbn_strips_separators():
    assert ISBNValidator.normalize_isbn("978-0-306-40615-7") == "9780306406157"
    assert ISBNValidator.normalize_isbn("0-8044-2957-x") == "080442957X"
    assert ISBNValidator.normalize_isbn(None) == ""


@pytest.mark.parametrize("isbn", ["0306406152", "080442957X", "9780306406157", "978-0-306-40615-7"])
def test_valid_isbns(isbn):
    assert ISBNValidator.is_valid_isbn(isbn)


@pytest.mark.parametrize("isbn", ["1234567890", "9780306406158", "12345", "", None, "X123456789"])
def test_invalid_isbns(isbn):
    assert not ISBNValidator.is_valid_isbn(isbn)


def test_validate_field():
    assert TextValidator.validate_field("Dune")
    assert not TextValidator.validate_field("   ")
    assert not TextValidator.validate_field(None)
    assert not TextValidator.validate_field("Hello, World")
    assert not TextValidator.validate_field("two\nlines")


def test_validate_email():
    assert TextValidator.validate_email("ada@example.com")
    assert not TextValidator.validate_email("ada@example")
    assert not TextValidator.validate_email("ada,lovelace@example.com")
    assert not TextValidator.validate_email("not-an-email")
