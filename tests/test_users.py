import pytest

from lending.auth import AuthService
from lending.enums import UserRole
from lending.errors import InactiveAccountError, NotFoundError
from lending.models import User
from lending.passwords import hash_password, verify_password
from lending.users import UserDirectory


@pytest.fixture
def users(tmp_path):
    directory = UserDirectory.at(tmp_path / "users.csv")
    directory.store.initialize()
    return directory


@pytest.fixture
def auth(users):
    return AuthService(users)


def test_password_hash_is_salted():
    first, second = hash_password("pw"), hash_password("pw")
    assert first != second
    assert verify_password("pw", first)
    assert verify_password("pw", second)
    assert not verify_password("other", first)


def test_password_hash_fits_in_a_row():
    stored = hash_password("pa,ss\nword")
    assert stored.startswith("$pbkdf2-sha256$")
    assert "," not in stored and "\n" not in stored
    assert verify_password("pa,ss\nword", stored)


@pytest.mark.parametrize("stored", ["", "not a hash", "c2hvcnQ=", "$pbkdf2-sha256$29000$truncated"])
def test_verify_password_rejects_malformed_hashes(stored):
    assert verify_password("pw", stored) is False


def test_add_and_find(users):
    user = User.create("Ada", "ada@example.com", "pw", UserRole.LIBRARIAN)
    users.add(user)
    assert users.find_by_id(user.user_id) == user
    assert users.find_by_email("ADA@example.com") == user
    assert users.find_by_email("nobody@example.com") is None
    with pytest.raises(NotFoundError):
        users.find_by_id("nope")


def test_duplicate_email_rejected(users):
    users.add(User.create("Ada", "ada@example.com", "pw"))
    with pytest.raises(ValueError):
        users.add(User.create("Other Ada", "Ada@Example.com", "pw"))
    assert len(users.list_all()) == 1


def test_deactivate(users):
    user = User.create("Ada", "ada@example.com", "pw")
    users.add(user)
    assert users.deactivate(user.user_id) is True
    assert users.find_by_id(user.user_id).active is False
    assert users.deactivate("nope") is False


def test_authenticate(users, auth):
    user = User.create("Ada", "ada@example.com", "pw")
    users.add(user)
    assert auth.authenticate("ada@example.com", "pw") == user
    assert auth.authenticate("ada@example.com", "wrong") is None
    assert auth.authenticate("nobody@example.com", "pw") is None


def test_authenticate_inactive_account(users, auth):
    user = User.create("Ada", "ada@example.com", "pw")
    users.add(user)
    users.deactivate(user.user_id)
    with pytest.raises(InactiveAccountError):
        auth.authenticate("ada@example.com", "pw")


def test_change_password(users, auth):
    user = User.create("Ada", "ada@example.com", "old")
    users.add(user)
    assert auth.change_password(user.user_id, "wrong", "new") is False
    assert auth.change_password(user.user_id, "old", "new") is True
    assert auth.authenticate("ada@example.com", "new") is not None
    assert auth.authenticate("ada@example.com", "old") is None
    assert auth.change_password("nope", "old", "new") is False


def test_has_role(users):
    admin = User.create("Root", "root@example.com", "pw", UserRole.ADMIN)
    assert AuthService.has_role(admin, UserRole.ADMIN)
    assert not AuthService.has_role(admin, UserRole.MEMBER)
    assert not AuthService.has_role(None, UserRole.ADMIN)
