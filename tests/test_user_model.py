from datetime import timedelta
from unittest.mock import patch

import pytest

from speechable.models.base import utcnow
from speechable.models.user import User
from speechable.utils.errors import BadRequestError
from speechable.utils.security import hash_pin

from conftest import TEST_PASSWORD


class TestSetPassword:
    def test_rejects_mismatched_confirmation(self):
        user = User(name="Ada", email="ada@example.com")
        with pytest.raises(BadRequestError, match="Passwords are not the same!"):
            user.set_password("password-one", "password-two")

    def test_rejects_short_password(self):
        user = User(name="Ada", email="ada@example.com")
        with pytest.raises(BadRequestError, match="at least 8"):
            user.set_password("short", "short")

    def test_requires_confirmation(self):
        user = User(name="Ada", email="ada@example.com")
        with pytest.raises(BadRequestError, match="confirm"):
            user.set_password("long-enough", None)

    def test_new_user_has_no_changed_marker(self):
        user = User(name="Ada", email="ada@example.com")
        user.set_password(TEST_PASSWORD, TEST_PASSWORD)
        assert user.password != TEST_PASSWORD
        assert user.password_changed_at is None

    def test_change_sets_marker(self, user):
        user.set_password("another-password", "another-password")
        assert user.password_changed_at is not None
        assert user.check_password("another-password")

    def test_resave_does_not_rehash(self, user):
        """Saving an unchanged password must keep the stored digest intact."""
        digest = user.password
        user.name = "Ada King"
        user.save()
        reloaded = User.objects(id=user.id).first()
        assert reloaded.password == digest
        assert reloaded.check_password(TEST_PASSWORD)


class TestChangedPasswordAfter:
    def test_never_changed(self, user):
        assert not user.changed_password_after(0)

    def test_token_older_than_change(self, user):
        user.password_changed_at = utcnow()
        issued = int((utcnow() - timedelta(minutes=5)).timestamp())
        assert user.changed_password_after(issued)

    def test_token_newer_than_change(self, user):
        user.password_changed_at = utcnow() - timedelta(minutes=5)
        assert not user.changed_password_after(int(utcnow().timestamp()))


class TestResetPin:
    def test_create_stores_hash_only(self, user):
        with patch("speechable.models.user.generate_pin", return_value="4821"):
            pin = user.create_password_reset_pin()
        assert pin == "4821"
        assert user.password_reset_pin == hash_pin("4821")
        assert user.password_reset_pin_attempts == 0
        assert user.password_reset_expires > utcnow() + timedelta(minutes=9)

    def test_matches_until_expiry(self, user):
        pin = user.create_password_reset_pin()
        assert user.password_reset_pin_matches(pin)
        user.password_reset_expires = utcnow() - timedelta(seconds=1)
        assert not user.password_reset_pin_matches(pin)

    def test_no_pending_reset_never_matches(self, user):
        assert not user.password_reset_pin_matches("0000")

    def test_clear(self, user):
        user.create_password_reset_pin()
        user.clear_password_reset()
        assert user.password_reset_pin is None
        assert user.password_reset_expires is None


def test_output_hides_credentials(user):
    user.create_password_reset_pin()
    data = user.to_output()
    for hidden in ("password", "password_reset_pin", "password_reset_expires", "active"):
        assert hidden not in data
    assert data["email"] == "ada@example.com"
    assert data["role"] == "user"
    assert data["id"] == str(user.id)
