from datetime import timedelta

from mongoengine import BooleanField, DateTimeField, EmailField, IntField, StringField

from speechable.models.base import BaseDocument, as_utc, utcnow
from speechable.utils.base.enums import AuthProvider, UserRole
from speechable.utils.config import settings
from speechable.utils.errors import BadRequestError
from speechable.utils.security import generate_pin, hash_password, hash_pin, verify_password


class User(BaseDocument):
    """User document.

    Fields:
    - name (str): Display name
    - email (str, unique): Login identifier, stored lowercase
    - password (str, hashed): Bcrypt hash; plaintext and confirmation are never stored
    - password_changed_at (datetime): Set on every password change after creation.
      Tokens issued before it are rejected.
    - password_reset_pin (str): SHA-256 of the pending reset PIN, None when no reset is pending
    - password_reset_expires (datetime): Expiry of the pending PIN
    - password_reset_pin_attempts (int): Failed verifications since the PIN was issued
    - role (str): "user" or "admin"
    - auth_provider (str): "password", or "external" for accounts created through /auth
    - active (bool): Soft-delete flag
    """
    hidden_fields = (
        "password",
        "password_reset_pin",
        "password_reset_expires",
        "password_reset_pin_attempts",
        "active",
        "metadata",
    )

    name = StringField(required=True, null=False)
    email = EmailField(required=True, null=False, unique=True)
    password = StringField(required=True, null=False)
    password_changed_at = DateTimeField(null=True)
    password_reset_pin = StringField(null=True)
    password_reset_expires = DateTimeField(null=True)
    password_reset_pin_attempts = IntField(default=0, min_value=0)
    role = StringField(required=True, choices=UserRole.values(), default=UserRole.USER.value)
    auth_provider = StringField(choices=AuthProvider.values(), default=AuthProvider.PASSWORD.value)
    active = BooleanField(default=True)

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["email"], "unique": True},
        ],
    }

    def clean(self):
        if self.email:
            self.email = self.email.strip().lower()
        if self.name is not None:
            self.name = self.name.strip()

    def set_password(self, password: str | None, password_confirm: str | None) -> None:
        """Validate and hash a new password.

        Hashing happens here and only here, so saving a document whose
        password did not change never re-hashes it.
        """
        if not password:
            raise BadRequestError("Please provide a password")
        if not password_confirm:
            raise BadRequestError("Please confirm your password")
        if len(password) < settings.password_min_length:
            raise BadRequestError(f"Password must be at least {settings.password_min_length} characters")
        if password != password_confirm:
            raise BadRequestError("Passwords are not the same!")

        self.password = hash_password(password)
        if self.pk is not None:
            # One second back so a token issued right after the change stays valid
            self.password_changed_at = utcnow() - timedelta(seconds=1)

    def check_password(self, candidate: str) -> bool:
        return verify_password(candidate, self.password)

    def changed_password_after(self, issued_at: int) -> bool:
        """True when the password changed after a token's ``iat`` (epoch seconds)."""
        changed_at = as_utc(self.password_changed_at)
        if changed_at is None:
            return False
        return issued_at < int(changed_at.timestamp())

    def create_password_reset_pin(self) -> str:
        """Store the hash of a fresh PIN and return the plaintext for delivery."""
        pin = generate_pin()
        self.password_reset_pin = hash_pin(pin)
        self.password_reset_expires = utcnow() + timedelta(minutes=settings.password_reset_pin_ttl_minutes)
        self.password_reset_pin_attempts = 0
        return pin

    def clear_password_reset(self) -> None:
        self.password_reset_pin = None
        self.password_reset_expires = None

    def password_reset_pin_matches(self, pin: str) -> bool:
        """Correct PIN and not yet expired."""
        expires = as_utc(self.password_reset_expires)
        if not self.password_reset_pin or expires is None:
            return False
        return self.password_reset_pin == hash_pin(pin) and utcnow() <= expires
