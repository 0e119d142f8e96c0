import hashlib
import secrets

from passlib.context import CryptContext

from speechable.utils.config import settings


PIN_LENGTH = 4

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify plaintext password against a bcrypt hash."""
    if not plain or not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return pwd_context.hash(plain)


def generate_pin() -> str:
    """Draw a zero-padded numeric reset PIN."""
    return f"{secrets.randbelow(10 ** PIN_LENGTH):0{PIN_LENGTH}d}"


def hash_pin(pin: str) -> str:
    """Unsalted SHA-256 hex digest of a reset PIN."""
    return hashlib.sha256(pin.encode("utf-8")).hexdigest()


def generate_throwaway_password() -> str:
    """Random password for accounts authenticated by an external provider."""
    return secrets.token_hex(16)
