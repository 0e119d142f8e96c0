"""
Shared test fixtures.

MongoDB is replaced by mongomock, Redis by fakeredis and the SMTP notifier by
an in-memory recorder. Environment overrides must be set before the
application settings are imported.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RESET_REQUEST_COOLDOWN_SECONDS", "0")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient
from mongoengine import connect, disconnect

from main import app
from speechable.connections.redis import use_redis
from speechable.models.user import User
from speechable.services.auth import get_token_issuer
from speechable.services.notifier import get_notifier
from speechable.services.users import create_user
from speechable.utils.errors import DeliveryError


TEST_PASSWORD = "correct-horse-battery"


class FakeNotifier:
    """Records deliveries instead of sending them."""

    def __init__(self):
        self.welcomes: list[str] = []
        self.resets: list[tuple[str, str]] = []
        self.fail_welcome = False
        self.fail_reset = False

    def send_welcome(self, user: User) -> None:
        if self.fail_welcome:
            raise DeliveryError("smtp down")
        self.welcomes.append(user.email)

    def send_password_reset(self, user: User, pin: str) -> None:
        if self.fail_reset:
            raise DeliveryError("smtp down")
        self.resets.append((user.email, pin))


@pytest.fixture(autouse=True)
def mongo():
    """Fresh in-memory database per test."""
    connect(
        db="speechable_test",
        host="mongodb://localhost",
        alias="default",
        mongo_client_class=mongomock.MongoClient,
        tz_aware=True,
    )
    yield
    User.drop_collection()
    disconnect(alias="default")


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    use_redis(client)
    yield client
    use_redis(None)


@pytest.fixture
def notifier():
    fake = FakeNotifier()
    app.dependency_overrides[get_notifier] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def client(notifier) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_user():
    """Factory creating persisted users with a known password."""

    def _make(email: str = "ada@example.com", name: str = "Ada Lovelace", role: str = "user") -> User:
        user = create_user(name, email, TEST_PASSWORD, TEST_PASSWORD)
        if role != "user":
            user.role = role
            user.save()
        return user

    return _make


@pytest.fixture
def user(make_user) -> User:
    return make_user()


@pytest.fixture
def admin(make_user) -> User:
    return make_user(email="root@example.com", name="Root Admin", role="admin")


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {get_token_issuer().issue(str(user.id))}"}


@pytest.fixture
def auth_headers(user) -> dict[str, str]:
    return bearer(user)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return bearer(admin)
