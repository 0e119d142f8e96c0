from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from pydantic import BaseModel

from speechable.models.user import User
from speechable.services.users import find_by_id
from speechable.utils.config import Settings, settings
from speechable.utils.errors import ForbiddenError, UnauthorizedError


bearer_scheme = HTTPBearer(auto_error=False)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = "Invalid token. Please log in again!"):
        super().__init__(message)


class TokenClaims(BaseModel):
    """Verified contents of a bearer token."""
    user_id: str
    issued_at: int


@dataclass(frozen=True)
class TokenConfig:
    secret_key: str
    algorithm: str
    expires_in: timedelta

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenConfig":
        return cls(
            secret_key=config.jwt_secret_key,
            algorithm=config.jwt_algorithm,
            expires_in=timedelta(days=config.jwt_expires_days),
        )


class TokenIssuer:
    """Signs and verifies bearer tokens binding a user id."""

    def __init__(self, config: TokenConfig):
        self._config = config

    def issue(self, user_id: str) -> str:
        """Create a signed JWT with subject, issued-at and expiration."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self._config.expires_in).timestamp()),
        }
        return jwt.encode(payload, self._config.secret_key, algorithm=self._config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry and return the claims.

        Raises InvalidTokenError for malformed, tampered or expired tokens.
        """
        try:
            payload = jwt.decode(token, self._config.secret_key, algorithms=[self._config.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Your token has expired! Please log in again.")
        except JWTError:
            raise InvalidTokenError()

        user_id = payload.get("sub")
        issued_at = payload.get("iat")
        if not user_id or not isinstance(issued_at, int):
            raise InvalidTokenError()
        return TokenClaims(user_id=user_id, issued_at=issued_at)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(TokenConfig.from_settings(settings))


def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Bearer header first, then the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.jwt_cookie_name) or None


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """Auth dependency that validates a bearer token and returns the user.

    Rejects missing or invalid tokens, tokens of deleted users and tokens
    issued before the user's last password change.
    """
    token = extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("You are not logged in! Please log in to get access.")

    claims = issuer.verify(token)

    user = find_by_id(claims.user_id)
    if not user:
        raise UnauthorizedError("The user belonging to this token does no longer exist.")
    if user.changed_password_after(claims.issued_at):
        raise UnauthorizedError("User recently changed password! Please log in again.")

    request.state.user = user
    return user


def restrict_to(*roles: str) -> Callable[..., User]:
    """Return a FastAPI dependency admitting only users whose role is in ``roles``."""

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenError("You do not have permission to perform this action")
        return current_user

    return _dependency
