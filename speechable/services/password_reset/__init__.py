"""PIN-based password reset.

A user moves from no pending reset, to a pending PIN (hash, expiry,
attempts=0), and back once the PIN is consumed by a successful reset. A
pending PIN also dies by expiring or by exhausting its attempts.
"""

from __future__ import annotations

import logging

from speechable.models.user import User
from speechable.services.notifier import Notifier
from speechable.services.users import find_by_email
from speechable.utils.config import settings
from speechable.utils.errors import (
    BadRequestError,
    DeliveryError,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from speechable.utils.security import hash_pin


logger = logging.getLogger(__name__)

TOO_MANY_ATTEMPTS = "Too many attempts, request new PIN"
INVALID_PIN = "Invalid or expired PIN"
SEND_FAILED = "There was an error sending the email. Try again later!"


def request_password_reset(email: str | None, notifier: Notifier) -> None:
    """Issue a new PIN and deliver it.

    A PIN that could not be delivered is cleared again before failing, so no
    undeliverable reset is ever left pending.
    """
    if not email:
        raise BadRequestError("Please provide your email")
    user = find_by_email(email)
    if not user:
        raise NotFoundError("There is no user with email address.")

    pin = user.create_password_reset_pin()
    user.save(validate=False)
    logger.info("Issued password reset PIN for user %s", user.id)

    try:
        notifier.send_password_reset(user, pin)
    except DeliveryError as e:
        logger.warning("Reset PIN delivery failed for user %s, rolling back: %s", user.id, e)
        _rollback_reset(user)
        raise InternalError(SEND_FAILED) from e
    except Exception as e:
        logger.exception("Notifier error for user %s, rolling back reset PIN", user.id)
        _rollback_reset(user)
        raise InternalError(SEND_FAILED) from e


def _rollback_reset(user: User) -> None:
    user.clear_password_reset()
    user.save(validate=False)


def _confirm_pending_reset(user: User, pin: str) -> User | None:
    """Re-read the reset state in one query guarded by PIN hash and attempt cap.

    The document passed in may be stale; only the stored counter decides.
    """
    current = User.objects(
        id=user.id,
        password_reset_pin=hash_pin(pin),
        password_reset_pin_attempts__lt=settings.password_reset_max_attempts,
    ).first()
    if current is None or not current.password_reset_pin_matches(pin):
        return None
    return current


def _record_failed_attempt(user: User) -> int | None:
    """Atomically bump the attempt counter while it is under the cap.

    Returns the new count, or None when the cap was already reached by a
    concurrent request.
    """
    updated = User.objects(
        id=user.id,
        password_reset_pin_attempts__lt=settings.password_reset_max_attempts,
    ).modify(inc__password_reset_pin_attempts=1, new=True)
    if updated is None:
        return None
    user.password_reset_pin_attempts = updated.password_reset_pin_attempts
    return updated.password_reset_pin_attempts


def verify_password_reset_pin(email: str | None, pin: str | None) -> User:
    """Check a PIN against the pending reset and return the user on success.

    Does not consume the PIN.
    """
    if not pin:
        raise BadRequestError("Please provide a PIN")
    user = find_by_email(email) if email else None
    if not user:
        raise NotFoundError("No user found with this email")

    if (user.password_reset_pin_attempts or 0) >= settings.password_reset_max_attempts:
        raise RateLimitedError(TOO_MANY_ATTEMPTS)

    if user.password_reset_pin_matches(pin):
        confirmed = _confirm_pending_reset(user, pin)
        if confirmed is not None:
            return confirmed

    # Wrong, expired, replaced, or capped by a concurrent request
    attempts = _record_failed_attempt(user)
    if attempts is None or attempts >= settings.password_reset_max_attempts:
        raise RateLimitedError(TOO_MANY_ATTEMPTS)
    raise UnauthorizedError(INVALID_PIN)


def reset_password(
    email: str | None,
    pin: str | None,
    password: str | None,
    password_confirm: str | None,
) -> User:
    """Verify the PIN, then set the new password and consume the PIN."""
    user = verify_password_reset_pin(email, pin)

    user.set_password(password, password_confirm)
    user.clear_password_reset()
    user.password_reset_pin_attempts = 0
    user.save()
    logger.info("Password reset completed for user %s", user.id)
    return user
