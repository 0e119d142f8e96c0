"""Out-of-band delivery of account emails.

Workflows depend on the ``Notifier`` protocol. ``SMTPNotifier`` is the
production implementation; it raises ``DeliveryError`` for any transport
failure and never retries.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional, Protocol, runtime_checkable

from speechable.models.user import User
from speechable.utils.config import Settings, settings
from speechable.utils.errors import DeliveryError


logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    def send_welcome(self, user: User) -> None:
        ...

    def send_password_reset(self, user: User, pin: str) -> None:
        ...


@dataclass(frozen=True)
class MailConfig:
    sender: str
    sender_name: str
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    pin_ttl_minutes: int = 10
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, config: Settings) -> "MailConfig":
        return cls(
            sender=config.email_from,
            sender_name=config.email_from_name,
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            pin_ttl_minutes=config.password_reset_pin_ttl_minutes,
        )


def _first_name(user: User) -> str:
    return (user.name or "").split(" ")[0]


class SMTPNotifier:
    def __init__(self, config: MailConfig):
        self._config = config

    def _build(self, to: str, subject: str, text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self._config.sender_name} <{self._config.sender}>"
        msg["To"] = to
        msg.set_content(text)
        return msg

    def send(self, to: str, subject: str, text: str) -> None:
        try:
            msg = self._build(to, subject, text)
            with smtplib.SMTP(self._config.host, self._config.port, timeout=self._config.timeout) as server:
                if self._config.use_tls:
                    server.starttls()
                if self._config.username and self._config.password:
                    server.login(self._config.username, self._config.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise DeliveryError(f"Failed to send '{subject}' to {to}: {type(e).__name__}: {e}") from e
        logger.debug("Sent '%s' to %s", subject, to)

    def send_welcome(self, user: User) -> None:
        self.send(user.email, "Welcome", f"Hi {_first_name(user)},\n\nWelcome to Speechable!")

    def send_password_reset(self, user: User, pin: str) -> None:
        self.send(
            user.email,
            "Your password reset PIN",
            f"Hi {_first_name(user)},\n\n"
            f"Use this PIN to reset your password: {pin}\n\n"
            f"Valid for {self._config.pin_ttl_minutes} minutes.\n\n"
            "If you didn't request this, please ignore this email!",
        )


@lru_cache
def get_notifier() -> Notifier:
    """FastAPI dependency returning the process-wide notifier."""
    return SMTPNotifier(MailConfig.from_settings(settings))
