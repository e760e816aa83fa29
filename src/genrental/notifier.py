"""Notifications sent after a rental request is stored."""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .config import Settings
    from .models import RentalRequest

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receives rental events. Implementations may raise; callers swallow and log."""

    def rental_created(self, rental: RentalRequest) -> None:
        ...


def _summary(rental: RentalRequest) -> str:
    lines = [
        f"New rental request {rental.id}",
        "",
        f"Name: {rental.customer.name}",
        f"Email: {rental.customer.email}",
        f"Phone: {rental.customer.phone}",
        f"Period: {rental.period.start.isoformat()} - {rental.period.end.isoformat()}",
        f"Fulfillment: {rental.fulfillment.delivery_type.value}",
    ]
    if rental.fulfillment.address:
        lines.append(f"Address: {rental.fulfillment.address}")
    lines.append(f"Price: {rental.price:.2f} EUR")
    return "\n".join(lines)


class LoggingNotifier:
    """Writes rental events to the log. Used when no mail server is configured."""

    def rental_created(self, rental: RentalRequest) -> None:
        logger.info("New rental request %s from %s", rental.id, rental.customer.email)


class SmtpNotifier:
    """Emails the admin inbox about new rental requests."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipient: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.recipient = recipient
        self.username = username
        self.password = password
        self.timeout = timeout

    def _build_message(self, rental: RentalRequest) -> MIMEText:
        msg = MIMEText(_summary(rental), "plain", "utf-8")
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg["Subject"] = f"Rental request {rental.id}"
        return msg

    def rental_created(self, rental: RentalRequest) -> None:
        msg = self._build_message(rental)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            server.sendmail(self.sender, [self.recipient], msg.as_string())
        logger.info("Rental %s notification sent to %s", rental.id, self.recipient)


def notifier_from_settings(settings: Settings) -> Notifier:
    """Pick the SMTP notifier when a mail server is configured, else log only."""
    if settings.smtp_host and settings.mail_to:
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_from or settings.mail_to,
            recipient=settings.mail_to,
            username=settings.smtp_user,
            password=settings.smtp_password,
        )
    return LoggingNotifier()
