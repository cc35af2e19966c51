"""Reservation emails.

The coordinator calls ``dispatch`` only after a commit has succeeded. Delivery
problems are logged and never propagate back into the booking flow.
"""
import logging
import smtplib
from dataclasses import dataclass
from datetime import date
from email.message import EmailMessage
from enum import Enum
from html import escape

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ReservationEvent:
    customer_email: str
    customer_name: str
    reservation_date: date
    time_slot: str
    guests: int
    change_kind: ChangeKind


class Notifier:
    """Delivers one HTML email. Returns False when delivery did not happen."""

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        logger.info("Email to %s: %s", to_email, subject)
        logger.debug("Email body: %s", html_body)
        return True


class SmtpNotifier(Notifier):
    def __init__(self, host: str, port: int, sender: str, sender_name: str | None = None,
                 username: str | None = None, password: str | None = None, timeout: int = 10):
        self.host = host
        self.port = port
        self.sender = sender
        self.sender_name = sender_name
        self.username = username
        self.password = password
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        msg = EmailMessage()
        msg["From"] = f"{self.sender_name} <{self.sender}>" if self.sender_name else self.sender
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html_body, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)
        return True


def notifier_from_config(config) -> Notifier:
    if config.get("MAIL_BACKEND") == "smtp":
        return SmtpNotifier(
            host=config["SMTP_HOST"],
            port=config["SMTP_PORT"],
            sender=config["MAIL_SENDER"],
            sender_name=config.get("MAIL_SENDER_NAME"),
            username=config.get("SMTP_USERNAME"),
            password=config.get("SMTP_PASSWORD"),
        )
    return LoggingNotifier()


_SUBJECTS = {
    ChangeKind.CREATED: "Reservation Confirmation",
    ChangeKind.UPDATED: "Reservation Updated",
    ChangeKind.CANCELLED: "Reservation Cancellation",
}


def render(event: ReservationEvent, restaurant: str) -> tuple[str, str]:
    """Returns (subject, html_body) for an event."""
    when = f"{event.reservation_date.strftime('%d/%m/%Y')} at {event.time_slot}"
    if event.change_kind is ChangeKind.CREATED:
        lines = [f"Your reservation has been confirmed for {when}.",
                 f"Number of Guests: {event.guests}",
                 "We look forward to seeing you!"]
    elif event.change_kind is ChangeKind.UPDATED:
        lines = [f"Your reservation has been updated to {when}.",
                 f"Number of Guests: {event.guests}",
                 "We look forward to seeing you!"]
    else:
        lines = [f"Your reservation for {when} has been successfully cancelled.",
                 "We hope to see you in the future."]

    body = f"<p>Dear {escape(event.customer_name)},</p>"
    body += "".join(f"<p>{escape(line)}</p>" for line in lines)
    body += f"<p>Best regards,<br/>{escape(restaurant)}</p>"
    return f"{_SUBJECTS[event.change_kind]} - {restaurant}", body


def dispatch(notifier: Notifier, event: ReservationEvent, restaurant: str) -> bool:
    subject, body = render(event, restaurant)
    try:
        delivered = notifier.send(event.customer_email, subject, body)
    except Exception:
        logger.warning("Could not send %s email to %s", event.change_kind.value,
                       event.customer_email, exc_info=True)
        return False
    if not delivered:
        logger.warning("Notifier reported failure for %s email to %s",
                       event.change_kind.value, event.customer_email)
    return bool(delivered)
