"""Rendering and delivery of workflow notifications."""

from __future__ import annotations
import smtplib
from email.message import EmailMessage
from typing import Iterable, List, Protocol, Tuple

from .core.logging import get_logger
from .errors import ErrorKind, Issue, NotificationError
from .models import NotificationIntent, NotificationKind

logger = get_logger(__name__)

SUBJECTS = {
    NotificationKind.MANAGER_NEW_REQUEST: "New PTO Request: {employee_name}",
    NotificationKind.EMPLOYEE_SUBMISSION_CONFIRMATION: "PTO Request Received",
    NotificationKind.EMPLOYEE_DEADLINE_VIOLATION: "PTO Request Not Accepted: Submission Deadline Missed",
    NotificationKind.MANAGER_DEADLINE_ALERT: "Late PTO Submission: {employee_name}",
    NotificationKind.EMPLOYEE_APPROVED: "PTO Request Approved",
    NotificationKind.EMPLOYEE_DENIED: "PTO Request Denied",
    NotificationKind.EMPLOYEE_NEEDS_INFO: "PTO Request Needs More Info",
    NotificationKind.MANAGER_INSUFFICIENT_BALANCE: "Insufficient PTO Balance: {employee_name}",
}

DETAIL_LABELS = (
    ("reason", "Reason"),
    ("days_until_start", "Days until start"),
    ("used_hours", "Used hours"),
    ("remaining_hours", "Remaining hours"),
    ("shortfall_hours", "Shortfall hours"),
    ("notes", "Notes"),
)


class NotificationDispatcher(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        ...


def render_notification(intent: NotificationIntent) -> Tuple[str, str]:
    payload = intent.payload
    subject = SUBJECTS[intent.kind].format(employee_name=payload.get("employee_name") or "employee")
    lines = [
        f"Request: {payload.get('request_id')}",
        f"Employee: {payload.get('employee_name')} ({payload.get('employee_id')})",
        f"Type: {payload.get('absence_type')}",
        f"Dates: {payload.get('start_date')} to {payload.get('end_date')}",
        f"Hours: {payload.get('hours_requested')}",
    ]
    for key, label in DETAIL_LABELS:
        value = payload.get(key)
        if value is not None and value != "":
            lines.append(f"{label}: {value}")
    return subject, "\n".join(lines)


class LogDispatcher:
    """Dry-run dispatcher: records what would be sent without sending it."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject, body))
        logger.info("notification_dry_run", recipient=recipient, subject=subject)


class SmtpDispatcher:
    def __init__(
        self,
        host: str,
        port: int = 587,
        from_email: str = "pto-bot@example.com",
        user: str | None = None,
        password: str | None = None,
        starttls: bool = True,
        timeout: float = 20,
    ) -> None:
        self.host = host
        self.port = port
        self.from_email = from_email
        self.user = user
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def send(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                client.ehlo()
                if self.starttls:
                    client.starttls()
                    client.ehlo()
                if self.user and self.password:
                    client.login(self.user, self.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery to {recipient} failed: {exc}") from exc
        logger.info("notification_sent", recipient=recipient, subject=subject)


def dispatch_notifications(
    dispatcher: NotificationDispatcher, intents: Iterable[NotificationIntent]
) -> Tuple[int, List[Issue]]:
    """Send every intent, continuing past failures. Returns (sent, issues)."""

    sent = 0
    issues: List[Issue] = []
    for intent in intents:
        details = {"kind": intent.kind.value, "request_id": intent.request_id}
        if not intent.recipient:
            logger.warning("notification_recipient_missing", **details)
            issues.append(Issue(ErrorKind.LOOKUP_MISS, f"No {intent.audience.value} address for {intent.kind.value}", details))
            continue
        subject, body = render_notification(intent)
        try:
            dispatcher.send(intent.recipient, subject, body)
        except NotificationError as exc:
            logger.error("notification_failed", recipient=intent.recipient, error=exc.message, **details)
            issues.append(Issue(exc.kind, exc.message, details))
            continue
        except Exception as exc:
            logger.exception("notification_failed", recipient=intent.recipient, **details)
            issues.append(Issue(ErrorKind.NOTIFICATION, str(exc) or exc.__class__.__name__, details))
            continue
        sent += 1
    return sent, issues
