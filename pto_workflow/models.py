from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class RequestStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    NEEDS_INFO = "Needs More Info"
    LATE_SUBMISSION = "Late Submission"
    INSUFFICIENT_BALANCE = "Insufficient Balance"

    @classmethod
    def parse(cls, value: Any) -> Optional["RequestStatus"]:
        """Map an edited status cell onto a status, or None when it is not one.

        Accepts the stored value ("Needs More Info"), the member name
        ("NEEDS_INFO") and the compact form ("NeedsInfo"), case-insensitively.
        """

        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = "".join(ch for ch in str(value).lower() if ch.isalnum())
        if not key:
            return None
        for status in cls:
            aliases = {
                "".join(ch for ch in status.value.lower() if ch.isalnum()),
                status.name.lower().replace("_", ""),
            }
            if key in aliases:
                return status
        return None


# No manager edit is honoured once a request reaches one of these.
TERMINAL_STATUSES = frozenset(
    {
        RequestStatus.APPROVED,
        RequestStatus.DENIED,
        RequestStatus.LATE_SUBMISSION,
        RequestStatus.INSUFFICIENT_BALANCE,
    }
)


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise ValueError("date is required")
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def parse_hours(value: Any) -> Optional[float]:
    """Parse requested hours; blank means missing rather than zero."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return float(value)


class AbsenceClass(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    OTHER = "other"


@dataclass
class PTORequest:
    request_id: Optional[str]
    employee_id: str
    employee_name: str
    absence_type: str
    start_date: date
    end_date: date
    hours_requested: Optional[float]
    status: Optional[RequestStatus] = None
    submitted_at: Optional[datetime] = None
    decision_at: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class EmployeeBalance:
    employee_id: str
    email: Optional[str] = None
    used_hours: float = 0.0
    remaining_hours: float = 0.0
    name: Optional[str] = None

    @property
    def total_hours(self) -> float:
        return self.used_hours + self.remaining_hours


@dataclass(frozen=True)
class BalanceSnapshot:
    used_hours: float = 0.0
    remaining_hours: float = 0.0


@dataclass(frozen=True)
class BalanceMutation:
    employee_id: str
    hours: float


class NotificationKind(str, Enum):
    MANAGER_NEW_REQUEST = "manager_new_request"
    EMPLOYEE_SUBMISSION_CONFIRMATION = "employee_submission_confirmation"
    EMPLOYEE_DEADLINE_VIOLATION = "employee_deadline_violation"
    MANAGER_DEADLINE_ALERT = "manager_deadline_alert"
    EMPLOYEE_APPROVED = "employee_approved"
    EMPLOYEE_DENIED = "employee_denied"
    EMPLOYEE_NEEDS_INFO = "employee_needs_info"
    MANAGER_INSUFFICIENT_BALANCE = "manager_insufficient_balance"


class Audience(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"


@dataclass
class NotificationIntent:
    kind: NotificationKind
    audience: Audience
    recipient: Optional[str]
    request_id: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Transition:
    """Outcome of a state machine decision, applied later by the service."""

    request: PTORequest
    previous_status: Optional[RequestStatus]
    applied: bool = True
    balance_mutation: Optional[BalanceMutation] = None
    notifications: List[NotificationIntent] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def status(self) -> Optional[RequestStatus]:
        return self.request.status
