"""Submission lead-time rules for absence requests."""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from .models import AbsenceClass

SECONDS_PER_DAY = 24 * 60 * 60

VACATION_KEYWORDS = ("vacation", "personal")
SICK_KEYWORDS = ("sick",)


@dataclass(frozen=True)
class DeadlinePolicy:
    vacation_lead_days: int = 14
    sick_lead_days: int = 1

    def vacation_reason(self) -> str:
        return f"Vacation and personal days must be requested at least {self.vacation_lead_days} days in advance."

    def sick_reason(self) -> str:
        hours = self.sick_lead_days * 24
        return f"Sick leave must be reported at least {hours} hours in advance."


@dataclass(frozen=True)
class DeadlineCheck:
    valid: bool
    reason: str
    absence_class: AbsenceClass
    days_until_start: int


def classify_absence(absence_type: Optional[str]) -> AbsenceClass:
    lowered = (absence_type or "").lower()
    if any(keyword in lowered for keyword in VACATION_KEYWORDS):
        return AbsenceClass.VACATION
    if any(keyword in lowered for keyword in SICK_KEYWORDS):
        return AbsenceClass.SICK
    return AbsenceClass.OTHER


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def days_until(start_date: date, today: date) -> int:
    """Whole days from ``today`` to ``start_date``, rounding any partial day up."""

    start = _as_datetime(start_date)
    current = _as_datetime(today)
    if (start.tzinfo is None) != (current.tzinfo is None):
        # Compare wall-clock values when only one side carries a zone.
        start = start.replace(tzinfo=None)
        current = current.replace(tzinfo=None)
    return math.ceil((start - current).total_seconds() / SECONDS_PER_DAY)


def validate_deadline(
    absence_type: Optional[str],
    start_date: date,
    today: date,
    policy: DeadlinePolicy | None = None,
) -> DeadlineCheck:
    policy = policy or DeadlinePolicy()
    absence_class = classify_absence(absence_type)
    remaining = days_until(start_date, today)

    if absence_class is AbsenceClass.VACATION and remaining < policy.vacation_lead_days:
        return DeadlineCheck(False, policy.vacation_reason(), absence_class, remaining)
    if absence_class is AbsenceClass.SICK and remaining < policy.sick_lead_days:
        return DeadlineCheck(False, policy.sick_reason(), absence_class, remaining)
    return DeadlineCheck(True, "", absence_class, remaining)
