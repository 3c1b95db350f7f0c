"""Approval state machine for PTO requests.

Decisions are pure: each method returns a :class:`Transition` describing the
new request row, the balance mutation to apply and the notifications to
send. ``PTOWorkflowService`` applies them in that order.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional

from .deadlines import DeadlinePolicy, validate_deadline
from .ledger import BalanceLedger
from .models import (
    Audience,
    BalanceMutation,
    NotificationIntent,
    NotificationKind,
    PTORequest,
    RequestStatus,
    Transition,
)

EDITABLE_TARGETS = (RequestStatus.APPROVED, RequestStatus.DENIED, RequestStatus.NEEDS_INFO)


def request_payload(request: PTORequest) -> Dict[str, Any]:
    return {
        "request_id": request.request_id,
        "employee_id": request.employee_id,
        "employee_name": request.employee_name,
        "absence_type": request.absence_type,
        "start_date": request.start_date.isoformat(),
        "end_date": request.end_date.isoformat(),
        "hours_requested": request.hours_requested,
        "notes": request.notes,
    }


class ApprovalStateMachine:
    def __init__(self, ledger: BalanceLedger, manager_email: str, policy: DeadlinePolicy | None = None) -> None:
        self.ledger = ledger
        self.manager_email = manager_email
        self.policy = policy or DeadlinePolicy()

    def _notify(self, kind: NotificationKind, request: PTORequest, **extra: Any) -> NotificationIntent:
        if kind.value.startswith("manager_"):
            audience, recipient = Audience.MANAGER, self.manager_email
        else:
            audience, recipient = Audience.EMPLOYEE, self.ledger.get_email(request.employee_id)
        payload = request_payload(request)
        payload.update(extra)
        return NotificationIntent(
            kind=kind,
            audience=audience,
            recipient=recipient,
            request_id=request.request_id,
            payload=payload,
        )

    def submit(self, request: PTORequest, now: datetime) -> Transition:
        check = validate_deadline(request.absence_type, request.start_date, now, self.policy)

        if not check.valid:
            updated = replace(request, status=RequestStatus.LATE_SUBMISSION, submitted_at=now)
            return Transition(
                request=updated,
                previous_status=request.status,
                reason=check.reason,
                notifications=[
                    self._notify(NotificationKind.EMPLOYEE_DEADLINE_VIOLATION, updated, reason=check.reason),
                    self._notify(
                        NotificationKind.MANAGER_DEADLINE_ALERT,
                        updated,
                        reason=check.reason,
                        days_until_start=check.days_until_start,
                    ),
                ],
            )

        updated = replace(request, status=RequestStatus.PENDING, submitted_at=now)
        balance = self.ledger.get_balance(request.employee_id)
        return Transition(
            request=updated,
            previous_status=request.status,
            notifications=[
                self._notify(
                    NotificationKind.MANAGER_NEW_REQUEST,
                    updated,
                    used_hours=balance.used_hours,
                    remaining_hours=balance.remaining_hours,
                ),
                self._notify(NotificationKind.EMPLOYEE_SUBMISSION_CONFIRMATION, updated),
            ],
        )

    def manager_set_status(self, request: PTORequest, new_value: Any, now: datetime) -> Transition:
        target = RequestStatus.parse(new_value)
        current = request.status or RequestStatus.PENDING

        if target not in EDITABLE_TARGETS:
            return Transition(
                request=request,
                previous_status=request.status,
                applied=False,
                reason=f"status value {new_value!r} is not a manager decision",
            )
        if request.is_terminal:
            return Transition(
                request=request,
                previous_status=request.status,
                applied=False,
                reason=f"request is already {current.value}",
            )

        if target is RequestStatus.APPROVED:
            return self._approve(request, now)
        if target is RequestStatus.DENIED:
            updated = replace(request, status=RequestStatus.DENIED, decision_at=now)
            return Transition(
                request=updated,
                previous_status=request.status,
                notifications=[self._notify(NotificationKind.EMPLOYEE_DENIED, updated)],
            )

        updated = replace(request, status=RequestStatus.NEEDS_INFO)
        return Transition(
            request=updated,
            previous_status=request.status,
            notifications=[self._notify(NotificationKind.EMPLOYEE_NEEDS_INFO, updated)],
        )

    def _approve(self, request: PTORequest, now: datetime) -> Transition:
        employee_id = request.employee_id
        hours = request.hours_requested

        if not self.ledger.has_sufficient_balance(employee_id, hours):
            balance = self.ledger.get_balance(employee_id)
            updated = replace(request, status=RequestStatus.INSUFFICIENT_BALANCE)
            if hours is None:
                reason = "no hours requested"
                details: Dict[str, Any] = {"reason": reason}
            else:
                shortfall = max(hours - balance.remaining_hours, 0.0)
                reason = f"short by {shortfall:g} hours"
                details = {"shortfall_hours": shortfall}
            return Transition(
                request=updated,
                previous_status=request.status,
                reason=reason,
                notifications=[
                    self._notify(
                        NotificationKind.MANAGER_INSUFFICIENT_BALANCE,
                        updated,
                        remaining_hours=balance.remaining_hours,
                        **details,
                    )
                ],
            )

        mutation: Optional[BalanceMutation] = None
        if hours is not None and hours > 0:
            mutation = BalanceMutation(employee_id=employee_id, hours=hours)
        balance = self.ledger.get_balance(employee_id)
        remaining_after = balance.remaining_hours - (mutation.hours if mutation else 0.0)
        updated = replace(request, status=RequestStatus.APPROVED, decision_at=now)
        return Transition(
            request=updated,
            previous_status=request.status,
            balance_mutation=mutation,
            notifications=[
                self._notify(NotificationKind.EMPLOYEE_APPROVED, updated, remaining_hours=remaining_after)
            ],
        )
