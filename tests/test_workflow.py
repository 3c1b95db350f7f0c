from datetime import datetime, timedelta

from pto_workflow.ledger import BalanceLedger
from pto_workflow.models import (
    Audience,
    EmployeeBalance,
    NotificationKind,
    PTORequest,
    RequestStatus,
)
from pto_workflow.storage import DataStore
from pto_workflow.workflow import ApprovalStateMachine

NOW = datetime(2026, 3, 2, 9, 0)
MANAGER = "manager@example.com"


def build_machine(remaining: float = 40, used: float = 0) -> ApprovalStateMachine:
    store = DataStore()
    store.save_employee(EmployeeBalance("e1", email="ann@example.com", used_hours=used, remaining_hours=remaining))
    return ApprovalStateMachine(BalanceLedger(store), MANAGER)


def make_request(days_out: int = 20, hours: float | None = 16, status: RequestStatus | None = None) -> PTORequest:
    start = NOW.date() + timedelta(days=days_out)
    return PTORequest(
        request_id="r1",
        employee_id="e1",
        employee_name="Ann Lee",
        absence_type="Vacation",
        start_date=start,
        end_date=start + timedelta(days=1),
        hours_requested=hours,
        status=status,
    )


def test_submit_on_time_goes_pending_with_balance_snapshot():
    machine = build_machine(remaining=40, used=8)
    request = make_request(days_out=20)

    transition = machine.submit(request, NOW)

    assert transition.status is RequestStatus.PENDING
    assert transition.request.submitted_at == NOW
    assert transition.balance_mutation is None
    assert [n.kind for n in transition.notifications] == [
        NotificationKind.MANAGER_NEW_REQUEST,
        NotificationKind.EMPLOYEE_SUBMISSION_CONFIRMATION,
    ]
    manager_notice = transition.notifications[0]
    assert manager_notice.recipient == MANAGER
    assert manager_notice.payload["remaining_hours"] == 40
    assert manager_notice.payload["used_hours"] == 8
    assert transition.notifications[1].recipient == "ann@example.com"
    # the input row is left alone
    assert request.status is None


def test_submit_late_goes_to_late_submission():
    machine = build_machine()

    transition = machine.submit(make_request(days_out=5), NOW)

    assert transition.status is RequestStatus.LATE_SUBMISSION
    assert transition.request.submitted_at == NOW
    assert "14 days" in transition.reason
    assert [(n.kind, n.audience) for n in transition.notifications] == [
        (NotificationKind.EMPLOYEE_DEADLINE_VIOLATION, Audience.EMPLOYEE),
        (NotificationKind.MANAGER_DEADLINE_ALERT, Audience.MANAGER),
    ]
    assert transition.notifications[1].payload["days_until_start"] == 5


def test_approve_with_enough_balance_plans_deduction():
    machine = build_machine(remaining=40)

    transition = machine.manager_set_status(make_request(status=RequestStatus.PENDING), "Approved", NOW)

    assert transition.status is RequestStatus.APPROVED
    assert transition.request.decision_at == NOW
    assert transition.balance_mutation.employee_id == "e1"
    assert transition.balance_mutation.hours == 16
    assert transition.notifications[0].kind is NotificationKind.EMPLOYEE_APPROVED
    assert transition.notifications[0].payload["remaining_hours"] == 24
    # deciding does not touch the ledger
    assert machine.ledger.get_balance("e1").remaining_hours == 40


def test_approve_without_enough_balance_reports_shortfall():
    machine = build_machine(remaining=10)

    transition = machine.manager_set_status(make_request(status=RequestStatus.PENDING), "Approved", NOW)

    assert transition.status is RequestStatus.INSUFFICIENT_BALANCE
    assert transition.balance_mutation is None
    assert transition.request.decision_at is None
    notice = transition.notifications[0]
    assert notice.kind is NotificationKind.MANAGER_INSUFFICIENT_BALANCE
    assert notice.recipient == MANAGER
    assert notice.payload["shortfall_hours"] == 6


def test_deny_sets_decision_time():
    transition = build_machine().manager_set_status(make_request(status=RequestStatus.PENDING), "denied", NOW)

    assert transition.status is RequestStatus.DENIED
    assert transition.request.decision_at == NOW
    assert transition.balance_mutation is None
    assert transition.notifications[0].kind is NotificationKind.EMPLOYEE_DENIED


def test_needs_info_keeps_request_open():
    machine = build_machine()

    transition = machine.manager_set_status(make_request(status=RequestStatus.PENDING), "Needs More Info", NOW)

    assert transition.status is RequestStatus.NEEDS_INFO
    assert transition.request.decision_at is None
    assert transition.notifications[0].kind is NotificationKind.EMPLOYEE_NEEDS_INFO

    follow_up = machine.manager_set_status(transition.request, "Approved", NOW)
    assert follow_up.applied
    assert follow_up.status is RequestStatus.APPROVED


def test_other_values_are_ignored():
    request = make_request(status=RequestStatus.PENDING)

    for value in ("Pending", "on hold", "", "Late Submission"):
        transition = build_machine().manager_set_status(request, value, NOW)
        assert not transition.applied
        assert transition.request is request
        assert transition.notifications == []


def test_terminal_requests_ignore_further_edits():
    machine = build_machine()

    for status in (
        RequestStatus.APPROVED,
        RequestStatus.DENIED,
        RequestStatus.LATE_SUBMISSION,
        RequestStatus.INSUFFICIENT_BALANCE,
    ):
        transition = machine.manager_set_status(make_request(status=status), "Approved", NOW)
        assert not transition.applied
        assert transition.balance_mutation is None
        assert status.value in transition.reason


def test_zero_hour_approval_has_no_balance_mutation():
    transition = build_machine().manager_set_status(make_request(hours=0, status=RequestStatus.PENDING), "Approved", NOW)

    assert transition.status is RequestStatus.APPROVED
    assert transition.balance_mutation is None


def test_unknown_employee_cannot_be_approved():
    request = make_request(status=RequestStatus.PENDING)
    request.employee_id = "ghost"

    transition = build_machine().manager_set_status(request, "Approved", NOW)

    assert transition.status is RequestStatus.INSUFFICIENT_BALANCE
    assert transition.notifications[0].payload["shortfall_hours"] == 16


def test_missing_hours_alert_has_no_negative_shortfall():
    transition = build_machine(remaining=40).manager_set_status(
        make_request(hours=None, status=RequestStatus.PENDING), "Approved", NOW
    )

    assert transition.status is RequestStatus.INSUFFICIENT_BALANCE
    assert transition.reason == "no hours requested"
    payload = transition.notifications[0].payload
    assert "shortfall_hours" not in payload
    assert payload["reason"] == "no hours requested"
