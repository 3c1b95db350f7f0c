from datetime import date, datetime

from pto_workflow.csv_io import (
    REQUEST_COLUMNS,
    export_requests,
    import_balances,
    import_requests,
    request_from_row,
    request_to_row,
)
from pto_workflow.models import PTORequest, RequestStatus


def test_request_from_row_maps_sheet_positions():
    row = [
        "PTO-1",
        "Ann Lee",
        "e1",
        "Vacation",
        "2026-04-06",
        "2026-04-07",
        "16",
        "Needs More Info",
        "family trip",
        "2026-03-02T09:00:00",
        "",
    ]

    request = request_from_row(row)

    assert request.request_id == "PTO-1"
    assert request.employee_name == "Ann Lee"
    assert request.employee_id == "e1"
    assert request.start_date == date(2026, 4, 6)
    assert request.hours_requested == 16.0
    assert request.status is RequestStatus.NEEDS_INFO
    assert request.notes == "family trip"
    assert request.submitted_at == datetime(2026, 3, 2, 9, 0)
    assert request.decision_at is None


def test_short_rows_leave_trailing_fields_empty():
    request = request_from_row(["", "Bo", "e2", "Sick", "2026-04-06", "", ""])

    assert request.request_id is None
    assert request.end_date == date(2026, 4, 6)
    assert request.hours_requested is None
    assert request.status is None


def test_request_to_row_follows_column_order():
    request = PTORequest(
        request_id="PTO-9",
        employee_id="e1",
        employee_name="Ann Lee",
        absence_type="Vacation",
        start_date=date(2026, 4, 6),
        end_date=date(2026, 4, 7),
        hours_requested=7.5,
        status=RequestStatus.APPROVED,
        decision_at=datetime(2026, 3, 3, 14, 0),
    )

    row = request_to_row(request)

    assert len(row) == len(REQUEST_COLUMNS)
    assert row[REQUEST_COLUMNS.index("hours_requested")] == "7.5"
    assert row[7] == "Approved"
    assert row[10] == "2026-03-03T14:00:00"


def test_export_then_import_requests(tmp_path):
    path = tmp_path / "requests.csv"
    original = request_from_row(["PTO-1", "Ann Lee", "e1", "Vacation", "2026-04-06", "2026-04-07", "16", "Pending"])

    export_requests(path, [original])

    assert path.read_text().splitlines()[0].startswith("request_id,employee_name,employee_id")
    assert import_requests(path) == [original]


def test_import_balances_skips_header_and_blank_rows(tmp_path):
    path = tmp_path / "balances.csv"
    path.write_text(
        "Employee ID,Name,Email,Used,Remaining\n"
        "e1,Ann Lee,ann@example.com,8,72\n"
        ",,,,\n"
        "e2,Bo,,,40\n"
    )

    balances = import_balances(path)

    assert [b.employee_id for b in balances] == ["e1", "e2"]
    assert balances[0].email == "ann@example.com"
    assert balances[0].used_hours == 8
    assert balances[1].email is None
    assert balances[1].used_hours == 0
    assert balances[1].remaining_hours == 40
