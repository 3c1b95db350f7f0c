"""CSV exchange with the request and balance sheets.

The sheets address columns by position. This module is the only place
those positions appear; everything past it works with named fields.

Request sheet::

    0 request_id     4 start_date        8 notes
    1 employee_name  5 end_date          9 submitted_at
    2 employee_id    6 hours_requested  10 decision_at
    3 absence_type   7 status

Balance sheet::

    0 employee_id  1 name  2 email  3 used_hours  4 remaining_hours
"""

from __future__ import annotations
import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .models import EmployeeBalance, PTORequest, RequestStatus, parse_date, parse_hours


REQUEST_COLUMNS = [
    "request_id",
    "employee_name",
    "employee_id",
    "absence_type",
    "start_date",
    "end_date",
    "hours_requested",
    "status",
    "notes",
    "submitted_at",
    "decision_at",
]

BALANCE_COLUMNS = [
    "employee_id",
    "name",
    "email",
    "used_hours",
    "remaining_hours",
]


def _cell(row: Sequence[str], columns: List[str], name: str) -> str:
    index = columns.index(name)
    return row[index].strip() if index < len(row) and row[index] is not None else ""


def _timestamp(value: str) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def request_from_row(row: Sequence[str]) -> PTORequest:
    def cell(name: str) -> str:
        return _cell(row, REQUEST_COLUMNS, name)

    start_date = parse_date(cell("start_date"))
    return PTORequest(
        request_id=cell("request_id") or None,
        employee_name=cell("employee_name"),
        employee_id=cell("employee_id"),
        absence_type=cell("absence_type"),
        start_date=start_date,
        end_date=parse_date(cell("end_date")) if cell("end_date") else start_date,
        hours_requested=parse_hours(cell("hours_requested")),
        status=RequestStatus.parse(cell("status")),
        notes=cell("notes") or None,
        submitted_at=_timestamp(cell("submitted_at")),
        decision_at=_timestamp(cell("decision_at")),
    )


def request_to_row(request: PTORequest) -> List[str]:
    values = {
        "request_id": request.request_id or "",
        "employee_name": request.employee_name,
        "employee_id": request.employee_id,
        "absence_type": request.absence_type,
        "start_date": request.start_date.isoformat(),
        "end_date": request.end_date.isoformat(),
        "hours_requested": "" if request.hours_requested is None else f"{request.hours_requested:g}",
        "status": request.status.value if request.status else "",
        "notes": request.notes or "",
        "submitted_at": request.submitted_at.isoformat() if request.submitted_at else "",
        "decision_at": request.decision_at.isoformat() if request.decision_at else "",
    }
    return [values[name] for name in REQUEST_COLUMNS]


def balance_from_row(row: Sequence[str]) -> EmployeeBalance:
    def cell(name: str) -> str:
        return _cell(row, BALANCE_COLUMNS, name)

    return EmployeeBalance(
        employee_id=cell("employee_id"),
        name=cell("name") or None,
        email=cell("email") or None,
        used_hours=float(cell("used_hours") or 0),
        remaining_hours=float(cell("remaining_hours") or 0),
    )


def export_requests(path: Path, requests: Iterable[PTORequest]) -> None:
    with path.open("w", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(REQUEST_COLUMNS)
        for request in requests:
            writer.writerow(request_to_row(request))


def import_requests(path: Path) -> list[PTORequest]:
    with path.open(newline="") as handle:
        rows = list(csv.reader(handle))
    # First row is the sheet header.
    return [request_from_row(row) for row in rows[1:] if any(cell.strip() for cell in row)]


def import_balances(path: Path) -> list[EmployeeBalance]:
    with path.open(newline="") as handle:
        rows = list(csv.reader(handle))
    return [balance_from_row(row) for row in rows[1:] if any(cell.strip() for cell in row)]
