from __future__ import annotations
import json
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .errors import PersistenceError
from .models import EmployeeBalance, PTORequest, RequestStatus


class RequestStore(Protocol):
    """Persistence for request rows and employee balance rows."""

    def append_or_update(self, request: PTORequest) -> None:
        ...

    def record_decision(self, request: PTORequest, balance: Optional[EmployeeBalance] = None) -> None:
        ...

    def read_row(self, request_id: str) -> Optional[PTORequest]:
        ...

    def list_requests(self, status: Optional[RequestStatus] = None) -> List[PTORequest]:
        ...

    def list_employees(self) -> List[EmployeeBalance]:
        ...

    def get_employee(self, employee_id: str) -> Optional[EmployeeBalance]:
        ...

    def save_employee(self, balance: EmployeeBalance) -> None:
        ...


class DataStore:
    """JSON-file backed store; keeps everything in memory when ``path`` is None."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self.requests: Dict[str, PTORequest] = {}
        self.employees: Dict[str, EmployeeBalance] = {}
        if path is not None and path.exists():
            self.load()

    def load(self) -> None:
        try:
            content = json.loads(self.path.read_text())
            self.employees = {e["employee_id"]: EmployeeBalance(**e) for e in content.get("employees", [])}
            self.requests = {r["request_id"]: self._deserialize_request(r) for r in content.get("requests", [])}
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"Could not load store from {self.path}: {exc}") from exc

    def save(self) -> None:
        if self.path is None:
            return
        payload = {
            "employees": [asdict(e) for e in self.employees.values()],
            "requests": [self._serialize_request(r) for r in self.requests.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2))
        except OSError as exc:
            raise PersistenceError(f"Could not write store to {self.path}: {exc}") from exc

    def append_or_update(self, request: PTORequest) -> None:
        self.record_decision(request)

    def record_decision(self, request: PTORequest, balance: Optional[EmployeeBalance] = None) -> None:
        """Store a request row and, optionally, its employee balance row in one write.

        On a failed write the in-memory rows are put back as they were.
        """

        if not request.request_id:
            raise PersistenceError("Request rows need a request_id before they are stored")
        previous_request = self.requests.get(request.request_id)
        previous_balance = self.employees.get(balance.employee_id) if balance is not None else None
        self.requests[request.request_id] = request
        if balance is not None:
            self.employees[balance.employee_id] = balance
        try:
            self.save()
        except PersistenceError:
            self._restore(self.requests, request.request_id, previous_request)
            if balance is not None:
                self._restore(self.employees, balance.employee_id, previous_balance)
            raise

    @staticmethod
    def _restore(rows: dict, key: str, previous) -> None:
        if previous is None:
            rows.pop(key, None)
        else:
            rows[key] = previous

    def read_row(self, request_id: str) -> Optional[PTORequest]:
        return self.requests.get(request_id)

    def list_requests(self, status: Optional[RequestStatus] = None) -> List[PTORequest]:
        requests = list(self.requests.values())
        if status is not None:
            requests = [r for r in requests if r.status == status]
        return sorted(requests, key=lambda r: (r.submitted_at or datetime.min, r.request_id))

    def get_employee(self, employee_id: str) -> Optional[EmployeeBalance]:
        return self.employees.get(employee_id)

    def save_employee(self, balance: EmployeeBalance) -> None:
        self.employees[balance.employee_id] = balance
        self.save()

    def list_employees(self) -> List[EmployeeBalance]:
        """Return balance rows ordered by display name, then id."""

        return sorted(self.employees.values(), key=lambda e: ((e.name or "").lower(), e.employee_id))

    @staticmethod
    def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
        return datetime.fromisoformat(value) if value else None

    def _serialize_request(self, request: PTORequest) -> dict:
        payload = asdict(request)
        payload["start_date"] = request.start_date.isoformat()
        payload["end_date"] = request.end_date.isoformat()
        payload["status"] = request.status.value if request.status else None
        payload["submitted_at"] = self._format_timestamp(request.submitted_at)
        payload["decision_at"] = self._format_timestamp(request.decision_at)
        return payload

    def _deserialize_request(self, data: dict) -> PTORequest:
        data["start_date"] = date.fromisoformat(data["start_date"])
        data["end_date"] = date.fromisoformat(data["end_date"])
        data["status"] = RequestStatus(data["status"]) if data.get("status") else None
        data["submitted_at"] = self._parse_timestamp(data.get("submitted_at"))
        data["decision_at"] = self._parse_timestamp(data.get("decision_at"))
        return PTORequest(**data)
