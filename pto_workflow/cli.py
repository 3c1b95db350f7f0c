from __future__ import annotations
import argparse
from datetime import datetime
from pathlib import Path

from .core.config import get_settings
from .core.logging import configure_logging
from .core.monitoring import configure_error_monitoring
from .csv_io import export_requests, import_balances, import_requests
from .deadlines import DeadlinePolicy, validate_deadline
from .models import EmployeeBalance, RequestStatus, parse_date
from .service import EventOutcome, PTOWorkflowService
from .storage import DataStore


# Overrides the configured store path when set.
DEFAULT_DATA_PATH: Path | None = None


def store_from_args(args: argparse.Namespace) -> DataStore:
    path = getattr(args, "store", None) or DEFAULT_DATA_PATH or get_settings().store_path
    return DataStore(Path(path))


def service_from_args(args: argparse.Namespace) -> PTOWorkflowService:
    return PTOWorkflowService.from_settings(get_settings(), store=store_from_args(args))


def parse_status(value: str) -> RequestStatus:
    status = RequestStatus.parse(value)
    if status is None:
        raise argparse.ArgumentTypeError(f"unknown status {value!r}")
    return status


def print_outcome(outcome: EventOutcome) -> None:
    status = outcome.status.value if outcome.status else "-"
    verb = "updated" if outcome.applied else "unchanged"
    print(f"{outcome.request_id} {status} ({verb}, {outcome.notifications_sent} notifications)")
    if outcome.reason:
        print(f"  reason: {outcome.reason}")
    for issue in outcome.issues:
        print(f"  {issue.kind.value}: {issue.message}")


def cmd_add_employee(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    balance = EmployeeBalance(
        employee_id=args.employee_id,
        name=args.name,
        email=args.email,
        used_hours=args.used,
        remaining_hours=args.remaining,
    )
    store.save_employee(balance)
    print(f"Added employee {balance.employee_id} with {balance.remaining_hours:g} hours remaining")


def cmd_list_employees(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    for balance in store.list_employees():
        print(
            f"{balance.employee_id} {balance.name or '-'} <{balance.email or '-'}> "
            f"used: {balance.used_hours:g} remaining: {balance.remaining_hours:g}"
        )


def cmd_balance(args: argparse.Namespace) -> None:
    service = service_from_args(args)
    snapshot = service.ledger.get_balance(args.employee_id)
    print(f"{args.employee_id} used: {snapshot.used_hours:g} remaining: {snapshot.remaining_hours:g}")


def cmd_submit(args: argparse.Namespace) -> None:
    service = service_from_args(args)
    outcome = service.on_submit(
        {
            "request_id": args.id,
            "employee_id": args.employee_id,
            "employee_name": args.name,
            "absence_type": args.absence_type,
            "start_date": args.start_date,
            "end_date": args.end or args.start_date,
            "hours_requested": args.hours,
            "notes": args.notes,
        }
    )
    print_outcome(outcome)


def cmd_set_status(args: argparse.Namespace) -> None:
    service = service_from_args(args)
    print_outcome(service.on_status_edit(args.request_id, args.status))


def cmd_list_requests(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    for request in store.list_requests(args.status):
        status = request.status.value if request.status else "-"
        print(
            f"{request.request_id} {request.employee_id} {request.absence_type} "
            f"{request.start_date} - {request.end_date} {request.hours_requested}h status={status}"
        )


def cmd_check_deadline(args: argparse.Namespace) -> None:
    settings = get_settings()
    today = datetime.fromisoformat(args.today) if args.today else datetime.now()
    policy = DeadlinePolicy(settings.vacation_lead_days, settings.sick_lead_days)
    check = validate_deadline(args.absence_type, parse_date(args.start_date), today, policy)
    verdict = "ok" if check.valid else "late"
    print(f"{verdict} ({check.absence_class.value}, {check.days_until_start} days until start)")
    if check.reason:
        print(check.reason)


def cmd_import_balances(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    path = Path(args.path)
    balances = import_balances(path)
    for balance in balances:
        store.employees[balance.employee_id] = balance
    store.save()
    print(f"Imported {len(balances)} balances from {path}")


def cmd_import_requests(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    path = Path(args.path)
    requests = [request for request in import_requests(path) if request.request_id]
    for request in requests:
        store.requests[request.request_id] = request
    store.save()
    print(f"Imported {len(requests)} requests from {path}")


def cmd_export_requests(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    path = Path(args.path)
    export_requests(path, store.list_requests(args.status))
    print(f"Exported requests to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PTO request workflow CLI")
    parser.add_argument("--store", help="Path to the JSON store")
    sub = parser.add_subparsers(dest="command", required=True)

    employee = sub.add_parser("add-employee", help="Seed an employee balance row")
    employee.add_argument("employee_id")
    employee.add_argument("--name")
    employee.add_argument("--email")
    employee.add_argument("--used", type=float, default=0.0, help="Hours already used")
    employee.add_argument("--remaining", type=float, default=0.0, help="Hours remaining")
    employee.set_defaults(func=cmd_add_employee)

    list_employees = sub.add_parser("list-employees", help="List employee balances")
    list_employees.set_defaults(func=cmd_list_employees)

    balance = sub.add_parser("balance", help="Show an employee's PTO balance")
    balance.add_argument("employee_id")
    balance.set_defaults(func=cmd_balance)

    submit = sub.add_parser("submit", help="Submit a PTO request")
    submit.add_argument("employee_id")
    submit.add_argument("absence_type")
    submit.add_argument("start_date")
    submit.add_argument("hours", type=float)
    submit.add_argument("--end", help="Last day of the absence (defaults to the start date)")
    submit.add_argument("--name", default="")
    submit.add_argument("--notes")
    submit.add_argument("--id")
    submit.set_defaults(func=cmd_submit)

    set_status = sub.add_parser("set-status", help="Manager decision on a request")
    set_status.add_argument("request_id")
    set_status.add_argument("status", help="Approved, Denied or 'Needs More Info'")
    set_status.set_defaults(func=cmd_set_status)

    list_requests = sub.add_parser("list-requests", help="List requests")
    list_requests.add_argument("--status", type=parse_status)
    list_requests.set_defaults(func=cmd_list_requests)

    check = sub.add_parser("check-deadline", help="Evaluate the lead-time rule without submitting")
    check.add_argument("absence_type")
    check.add_argument("start_date")
    check.add_argument("--today", help="ISO date or datetime to evaluate from")
    check.set_defaults(func=cmd_check_deadline)

    imp_balances = sub.add_parser("import-balances", help="Import balance sheet CSV")
    imp_balances.add_argument("path")
    imp_balances.set_defaults(func=cmd_import_balances)

    imp_requests = sub.add_parser("import-requests", help="Import request sheet CSV")
    imp_requests.add_argument("path")
    imp_requests.set_defaults(func=cmd_import_requests)

    export = sub.add_parser("export-requests", help="Export requests to request sheet CSV")
    export.add_argument("path")
    export.add_argument("--status", type=parse_status)
    export.set_defaults(func=cmd_export_requests)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    configure_error_monitoring(settings)
    args.func(args)


if __name__ == "__main__":
    main()
