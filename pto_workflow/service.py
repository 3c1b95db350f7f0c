"""Entry points for the two workflow triggers.

``on_submit`` handles a new request submission and ``on_status_edit`` a
manager editing a request's status. Both run behind an error boundary: they
never raise, and report what went wrong through ``EventOutcome.issues``.
"""

from __future__ import annotations
import functools
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Set, Union
from uuid import uuid4

from .audit import AuditLogger
from .core.config import Settings, get_settings
from .core.logging import get_logger
from .core.monitoring import capture_exception
from .deadlines import DeadlinePolicy
from .errors import DuplicateRequest, ErrorKind, Issue, LookupMiss, MalformedRecord, PTOWorkflowError
from .ledger import BalanceLedger
from .models import PTORequest, RequestStatus, Transition, parse_date, parse_hours
from .notifications import LogDispatcher, NotificationDispatcher, SmtpDispatcher, dispatch_notifications
from .storage import DataStore, RequestStore
from .workflow import ApprovalStateMachine

logger = get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass
class EventOutcome:
    event: str
    request_id: Optional[str] = None
    status: Optional[RequestStatus] = None
    applied: bool = False
    completed: bool = False
    notifications_sent: int = 0
    reason: Optional[str] = None
    issues: List[Issue] = field(default_factory=list)

    @property
    def kinds(self) -> Set[ErrorKind]:
        return {issue.kind for issue in self.issues}

    def add(self, issue: Issue) -> None:
        self.issues.append(issue)

    def to_dict(self) -> dict:
        return {
            "event": self.event,
            "request_id": self.request_id,
            "status": self.status.value if self.status else None,
            "applied": self.applied,
            "completed": self.completed,
            "notifications_sent": self.notifications_sent,
            "reason": self.reason,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def new_request_id() -> str:
    return str(uuid4())


def parse_submission(record: Mapping[str, Any]) -> PTORequest:
    """Build a request from submitted form fields."""

    employee_id = str(record.get("employee_id") or "").strip()
    if not employee_id:
        raise MalformedRecord("Submission is missing employee_id")
    try:
        start_date = parse_date(record.get("start_date"))
        end_date = parse_date(record.get("end_date")) if record.get("end_date") else start_date
        hours = parse_hours(record.get("hours_requested"))
    except (TypeError, ValueError) as exc:
        raise MalformedRecord(f"Submission fields could not be parsed: {exc}") from exc
    return PTORequest(
        request_id=(str(record["request_id"]).strip() or None) if record.get("request_id") else None,
        employee_id=employee_id,
        employee_name=str(record.get("employee_name") or "").strip(),
        absence_type=str(record.get("absence_type") or "").strip(),
        start_date=start_date,
        end_date=end_date,
        hours_requested=hours,
        notes=record.get("notes") or None,
    )


def error_boundary(event: str):
    """Run an entry point so that nothing it raises reaches the trigger source."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self: "PTOWorkflowService", *args, **kwargs) -> EventOutcome:
            outcome = EventOutcome(event=event)
            try:
                func(self, outcome, *args, **kwargs)
                outcome.completed = True
            except PTOWorkflowError as exc:
                logger.error(
                    "event_failed",
                    trigger=event,
                    request_id=outcome.request_id,
                    kind=exc.kind.value,
                    error=exc.message,
                )
                outcome.add(exc.to_issue())
            except Exception as exc:
                logger.exception("event_crashed", trigger=event, request_id=outcome.request_id)
                capture_exception(exc)
                outcome.add(Issue(ErrorKind.UNEXPECTED, str(exc) or exc.__class__.__name__))
            try:
                self._record(outcome)
            except Exception as exc:
                # Recording is best effort; the outcome still goes back to the trigger.
                capture_exception(exc)
            return outcome

        return wrapper

    return decorator


class PTOWorkflowService:
    def __init__(
        self,
        store: RequestStore,
        dispatcher: NotificationDispatcher,
        manager_email: str,
        policy: DeadlinePolicy | None = None,
        clock: Clock = datetime.now,
        audit: AuditLogger | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.ledger = BalanceLedger(store)
        self.machine = ApprovalStateMachine(self.ledger, manager_email, policy)
        self.clock = clock
        self.audit = audit

    @classmethod
    def from_settings(cls, settings: Settings | None = None, store: RequestStore | None = None) -> "PTOWorkflowService":
        settings = settings or get_settings()
        if settings.dry_run:
            dispatcher: NotificationDispatcher = LogDispatcher()
        else:
            dispatcher = SmtpDispatcher(
                host=settings.smtp_host,
                port=settings.smtp_port,
                from_email=settings.from_email,
                user=settings.smtp_user,
                password=settings.smtp_password,
                starttls=settings.smtp_starttls,
            )
        return cls(
            store=store if store is not None else DataStore(settings.store_path),
            dispatcher=dispatcher,
            manager_email=settings.manager_email,
            policy=DeadlinePolicy(settings.vacation_lead_days, settings.sick_lead_days),
            audit=AuditLogger(settings.audit_log_path) if settings.audit_log_path else None,
        )

    @error_boundary("submit")
    def on_submit(self, outcome: EventOutcome, record: Union[PTORequest, Mapping[str, Any]]) -> None:
        request = record if isinstance(record, PTORequest) else parse_submission(record)
        if not request.request_id:
            request = replace(request, request_id=new_request_id())
        outcome.request_id = request.request_id
        if self.store.read_row(request.request_id) is not None:
            raise DuplicateRequest(f"Request {request.request_id} was already submitted")

        self._check_employee(outcome, request)
        transition = self.machine.submit(request, self.clock())
        if transition.status is RequestStatus.LATE_SUBMISSION:
            outcome.add(Issue(ErrorKind.VALIDATION_FAILURE, transition.reason or "deadline missed"))
            logger.info("submission_late", request_id=request.request_id, reason=transition.reason)
        self._apply(outcome, transition)

    @error_boundary("status_edit")
    def on_status_edit(self, outcome: EventOutcome, request_id: str, new_value: Any) -> None:
        outcome.request_id = request_id
        request = self.store.read_row(request_id)
        if request is None:
            raise LookupMiss(f"No request with id {request_id}")

        transition = self.machine.manager_set_status(request, new_value, self.clock())
        if not transition.applied:
            outcome.status = request.status
            outcome.reason = transition.reason
            logger.info(
                "status_edit_ignored",
                request_id=request_id,
                status=request.status.value if request.status else None,
                new_value=str(new_value),
                reason=transition.reason,
            )
            return

        self._check_employee(outcome, request)
        self._apply(outcome, transition)

    def _check_employee(self, outcome: EventOutcome, request: PTORequest) -> None:
        if self.ledger.find(request.employee_id) is None:
            outcome.add(
                Issue(
                    ErrorKind.LOOKUP_MISS,
                    f"No balance row for employee {request.employee_id}",
                    {"employee_id": request.employee_id},
                )
            )

    def _apply(self, outcome: EventOutcome, transition: Transition) -> None:
        # Balance and row go out in one write, before any notification; a
        # failed send does not undo them.
        mutation = transition.balance_mutation
        balance = None
        if mutation is not None:
            balance = self.ledger.deducted(mutation.employee_id, mutation.hours)
            if balance is None:
                outcome.add(Issue(ErrorKind.LOOKUP_MISS, f"Balance not updated for employee {mutation.employee_id}"))
        self.store.record_decision(transition.request, balance)
        if balance is not None:
            logger.info(
                "balance_updated",
                employee_id=balance.employee_id,
                hours=mutation.hours,
                used_hours=balance.used_hours,
                remaining_hours=balance.remaining_hours,
            )

        outcome.applied = True
        outcome.status = transition.status
        outcome.reason = transition.reason
        logger.info(
            "request_transitioned",
            request_id=transition.request.request_id,
            previous_status=transition.previous_status.value if transition.previous_status else None,
            status=transition.status.value if transition.status else None,
        )

        sent, issues = dispatch_notifications(self.dispatcher, transition.notifications)
        outcome.notifications_sent = sent
        outcome.issues.extend(issues)

    def _record(self, outcome: EventOutcome) -> None:
        logger.info(
            "event_handled",
            trigger=outcome.event,
            request_id=outcome.request_id,
            completed=outcome.completed,
            issues=sorted(kind.value for kind in outcome.kinds),
        )
        if self.audit is None:
            return
        try:
            self.audit.record(outcome.to_dict())
        except OSError:
            logger.exception("audit_write_failed", trigger=outcome.event, request_id=outcome.request_id)
