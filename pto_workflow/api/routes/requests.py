from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from pto_workflow.api.deps import get_service
from pto_workflow.models import PTORequest, RequestStatus
from pto_workflow.service import EventOutcome, PTOWorkflowService

router = APIRouter(prefix="/requests", tags=["requests"])


class SubmissionIn(BaseModel):
    request_id: str | None = None
    employee_id: str = Field(min_length=1)
    employee_name: str = ""
    absence_type: str = ""
    start_date: date
    end_date: date | None = None
    hours_requested: float | None = None
    notes: str | None = None


class StatusEditIn(BaseModel):
    status: str


class IssueOut(BaseModel):
    kind: str
    message: str
    details: dict[str, Any] | None = None


class OutcomeOut(BaseModel):
    event: str
    request_id: str | None
    status: str | None
    applied: bool
    completed: bool
    notifications_sent: int
    reason: str | None = None
    issues: list[IssueOut] = []


class RequestOut(BaseModel):
    request_id: str
    employee_id: str
    employee_name: str
    absence_type: str
    start_date: date
    end_date: date
    hours_requested: float | None
    status: str | None
    submitted_at: datetime | None = None
    decision_at: datetime | None = None
    notes: str | None = None


def to_request_out(request: PTORequest) -> RequestOut:
    return RequestOut(
        request_id=request.request_id,
        employee_id=request.employee_id,
        employee_name=request.employee_name,
        absence_type=request.absence_type,
        start_date=request.start_date,
        end_date=request.end_date,
        hours_requested=request.hours_requested,
        status=request.status.value if request.status else None,
        submitted_at=request.submitted_at,
        decision_at=request.decision_at,
        notes=request.notes,
    )


def to_outcome_out(outcome: EventOutcome) -> OutcomeOut:
    return OutcomeOut(**outcome.to_dict())


@router.post("", response_model=OutcomeOut)
def submit_request(payload: SubmissionIn, service: PTOWorkflowService = Depends(get_service)) -> OutcomeOut:
    return to_outcome_out(service.on_submit(payload.model_dump()))


@router.post("/{request_id}/status", response_model=OutcomeOut)
def edit_status(
    request_id: str, payload: StatusEditIn, service: PTOWorkflowService = Depends(get_service)
) -> OutcomeOut:
    return to_outcome_out(service.on_status_edit(request_id, payload.status))


@router.get("", response_model=list[RequestOut])
def list_requests(status: str | None = None, service: PTOWorkflowService = Depends(get_service)):
    wanted = None
    if status:
        wanted = RequestStatus.parse(status)
        if wanted is None:
            raise HTTPException(status_code=422, detail=f"Unknown status {status}")
    return [to_request_out(r) for r in service.store.list_requests(wanted)]


@router.get("/{request_id}", response_model=RequestOut)
def get_request(request_id: str, service: PTOWorkflowService = Depends(get_service)):
    request = service.store.read_row(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return to_request_out(request)
