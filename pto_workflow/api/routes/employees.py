from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pto_workflow.api.deps import get_service
from pto_workflow.service import PTOWorkflowService

router = APIRouter(prefix="/employees", tags=["employees"])


class BalanceOut(BaseModel):
    employee_id: str
    used_hours: float
    remaining_hours: float
    known: bool


@router.get("/{employee_id}/balance", response_model=BalanceOut)
def get_balance(employee_id: str, service: PTOWorkflowService = Depends(get_service)) -> BalanceOut:
    # Unknown employees read as a zero balance, same as the ledger.
    snapshot = service.ledger.get_balance(employee_id)
    return BalanceOut(
        employee_id=employee_id,
        used_hours=snapshot.used_hours,
        remaining_hours=snapshot.remaining_hours,
        known=service.ledger.find(employee_id) is not None,
    )
