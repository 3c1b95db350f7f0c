from fastapi import APIRouter, Depends

from pto_workflow.api.deps import get_service
from pto_workflow.service import PTOWorkflowService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Liveness probe with store counts")
def healthcheck(service: PTOWorkflowService = Depends(get_service)) -> dict[str, object]:
    return {
        "status": "ok",
        "requests": len(service.store.list_requests()),
        "employees": len(service.store.list_employees()),
    }
