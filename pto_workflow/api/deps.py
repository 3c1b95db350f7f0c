from functools import lru_cache

from pto_workflow.core.config import get_settings
from pto_workflow.service import PTOWorkflowService


@lru_cache
def get_service() -> PTOWorkflowService:
    return PTOWorkflowService.from_settings(get_settings())
