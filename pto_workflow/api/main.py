from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pto_workflow.api.routes import health
from pto_workflow.api.routes.employees import router as employee_router
from pto_workflow.api.routes.requests import router as request_router
from pto_workflow.core.config import get_settings
from pto_workflow.core.logging import configure_logging, get_logger
from pto_workflow.core.monitoring import configure_error_monitoring

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)
configure_error_monitoring(settings)
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(request_router)
app.include_router(employee_router)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("startup_complete", env=settings.env)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "PTO workflow triggers running", "environment": settings.env}
