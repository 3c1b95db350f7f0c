import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "PTO Workflow"
    log_level: str = "INFO"
    log_format: str = Field(default="json", description="json or console")
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")

    store_path: Path = Field(default=Path("data/pto_store.json"), description="JSON file holding requests and balances")
    audit_log_path: Path | None = Field(default=Path("data/audit_log.jsonl"), description="Administrative event log")

    manager_email: str = Field(default="manager@example.com", description="Single manager notification address")
    vacation_lead_days: int = Field(default=14, ge=0)
    sick_lead_days: int = Field(default=1, ge=0)

    dry_run: bool = Field(default=True, description="Log notifications instead of sending mail")
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_starttls: bool = True
    from_email: str = "pto-bot@example.com"

    cors_origins: Annotated[list[str], NoDecode] = []

    model_config = SettingsConfigDict(env_prefix="PTO_", extra="ignore")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("PTO_ENV", "dev")
    base_dir = Path.cwd()
    env_file = base_dir / f".env.{env}"
    default_file = base_dir / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
