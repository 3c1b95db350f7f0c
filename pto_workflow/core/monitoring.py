import sentry_sdk

from .config import Settings, get_settings


def configure_error_monitoring(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.2)
        return True
    return False


def capture_exception(exc: BaseException) -> None:
    # No-op until configure_error_monitoring has initialised a client.
    sentry_sdk.capture_exception(exc)
