import logging
import sys

import structlog


def _stderr_logger(*args) -> structlog.PrintLogger:
    # stdout belongs to command output. Looked up per logger so a swapped
    # sys.stderr is followed.
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure structlog; ``fmt`` is "json" for services or "console" for terminals."""
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        timestamper,
        structlog.processors.add_log_level,
    ]
    if fmt == "console":
        # ConsoleRenderer formats exceptions itself.
        tail = [structlog.dev.ConsoleRenderer(colors=False)]
    else:
        tail = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=shared_processors + tail,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=_stderr_logger,
    )

    logging.basicConfig(level=level.upper(), stream=sys.stderr)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
