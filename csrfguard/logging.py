"""
Structured logging configuration using structlog.

Standardized log format:
{
    "ts": "2025-11-18T04:30:00.123456Z",
    "level": "warning",
    "service": "csrfguard",
    "event": "csrf.validation_failed",
    "module": "csrfguard.diagnostics",
    "func_name": "notify_validation_failure",
    "lineno": 42,
    ...additional context...
}
"""
import structlog
import logging
from typing import Any, Callable


def add_service_name(service_name: str) -> Callable[[Any, str, dict], dict]:
    """Build a processor that adds the service name to all log entries."""
    def processor(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict["service"] = service_name
        return event_dict
    return processor


def setup_logging(json_output: bool = True, service_name: str = "csrfguard", level: int = logging.INFO):
    """
    Configure structured logging with standardized fields.

    Args:
        json_output: If True, output JSON logs. If False, use console format.
        service_name: Name of the embedding service.
        level: Minimum level passed through.
    """
    # Shared processors
    shared_processors = [
        # Add contextvars (e.g. a request id bound by the web layer)
        structlog.contextvars.merge_contextvars,
        add_service_name(service_name),
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.processors.add_log_level,
        # Add module/function/line info
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Standard library loggers used by the crypto modules
    logging.basicConfig(
        format="%(message)s",
        level=level,
    )


def setup_logging_from_settings(settings=None, service_name: str = "csrfguard"):
    """
    Configure logging from application settings.

    Args:
        settings: Settings instance (default: get_settings())
        service_name: Name of the embedding service.
    """
    from .config import get_settings

    settings = settings or get_settings()
    setup_logging(json_output=settings.LOG_JSON, service_name=service_name)


def get_logger(name: str | None = None):
    """Get a configured structlog logger."""
    return structlog.get_logger(name)
