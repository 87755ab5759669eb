"""
Diagnostics sinks for the CSRF token codec.

The codec reports three classes of events and never consults the result:

- misuse: malformed tokens, undersized session identifiers
- validation failure: session mismatch, expired token, forged payload
- internal failure: any cryptographic error, always with its cause

Sinks must be safe to call from several threads when the codec is shared.
"""
import sys
from typing import IO, Optional, Protocol, runtime_checkable

import structlog

from .metrics import Metrics

MISUSE = "misuse"
VALIDATION = "validation"
INTERNAL = "internal"


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Capability the token codec reports to."""

    def notify_misuse(self, message: str) -> None:
        ...

    def notify_validation_failure(self, message: str) -> None:
        ...

    def notify_internal_failure(self, message: str, cause: BaseException) -> None:
        ...


class StderrDiagnosticsSink:
    """
    Default sink: one key=value line per notice on standard error.

    Internal failures include the formatted traceback of their cause.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self._log = structlog.wrap_logger(
            structlog.PrintLogger(file=stream or sys.stderr),
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", key="ts"),
                structlog.processors.format_exc_info,
                structlog.processors.KeyValueRenderer(
                    key_order=["ts", "level", "event", "detail"],
                    drop_missing=True,
                ),
            ],
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        )

    def notify_misuse(self, message: str) -> None:
        self._log.warning("csrf.misuse", detail=message)

    def notify_validation_failure(self, message: str) -> None:
        self._log.warning("csrf.validation_failed", detail=message)

    def notify_internal_failure(self, message: str, cause: BaseException) -> None:
        self._log.error("csrf.internal_failure", detail=message, exc_info=cause)


class StructlogDiagnosticsSink:
    """Routes notices into the application's structlog pipeline."""

    def __init__(self, logger=None):
        self._log = logger or structlog.get_logger("csrfguard.diagnostics")

    def notify_misuse(self, message: str) -> None:
        self._log.warning("csrf.misuse", detail=message)

    def notify_validation_failure(self, message: str) -> None:
        self._log.warning("csrf.validation_failed", detail=message)

    def notify_internal_failure(self, message: str, cause: BaseException) -> None:
        self._log.error(
            "csrf.internal_failure",
            detail=message,
            error=str(cause),
            error_type=cause.__class__.__name__,
            exc_info=cause,
        )


class NullDiagnosticsSink:
    """Discards every notice."""

    def notify_misuse(self, message: str) -> None:
        pass

    def notify_validation_failure(self, message: str) -> None:
        pass

    def notify_internal_failure(self, message: str, cause: BaseException) -> None:
        pass


class MetricsDiagnosticsSink:
    """
    Counts notices per kind in Prometheus and forwards them to another sink.

    Alerting or rate limiting can key on ``csrf_diagnostics_total{kind="validation"}``,
    which only moves on session mismatches, expired tokens and forged payloads.
    """

    def __init__(self, metrics: Metrics, inner: Optional[DiagnosticsSink] = None):
        self._metrics = metrics
        self._inner = inner or NullDiagnosticsSink()

    @property
    def inner(self) -> DiagnosticsSink:
        return self._inner

    def notify_misuse(self, message: str) -> None:
        self._metrics.record_diagnostic(MISUSE)
        self._inner.notify_misuse(message)

    def notify_validation_failure(self, message: str) -> None:
        self._metrics.record_diagnostic(VALIDATION)
        self._inner.notify_validation_failure(message)

    def notify_internal_failure(self, message: str, cause: BaseException) -> None:
        self._metrics.record_diagnostic(INTERNAL)
        self._inner.notify_internal_failure(message, cause)
