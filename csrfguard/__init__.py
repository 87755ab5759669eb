"""
csrfguard - stateless CSRF tokens bound to a session identifier.
"""
from .clock import FixedClock, system_clock
from .crypto import CSRFTokenManager
from .diagnostics import (
    DiagnosticsSink,
    MetricsDiagnosticsSink,
    NullDiagnosticsSink,
    StderrDiagnosticsSink,
    StructlogDiagnosticsSink,
)

__version__ = "0.1.0"

__all__ = [
    "CSRFTokenManager",
    "DiagnosticsSink",
    "StderrDiagnosticsSink",
    "StructlogDiagnosticsSink",
    "MetricsDiagnosticsSink",
    "NullDiagnosticsSink",
    "FixedClock",
    "system_clock",
]
