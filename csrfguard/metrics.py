"""
Prometheus metrics for csrfguard.
"""
from prometheus_client import CollectorRegistry, Counter, Info


class Metrics:
    """
    Centralized metrics for CSRF token issuance and validation.
    """

    def __init__(self, service_name: str = "csrfguard", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # Application Info
        self.app_info = Info(
            "csrfguard",
            "csrfguard library information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        # Token Metrics
        self.tokens_generated_total = Counter(
            "csrf_tokens_generated_total",
            "Total CSRF tokens generated",
            registry=self.registry,
        )

        self.tokens_validated_total = Counter(
            "csrf_tokens_validated_total",
            "Total CSRF token validations",
            ["result"],
            registry=self.registry,
        )

        # Diagnostics Metrics
        self.diagnostics_total = Counter(
            "csrf_diagnostics_total",
            "Diagnostics notices emitted by the token codec",
            ["kind"],
            registry=self.registry,
        )

    def record_generated(self):
        """Record a successfully generated token."""
        self.tokens_generated_total.inc()

    def record_validation(self, valid: bool):
        """Record a validation outcome."""
        result = "valid" if valid else "invalid"
        self.tokens_validated_total.labels(result=result).inc()

    def record_diagnostic(self, kind: str):
        """Record a diagnostics notice by kind (misuse, validation, internal)."""
        self.diagnostics_total.labels(kind=kind).inc()

    def value(self, name: str, labels: dict | None = None) -> float:
        """Read a sample back from the registry (0.0 when never recorded)."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample or 0.0
