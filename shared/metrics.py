"""
Shared metrics configuration for the Visibility Logic service.
"""

import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for the visibility engines."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Own registry per collector so several engines can live in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.3.0"
        })

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_visibility_metrics()
        self._setup_migration_metrics()

    def _setup_visibility_metrics(self):
        """Set up condition evaluation metrics."""
        self._metrics["visibility_evaluations_total"] = Counter(
            "visibility_evaluations_total",
            "Total visibility decisions",
            ["visible"],
            registry=self.registry
        )

        self._metrics["condition_errors_total"] = Counter(
            "condition_errors_total",
            "Condition modules that raised during evaluation",
            ["module"],
            registry=self.registry
        )

    def _setup_migration_metrics(self):
        """Set up migration runner metrics."""
        self._metrics["migration_runs_total"] = Counter(
            "migration_runs_total",
            "Total migration runs",
            ["status"],
            registry=self.registry
        )

        self._metrics["migration_step_duration_seconds"] = Histogram(
            "migration_step_duration_seconds",
            "Migration step duration in seconds",
            ["version"],
            registry=self.registry
        )

        self._metrics["migration_items_rewritten_total"] = Counter(
            "migration_items_rewritten_total",
            "Content items rewritten by a migration step",
            ["version"],
            registry=self.registry
        )

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read a single sample back from the registry."""
        return self.registry.get_sample_value(name, labels)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)

    def increment_counter(self, metric_name: str, amount: float = 1, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            with self._lock:
                self._metrics[metric_name].labels(**labels).inc(amount)


def get_metrics_collector(service_name: str = "visibility", registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
