"""
Prometheus metrics for route analysis.

Exposes evaluation outcomes, failures by error type, net profit distribution
and registry size. Pass a fresh CollectorRegistry to isolate instances.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


class AnalyzerMetrics:
    """
    Analyzer metrics collection

    Provides Prometheus-compatible metrics for:
    - Route evaluation outcomes
    - Collaborator and validation failures
    - Net profit in basis points
    - Registered routes and analysis runs
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY
        self._lock = threading.RLock()
        self._initialize_metrics()

    def _initialize_metrics(self):
        # === EVALUATION METRICS ===
        self.route_evaluations_total = Counter(
            "flash_arbitrage_route_evaluations_total",
            "Route evaluations by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.evaluation_failures_total = Counter(
            "flash_arbitrage_evaluation_failures_total",
            "Route evaluations that raised, by error type",
            ["error_type"],
            registry=self.registry,
        )

        self.net_profit_basis_points = Histogram(
            "flash_arbitrage_net_profit_basis_points",
            "Net profit of evaluated routes in basis points of principal",
            buckets=[0, 10, 25, 50, 100, 200, 500, 1000],
            registry=self.registry,
        )

        # === STATE METRICS ===
        self.registered_routes = Gauge(
            "flash_arbitrage_registered_routes",
            "Number of routes currently in the registry",
            registry=self.registry,
        )

        self.analysis_runs_total = Counter(
            "flash_arbitrage_analysis_runs_total",
            "Completed analysis runs by kind",
            ["kind"],
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "flash_arbitrage_last_run_timestamp_seconds",
            "Unix time of the last completed analysis run",
            registry=self.registry,
        )

    # === METRIC RECORDING METHODS ===

    def record_evaluation(self, is_profitable: bool, roi_bps: int):
        """Record a completed route evaluation"""
        with self._lock:
            outcome = "profitable" if is_profitable else "unprofitable"
            self.route_evaluations_total.labels(outcome=outcome).inc()
            self.net_profit_basis_points.observe(roi_bps)

    def record_failure(self, error_type: str):
        """Record a route evaluation that raised"""
        with self._lock:
            self.route_evaluations_total.labels(outcome="failed").inc()
            self.evaluation_failures_total.labels(error_type=error_type).inc()

    def update_registered_routes(self, count: int):
        with self._lock:
            self.registered_routes.set(count)

    def record_analysis_run(self, kind: str):
        with self._lock:
            self.analysis_runs_total.labels(kind=kind).inc()
            self.last_run_timestamp.set(time.time())

    def export(self) -> bytes:
        """Text exposition of this registry"""
        return generate_latest(self.registry)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Current totals read back from the registry."""
        get = self.registry.get_sample_value
        return {
            "profitable_evaluations": get(
                "flash_arbitrage_route_evaluations_total", {"outcome": "profitable"}
            )
            or 0.0,
            "unprofitable_evaluations": get(
                "flash_arbitrage_route_evaluations_total", {"outcome": "unprofitable"}
            )
            or 0.0,
            "failed_evaluations": get(
                "flash_arbitrage_route_evaluations_total", {"outcome": "failed"}
            )
            or 0.0,
            "registered_routes": get("flash_arbitrage_registered_routes") or 0.0,
            "timestamp": time.time(),
        }


# Global metrics instance (singleton pattern)
_global_metrics: Optional[AnalyzerMetrics] = None


def get_metrics() -> AnalyzerMetrics:
    """Get or create global metrics instance"""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = AnalyzerMetrics()
    return _global_metrics


def initialize_metrics(registry: Optional[CollectorRegistry] = None) -> AnalyzerMetrics:
    """Initialize global metrics with custom registry"""
    global _global_metrics
    _global_metrics = AnalyzerMetrics(registry)
    return _global_metrics
