"""
Observability metrics module.

The manager can operate in two modes:
1. No-op mode: every recording method exists but does nothing
2. Active mode: counters are kept in a Prometheus registry and exposed
   on /metrics

Each app gets its own registry so several apps (tests) can coexist in one
process.
"""

import typing as t

from flask import Flask, Response


class MetricsManager:
    """Central manager for checkout metrics."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self.registry = None
        self._initialize_metrics()

    def _initialize_metrics(self) -> None:
        if self.enabled:
            from prometheus_client import CollectorRegistry, Counter

            self.registry = CollectorRegistry()

            self.orders_created_total = Counter(
                "orders_created_total",
                "Orders created at checkout",
                ["method"],
                registry=self.registry,
            )
            self.order_transitions_total = Counter(
                "order_transitions_total",
                "Order status transitions",
                ["method", "status"],
                registry=self.registry,
            )
            self.gateway_requests_total = Counter(
                "gateway_requests_total",
                "Payment gateway calls",
                ["operation", "outcome"],
                registry=self.registry,
            )
        else:
            self.orders_created_total = _DummyMetric()
            self.order_transitions_total = _DummyMetric()
            self.gateway_requests_total = _DummyMetric()

    def record_order_created(self, method: str) -> None:
        self.orders_created_total.labels(method=method).inc()

    def record_transition(self, method: str, status: str) -> None:
        self.order_transitions_total.labels(method=method, status=status).inc()

    def record_gateway_call(self, operation: str, outcome: str) -> None:
        self.gateway_requests_total.labels(operation=operation, outcome=outcome).inc()


class _DummyMetric:
    """Mimics the Prometheus metric interface."""

    def labels(self, **labels: str) -> "_DummyMetric":
        return self

    def inc(self, amount: float = 1) -> None:
        pass


def register_metrics(app: Flask, manager: MetricsManager) -> None:
    """Expose /metrics when metrics are enabled."""
    if not manager.enabled:
        return

    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

    @app.route("/metrics", methods=["GET"])
    def metrics() -> t.Any:
        return Response(generate_latest(manager.registry), content_type=CONTENT_TYPE_LATEST)

    app.logger.info("Metrics endpoint registered at /metrics")
