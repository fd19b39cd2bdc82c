"""Prometheus metrics for monitoring."""

from prometheus_client import CollectorRegistry, Counter, Histogram

from openhqm_rm.config import settings

# Create registry
registry = CollectorRegistry()

simulations_total = Counter(
    "openhqm_rm_simulations_total",
    "Total routing runs",
    ["outcome"],
    registry=registry,
)

simulation_duration_seconds = Histogram(
    "openhqm_rm_simulation_duration_seconds",
    "Routing run duration",
    registry=registry,
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

condition_evaluations_total = Counter(
    "openhqm_rm_condition_evaluations_total",
    "Condition evaluations",
    ["type", "result"],
    registry=registry,
)

transforms_total = Counter(
    "openhqm_rm_transforms_total",
    "JQ transforms applied to matched routes",
    ["status"],
    registry=registry,
)


class Metrics:
    """Metrics wrapper for easy access."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.simulations_total = simulations_total
        self.simulation_duration_seconds = simulation_duration_seconds
        self.condition_evaluations_total = condition_evaluations_total
        self.transforms_total = transforms_total
        self.registry = registry

    def record_simulation(self, matched: bool, duration_seconds: float) -> None:
        if not self.enabled:
            return
        self.simulations_total.labels(outcome="matched" if matched else "unmatched").inc()
        self.simulation_duration_seconds.observe(duration_seconds)

    def record_condition(self, condition_type: str, result: bool) -> None:
        if not self.enabled:
            return
        self.condition_evaluations_total.labels(
            type=condition_type, result="true" if result else "false"
        ).inc()

    def record_transform(self, success: bool) -> None:
        if not self.enabled:
            return
        self.transforms_total.labels(status="success" if success else "failure").inc()


metrics = Metrics(enabled=settings.monitoring.metrics_enabled)
