"""Metrics recorded by the cluster registry client."""

from __future__ import annotations

from .collectors import CounterVec, Gauge, HistogramVec, Registry, default_registry


class ClientMetrics:
    """Egress request metrics and the dead man's switch timestamp."""

    def __init__(self) -> None:
        self.egress_req_cnt: CounterVec | None = None
        self.egress_req_dur: HistogramVec | None = None
        self.dms_last_timestamp: Gauge | None = None
        self.metrics: list = []
        self.registry: Registry | None = None

    def init(self, is_unit_test: bool) -> None:
        reg = Registry() if is_unit_test else default_registry()
        self.registry = reg
        self.egress_req_cnt = reg.register(
            CounterVec(
                "cluster_registry_cc_egress_requests_total",
                "How many egress requests sent, partitioned by target.",
                ["target"],
            )
        )
        self.metrics.append(self.egress_req_cnt)
        self.egress_req_dur = reg.register(
            HistogramVec(
                "cluster_registry_cc_egress_request_duration_seconds",
                "The Egress HTTP request latencies in seconds partitioned by target.",
                ["target"],
            )
        )
        self.metrics.append(self.egress_req_dur)
        self.dms_last_timestamp = reg.register(
            Gauge(
                "cluster_registry_cc_deadmansswitch_last_timestamp_seconds",
                "Last timestamp when a DeadMansSwitch alert was received.",
            )
        )
        self.metrics.append(self.dms_last_timestamp)

    def record_egress_request_cnt(self, target: str) -> None:
        self.egress_req_cnt.with_label_values(target).inc()

    def record_egress_request_dur(self, target: str, elapsed: float) -> None:
        self.egress_req_dur.with_label_values(target).observe(elapsed)

    def record_dms_last_timestamp(self) -> None:
        self.dms_last_timestamp.set_to_current_time()

    def get_metric_by_name(self, name: str):
        """Return the collector with this fully qualified name, or None."""
        return next((m for m in self.metrics if m.name == name), None)