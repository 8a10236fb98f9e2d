"""Metrics recorded by the sync manager."""

from __future__ import annotations

from .collectors import CounterVec, HistogramVec, Registry, default_registry


class ManagerMetrics:
    """Requeue, reconciliation, enqueue and error metrics by target."""

    def __init__(self) -> None:
        self.requeue_cnt: CounterVec | None = None
        self.reconciliation_cnt: CounterVec | None = None
        self.reconciliation_dur: HistogramVec | None = None
        self.enqueue_cnt: CounterVec | None = None
        self.enqueue_dur: HistogramVec | None = None
        self.err_cnt: CounterVec | None = None
        self.metrics: list = []
        self.registry: Registry | None = None

    def init(self, is_unit_test: bool) -> None:
        reg = Registry() if is_unit_test else default_registry()
        self.registry = reg

        def add(collector):
            reg.register(collector)
            self.metrics.append(collector)
            return collector

        self.requeue_cnt = add(CounterVec(
            "cluster_registry_sync_manager_requeues_total",
            "The total number of controller-manager requeues partitioned by target.",
            ["target"],
        ))
        self.reconciliation_cnt = add(CounterVec(
            "cluster_registry_sync_manager_reconciliation_total",
            "How many reconciliations occurred, partitioned by target.",
            ["target"],
        ))
        self.reconciliation_dur = add(HistogramVec(
            "cluster_registry_sync_manager_reconciliation_duration_seconds",
            "The time taken to reconcile resources in seconds partitioned by target.",
            ["target"],
        ))
        self.enqueue_cnt = add(CounterVec(
            "cluster_registry_sync_manager_enqueue_total",
            "How many reconciliations were enqueued, partitioned by target.",
            ["target"],
        ))
        self.enqueue_dur = add(HistogramVec(
            "cluster_registry_sync_manager_enqueue_duration_seconds",
            "The time taken to enqueue a reconciliation in seconds partitioned by target.",
            ["target"],
        ))
        self.err_cnt = add(CounterVec(
            "cluster_registry_sync_manager_error_total",
            "The total number controller-manager errors partitioned by target.",
            ["target"],
        ))

    def record_requeue_cnt(self, target: str) -> None:
        self.requeue_cnt.with_label_values(target).inc()

    def record_reconciliation_cnt(self, target: str) -> None:
        self.reconciliation_cnt.with_label_values(target).inc()

    def record_reconciliation_dur(self, target: str, elapsed: float) -> None:
        self.reconciliation_dur.with_label_values(target).observe(elapsed)

    def record_enqueue_cnt(self, target: str) -> None:
        self.enqueue_cnt.with_label_values(target).inc()

    def record_enqueue_dur(self, target: str, elapsed: float) -> None:
        self.enqueue_dur.with_label_values(target).observe(elapsed)

    def record_error_cnt(self, target: str) -> None:
        self.err_cnt.with_label_values(target).inc()