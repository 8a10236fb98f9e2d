"""Metrics and request middleware for the API server."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable

from .collectors import CounterVec, HistogramVec, Registry, default_registry


@dataclass
class MetricDefinition:
    """Name, description, kind and labels of one metric, plus its collector."""

    id: str
    name: str
    description: str
    type: str
    args: tuple[str, ...]
    collector: Any = None


def _definitions() -> list[MetricDefinition]:
    return [
        MetricDefinition(
            "ingresReqCnt",
            "ingress_requests_total",
            "How many HTTP requests processed, partitioned by status code, HTTP method and url.",
            "counter_vec",
            ("code", "method", "url"),
        ),
        MetricDefinition(
            "ingressReqDur",
            "ingress_request_duration_seconds",
            "The HTTP request latencies in seconds partitioned by status code, HTTP method and url.",
            "histogram_vec",
            ("code", "method", "url"),
        ),
        MetricDefinition(
            "egressReqCnt",
            "egress_requests_total",
            "How many egress requests sent, partitioned by target.",
            "counter_vec",
            ("target",),
        ),
        MetricDefinition(
            "egressReqDur",
            "egress_request_duration_seconds",
            "The Egress HTTP request latencies in seconds partitioned by target.",
            "histogram_vec",
            ("target",),
        ),
        MetricDefinition(
            "ErrCnt",
            "error_count",
            "The total number of errors, partitioned by target.",
            "counter_vec",
            ("target",),
        ),
    ]


_ATTRIBUTES = {
    "ingresReqCnt": "ingress_req_cnt",
    "ingressReqDur": "ingress_req_dur",
    "egressReqCnt": "egress_req_cnt",
    "egressReqDur": "egress_req_dur",
    "ErrCnt": "err_cnt",
}


class HTTPError(Exception):
    """An error carrying an HTTP status code."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or HTTPStatus(code).phrase if code in HTTPStatus._value2member_map_ else message)
        self.code = code


@dataclass
class RequestContext:
    """The parts of a request the metrics middleware looks at."""

    path: str
    method: str = "GET"
    status: int = 200
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        return self.values.get(key)


Handler = Callable[[RequestContext], Any]


class ApiServerMetrics:
    """Ingress, egress and error metrics under one subsystem."""

    def __init__(self, subsystem: str, is_unit_test: bool) -> None:
        self.subsystem = subsystem
        self.is_unit_test = is_unit_test
        self.metrics_list = _definitions()
        self.url_label_from_context = ""
        self.registry = Registry() if is_unit_test else default_registry()
        self._register_metrics()

    def _register_metrics(self) -> None:
        for definition in self.metrics_list:
            if definition.type == "counter_vec":
                collector = CounterVec(definition.name, definition.description, definition.args, self.subsystem)
            elif definition.type == "histogram_vec":
                collector = HistogramVec(definition.name, definition.description, definition.args, self.subsystem)
            else:
                raise ValueError(f"unknown metric type: {definition.type}")
            self.registry.register(collector)
            definition.collector = collector
            setattr(self, _ATTRIBUTES[definition.id], collector)

    def record_error_cnt(self, target: str) -> None:
        self.err_cnt.with_label_values(target).inc()

    def record_egress_request_cnt(self, target: str) -> None:
        self.egress_req_cnt.with_label_values(target).inc()

    def record_egress_request_dur(self, target: str, elapsed: float) -> None:
        self.egress_req_dur.with_label_values(target).observe(elapsed)

    def record_ingress_request_cnt(self, code: str, method: str, url: str) -> None:
        self.ingress_req_cnt.with_label_values(code, method, url).inc()

    def record_ingress_request_dur(self, code: str, method: str, url: str, elapsed: float) -> None:
        self.ingress_req_dur.with_label_values(code, method, url).observe(elapsed)

    def middleware(self, next_handler: Handler) -> Handler:
        """Wrap a handler so each request is counted and timed."""

        def handler(ctx: RequestContext) -> Any:
            if ctx.path == "/metrics":
                return next_handler(ctx)

            start = time.perf_counter()
            error: BaseException | None = None
            try:
                return next_handler(ctx)
            except Exception as exc:
                error = exc
                raise
            finally:
                elapsed = time.perf_counter() - start
                status = ctx.status
                if error is not None:
                    if isinstance(error, HTTPError):
                        status = error.code
                    if status in (0, HTTPStatus.OK):
                        status = HTTPStatus.INTERNAL_SERVER_ERROR
                url = ctx.path
                if self.url_label_from_context:
                    label = ctx.get(self.url_label_from_context)
                    url = "unknown" if label is None else str(label)
                code = str(int(status))
                self.record_ingress_request_cnt(code, ctx.method, url)
                self.record_ingress_request_dur(code, ctx.method, url, elapsed)

        return handler