import random

import pytest

from clustersync.monitoring.apiserver import ApiServerMetrics, HTTPError, RequestContext

EGRESS_TARGET = "testing_egress"
EXPECTED_METRICS_REGISTERED = 5
INGRESS_CODE = "200"
INGRESS_METHOD = "GET"
INGRESS_URL = "/api/v1/clusters/:name"
MIN_RAND = 1
MAX_RAND = 2.5
SUBSYSTEM = "testing"


def _parse(text):
    comments, samples = [], {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("#"):
            comments.append(line)
        else:
            key, _, value = line.rpartition(" ")
            samples[key] = float(value)
    return comments, samples


def _rand():
    return random.uniform(MIN_RAND, MAX_RAND)


def test_new_metrics():
    m = ApiServerMetrics(SUBSYSTEM, True)
    assert m.subsystem == SUBSYSTEM


def test_metrics_registered():
    m = ApiServerMetrics(SUBSYSTEM, True)
    assert len(m.metrics_list) == EXPECTED_METRICS_REGISTERED
    assert all(d.collector is not None for d in m.metrics_list)


def test_record_status_error_cnt():
    m = ApiServerMetrics(SUBSYSTEM, True)
    m.record_error_cnt(EGRESS_TARGET)
    assert m.err_cnt.count() == 1
    assert m.err_cnt.with_label_values(EGRESS_TARGET).value == 1.0


def test_record_egress_request_cnt():
    m = ApiServerMetrics(SUBSYSTEM, True)
    m.record_egress_request_cnt(EGRESS_TARGET)
    assert m.egress_req_cnt.count() == 1
    assert m.egress_req_cnt.with_label_values(EGRESS_TARGET).value == 1.0


def test_record_egress_request_dur():
    m = ApiServerMetrics(SUBSYSTEM, True)
    value = _rand()
    m.record_egress_request_dur(EGRESS_TARGET, value)
    s, t = SUBSYSTEM, EGRESS_TARGET
    expected = f"""
        # HELP {s}_egress_request_duration_seconds The Egress HTTP request latencies in seconds partitioned by target.
        # TYPE {s}_egress_request_duration_seconds histogram
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.005"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.01"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.025"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.05"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.1"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.25"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="0.5"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="1"}} 0
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="2.5"}} 1
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="5"}} 1
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="10"}} 1
        {s}_egress_request_duration_seconds_bucket{{target="{t}",le="+Inf"}} 1
        {s}_egress_request_duration_seconds_sum{{target="{t}"}} {value:.16f}
        {s}_egress_request_duration_seconds_count{{target="{t}"}} 1
    """
    got_comments, got_samples = _parse(m.egress_req_dur.expose())
    exp_comments, exp_samples = _parse(expected)
    assert got_comments == exp_comments
    assert got_samples == pytest.approx(exp_samples)


def test_record_ingress_request_cnt():
    m = ApiServerMetrics(SUBSYSTEM, True)
    m.record_ingress_request_cnt(INGRESS_CODE, INGRESS_METHOD, INGRESS_URL)
    assert m.ingress_req_cnt.count() == 1
    assert m.ingress_req_cnt.with_label_values(INGRESS_CODE, INGRESS_METHOD, INGRESS_URL).value == 1.0


def test_record_ingress_request_dur():
    m = ApiServerMetrics(SUBSYSTEM, True)
    value = _rand()
    m.record_ingress_request_dur(INGRESS_CODE, INGRESS_METHOD, INGRESS_URL, value)
    s = SUBSYSTEM
    lbl = f'code="{INGRESS_CODE}",method="{INGRESS_METHOD}",url="{INGRESS_URL}"'
    expected = f"""
        # HELP {s}_ingress_request_duration_seconds The HTTP request latencies in seconds partitioned by status code, HTTP method and url.
        # TYPE {s}_ingress_request_duration_seconds histogram
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.005"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.01"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.025"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.05"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.1"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.25"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="0.5"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="1"}} 0
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="2.5"}} 1
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="5"}} 1
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="10"}} 1
        {s}_ingress_request_duration_seconds_bucket{{{lbl},le="+Inf"}} 1
        {s}_ingress_request_duration_seconds_sum{{{lbl}}} {value:.16f}
        {s}_ingress_request_duration_seconds_count{{{lbl}}} 1
    """
    got_comments, got_samples = _parse(m.ingress_req_dur.expose())
    exp_comments, exp_samples = _parse(expected)
    assert got_comments == exp_comments
    assert got_samples == pytest.approx(exp_samples)


def test_middleware_records_success():
    m = ApiServerMetrics(SUBSYSTEM, True)
    handler = m.middleware(lambda ctx: "ok")
    assert handler(RequestContext(path=INGRESS_URL)) == "ok"
    assert m.ingress_req_cnt.with_label_values("200", "GET", INGRESS_URL).value == 1.0
    assert m.ingress_req_dur.with_label_values("200", "GET", INGRESS_URL).count == 1


def test_middleware_skips_metrics_path():
    m = ApiServerMetrics(SUBSYSTEM, True)
    handler = m.middleware(lambda ctx: "metrics")
    assert handler(RequestContext(path="/metrics")) == "metrics"
    assert m.ingress_req_cnt.count() == 0


def test_middleware_uses_http_error_code():
    m = ApiServerMetrics(SUBSYSTEM, True)

    def failing(ctx):
        raise HTTPError(404)

    with pytest.raises(HTTPError):
        m.middleware(failing)(RequestContext(path="/x", method="POST"))
    assert m.ingress_req_cnt.with_label_values("404", "POST", "/x").value == 1.0


def test_middleware_generic_error_is_500():
    m = ApiServerMetrics(SUBSYSTEM, True)

    def failing(ctx):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        m.middleware(failing)(RequestContext(path="/x"))
    assert m.ingress_req_cnt.with_label_values("500", "GET", "/x").value == 1.0


def test_middleware_url_label_from_context():
    m = ApiServerMetrics(SUBSYSTEM, True)
    m.url_label_from_context = "route"
    handler = m.middleware(lambda ctx: None)
    handler(RequestContext(path="/a/1", values={"route": "/a/:id"}))
    handler(RequestContext(path="/b"))
    assert m.ingress_req_cnt.with_label_values("200", "GET", "/a/:id").value == 1.0
    assert m.ingress_req_cnt.with_label_values("200", "GET", "unknown").value == 1.0