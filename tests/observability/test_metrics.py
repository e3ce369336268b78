#!filepath: tests/observability/test_metrics.py

from containerd_metrics.observability.metrics import MetricRecorder


def test_counter_and_gauge():
    m = MetricRecorder(enabled=True)
    m.incr("commit.without_prep")
    m.incr("commit.without_prep", 2)
    m.gauge("store.pending", 7)

    assert m.get("commit.without_prep") == 3
    assert m.gauges["store.pending"] == 7
    assert m.get("missing") == 0


def test_metric_disabled():
    m = MetricRecorder(enabled=False)
    m.incr("x")
    m.gauge("y", 1)

    assert m.counters == {}
    assert m.gauges == {}


def test_log_summary(captured_logs):
    m = MetricRecorder()
    m.incr("container.reported")
    m.gauge("store.completed", 3)
    m.log_summary()

    output = "\n".join(captured_logs)
    assert "[Metric] container.reported = 1" in output
    assert "[Metric] store.completed = 3" in output
