import threading
from datetime import datetime, timedelta, timezone

import pytest

from statskit.prometheus.labels import Label
from statskit.prometheus.metric import (
    Metric,
    MetricBucket,
    MetricEntry,
    MetricKey,
    MetricState,
    MetricStore,
    MetricType,
    le,
    make_metric_buckets,
    next_le,
    sort_metrics,
    value_of,
)
from statskit.value import Value, ValueType
from statskit.value import value_of as wrap

BUCKETS = [wrap(0.25), wrap(0.5), wrap(0.75), wrap(1.0)]


@pytest.mark.parametrize(
    "number, text",
    [(0, "untyped"), (1, "counter"), (2, "gauge"), (3, "histogram"), (4, "summary")],
)
def test_metric_type_str(number, text):
    assert str(MetricType(number)) == text


def test_root_name():
    assert Metric(mtype=MetricType.HISTOGRAM, name="C_bucket").root_name() == "C"
    assert Metric(mtype=MetricType.COUNTER, name="a_b").root_name() == "a_b"
    with pytest.raises(ValueError):
        Metric(mtype=MetricType.HISTOGRAM, name="plain").root_name()


def test_metric_key():
    assert Metric(scope="s", name="n").key() == MetricKey("s", "n")


def test_value_of():
    assert value_of(wrap(True)) == 1.0
    assert value_of(wrap(False)) == 0.0
    assert value_of(wrap(-3)) == -3.0
    assert value_of(Value(ValueType.UINT, 7)) == 7.0
    assert value_of(wrap(0.5)) == 0.5
    assert value_of(wrap(timedelta(seconds=1, milliseconds=500))) == 1.5
    assert value_of(wrap(timedelta(seconds=-2))) == -2.0
    assert value_of(wrap(None)) == 0.0


def test_le():
    assert le([]) == ""
    assert le(BUCKETS) == "0.25:0.5:0.75:1"
    assert le([wrap(0.001), wrap(float("inf"))]) == "0.001:+Inf"


def test_next_le():
    assert next_le("0.25:0.5:1") == ("0.25", "0.5:1")
    assert next_le("1") == ("1", "")
    assert next_le("") == ("", "")


def test_make_metric_buckets():
    labels = (Label("a", "1"),)
    assert make_metric_buckets([wrap(0.5), wrap(1.0)], labels) == [
        MetricBucket(limit=0.5, labels=(Label("a", "1"), Label("le", "0.5"))),
        MetricBucket(limit=1.0, labels=(Label("a", "1"), Label("le", "1"))),
    ]


def test_histogram_state_update():
    state = MetricState()
    for v in (0.1, 0.6, 5.0):
        state.update(MetricType.HISTOGRAM, v, None, BUCKETS)
    assert [b.count for b in state.buckets] == [1, 0, 1, 0]
    assert state.count == 3
    assert state.sum == pytest.approx(5.7)


def test_metric_store():
    inputs = [
        Metric(mtype=MetricType.COUNTER, scope="test", name="A", value=1),
        Metric(mtype=MetricType.COUNTER, scope="test", name="A", value=2),
        Metric(mtype=MetricType.HISTOGRAM, scope="test", name="C", value=0.1),
        Metric(mtype=MetricType.GAUGE, scope="test", name="B", value=1, labels=(Label("a", "1"), Label("b", "2"))),
        Metric(mtype=MetricType.COUNTER, scope="test", name="A", value=4, labels=(Label("id", "123"),)),
        Metric(mtype=MetricType.GAUGE, scope="test", name="B", value=42, labels=(Label("a", "1"),)),
        Metric(mtype=MetricType.HISTOGRAM, scope="test", name="C", value=0.1),
        Metric(mtype=MetricType.GAUGE, scope="test", name="B", value=21, labels=(Label("a", "1"), Label("b", "2"))),
        Metric(mtype=MetricType.HISTOGRAM, scope="test", name="C", value=0.5),
        Metric(mtype=MetricType.HISTOGRAM, scope="test", name="C", value=10),
    ]
    store = MetricStore()
    for m in inputs:
        store.update(m, BUCKETS)

    metrics = sort_metrics(store.collect())

    h = MetricType.HISTOGRAM
    assert metrics == [
        Metric(mtype=MetricType.COUNTER, scope="test", name="A", value=3),
        Metric(mtype=MetricType.COUNTER, scope="test", name="A", value=4, labels=(Label("id", "123"),)),
        Metric(mtype=MetricType.GAUGE, scope="test", name="B", value=42, labels=(Label("a", "1"),)),
        Metric(mtype=MetricType.GAUGE, scope="test", name="B", value=21, labels=(Label("a", "1"), Label("b", "2"))),
        Metric(mtype=h, scope="test", name="C_bucket", value=2, labels=(Label("le", "0.25"),)),
        Metric(mtype=h, scope="test", name="C_bucket", value=3, labels=(Label("le", "0.5"),)),
        Metric(mtype=h, scope="test", name="C_bucket", value=3, labels=(Label("le", "0.75"),)),
        Metric(mtype=h, scope="test", name="C_bucket", value=3, labels=(Label("le", "1"),)),
        Metric(mtype=h, scope="test", name="C_count", value=4),
        Metric(mtype=h, scope="test", name="C_sum", value=pytest.approx(10.7)),
    ]


def test_store_lookup_replaces_entry_on_type_change():
    store = MetricStore()
    first = store.lookup(MetricType.COUNTER, ("", "A"))
    assert store.lookup(MetricType.COUNTER, ("", "A")) is first
    second = store.lookup(MetricType.GAUGE, ("", "A"))
    assert second is not first
    assert second.mtype == MetricType.GAUGE


def _key(name):
    return (Label("k", name),)


def test_metric_entry_cleanup():
    now = datetime.now(timezone.utc)
    calls = []
    entry = MetricEntry(MetricType.COUNTER, "", "A")
    for name, value, time in [
        ("a", 42, now),
        ("b", 1, now - timedelta(minutes=1)),
        ("c", 2, now - timedelta(milliseconds=500)),
        ("d", 123, now + timedelta(milliseconds=10)),
    ]:
        entry.states[_key(name)] = MetricState(labels=_key(name), value=value, time=time)

    def values():
        return {k[0].value: s.value for k, s in entry.states.items()}

    entry.cleanup(now - timedelta(seconds=1), lambda: calls.append(1))
    assert calls == []
    assert values() == {"a": 42, "c": 2, "d": 123}

    # The comparison is inclusive: states updated exactly at exp go away.
    entry.cleanup(now, lambda: calls.append(1))
    assert calls == []
    assert values() == {"d": 123}

    entry.cleanup(now + timedelta(seconds=1), lambda: calls.append(1))
    assert calls == [1]
    assert entry.states == {}


def test_metric_store_cleanup():
    now = datetime.now(timezone.utc)
    store = MetricStore()
    for name, offset in [
        ("A", -timedelta(hours=1)),
        ("B", -timedelta(minutes=1)),
        ("C", -timedelta(seconds=1)),
        ("D", timedelta(0)),
        ("E", timedelta(seconds=1)),
    ]:
        store.update(Metric(mtype=MetricType.COUNTER, name=name, value=1, time=now + offset))

    exps = [now - timedelta(hours=1), now - timedelta(minutes=1), now - timedelta(seconds=1), now] * 2
    threads = [threading.Thread(target=store.cleanup, args=(exp,)) for exp in exps]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sort_metrics(store.collect()) == [
        Metric(mtype=MetricType.COUNTER, name="E", value=1, time=now + timedelta(seconds=1)),
    ]
    assert list(store.entries) == [MetricKey("", "E")]


def test_sort_metrics():
    metrics = [
        Metric(name="B"),
        Metric(name="A", labels=(Label("id", "1"),)),
        Metric(name="A"),
    ]
    assert [(m.name, m.labels) for m in sort_metrics(metrics)] == [
        ("A", ()),
        ("A", (Label("id", "1"),)),
        ("B", ()),
    ]