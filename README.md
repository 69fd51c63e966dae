# statskit

Building blocks for collecting and exposing metrics:

- **Tags and values** (`statskit.tags`, `statskit.value`): name/value tags with
  sorting, merging and "latest wins" deduplication, and a typed `Value`
  wrapper for null, bool, signed and unsigned integers, floats and durations.
- **Linux process information** (`statskit.linux`): parsers and readers for
  `/proc/<pid>/stat`, `statm`, `sched`, `limits` and `cgroup`, open file
  descriptor counts, cgroup CPU period/quota/shares and memory limits.
- **Process statistics** (`statskit.procstats`): periodic collection on a
  background thread, and a per-process snapshot (`ProcInfo`) of CPU, memory,
  file and thread statistics.
- **Prometheus exposition** (`statskit.prometheus`): a thread-safe store that
  aggregates counters, gauges and histograms by name and labels, and renders
  them in the Prometheus text format.

## Installation

```
pip install .
```

The package has no runtime dependencies. Install the `test` extra
(`pip install .[test]`) to run the test suite with pytest.

## Tags

```python
from statskit.tags import tag, from_map, sort_tags, merge_tags, tags_are_sorted

tags = sort_tags([tag("b", "2"), tag("a", "1"), tag("a", "3"), tag("", "x")])
# [Tag(name='a', value='3'), Tag(name='b', value='2')]
# sorted by name, later duplicates win, tags with an empty name dropped
assert tags_are_sorted(tags)

merge_tags([tag("A", "1")], [tag("A", "2")])   # [Tag(name='A', value='2')]
from_map({"host": "a", "env": "prod"})         # one Tag per item
str(tag("env", "prod"))                        # 'env=prod'
```

## Values

```python
from datetime import timedelta
from statskit.value import value_of, must_value_of, uint_value, ValueType

v = value_of(42)
v.type               # ValueType.INT
v.as_int()           # 42
value_of(timedelta(seconds=1)).interface()   # timedelta(seconds=1)
str(value_of(0.5))   # '0.5'
uint_value(-1).as_uint()                     # 18446744073709551615

value_of(object()).type    # ValueType.INVALID
must_value_of(value_of(object()))   # raises ValueError
```

Integers in the signed 64-bit range become `INT`, larger ones up to 2**64-1
become `UINT`; anything else unsupported gives an `INVALID` value.

## Reading /proc

```python
import os
from statskit.linux.statm import parse_proc_statm
from statskit.linux.limits import read_proc_limits, UNLIMITED
from statskit.linux.cgroup import read_proc_cgroup
from statskit.procstats.proc import collect_proc_info

statm = parse_proc_statm("1134 172 153 12 0 115 0")
statm.size                       # 1134

limits = read_proc_limits(os.getpid())
limits.open_files.soft

cgroups = read_proc_cgroup(os.getpid())
cgroups.lookup("cpu,cpuacct")    # CGroup or None

info = collect_proc_info(os.getpid())
info.memory.resident, info.files.open, info.threads.num
```

The `parse_*` functions work on text you supply and run anywhere. The
`read_*` functions read files under `/proc` and `/sys/fs/cgroup` and raise
`OSError` when a file is missing, or `ValueError` when it is malformed.
`collect_proc_info` raises `OSUnsupportedError` on systems other than Linux.
For another process, CPU times come from `/proc/<pid>/stat` clock ticks,
converted using the output of the `getconf CLK_TCK` command.

## Periodic collection

```python
from statskit.procstats.collector import Config, start_collector, start_collector_with, multi_collector
from datetime import timedelta

class Heartbeat:
    def collect(self):
        print("tick")

handle = start_collector(multi_collector(Heartbeat(), lambda: print("tock")))
# collect() runs at once, then every 15 seconds by default
handle.close()    # stops the background thread and waits for it

with start_collector_with(Config(collector=Heartbeat(), collect_interval=timedelta(seconds=1))):
    ...
```

A collector is any object with a `collect()` method, or a plain callable.

## Prometheus output

```python
import sys
from statskit.prometheus.metric import Metric, MetricStore, MetricType
from statskit.prometheus.append import write_stats, accept_encoding
from statskit.value import value_of

store = MetricStore()
store.update(Metric(mtype=MetricType.COUNTER, name="requests", value=1))
store.update(
    Metric(mtype=MetricType.HISTOGRAM, name="latency", value=0.1),
    [value_of(0.25), value_of(1.0)],
)
write_stats(store, sys.stdout)
```

prints

```
# TYPE latency histogram
latency_bucket{le="0.25"} 1
latency_bucket{le="1"} 1
latency_count 1
latency_sum 0.1

# TYPE requests counter
requests 1
```

Counters are summed, gauges keep the last value, and histograms keep
cumulative bucket counts plus `_sum` and `_count`. A metric's `scope` is
prefixed to its name with `_`, invalid characters in names are replaced by
`_`, and a metric with a `time` gets a millisecond timestamp.
`MetricStore.cleanup(exp)` drops samples last updated at or before `exp`
(and those with no time). `format_metric` renders a single sample, and
`accept_encoding(header, "gzip")` tells whether an `Accept-Encoding` header
lists gzip.

## What it does not do

- There is no HTTP server or request handler: `write_stats` writes to any
  text stream, and serving it (and compressing it) is left to the caller.
- There is no engine that routes measures to handlers: collectors only call
  `collect()`, and `ProcInfo` is a snapshot that is not turned into metrics
  by itself. Feeding values into a `MetricStore` is up to you.
- `MetricStore` never expires entries on its own; call `cleanup` yourself.
- Process statistics are collected on Linux only.