# httpaddon

Building blocks for an HTTP add-on that scales workloads on request traffic:
counting pending requests and request rates per host, routing requests to
scaled workloads by host and path prefix, and a few network and
configuration helpers. It depends on nothing outside the standard library.

## Modules

- `httpaddon.bucketing` – `RequestsBuckets(window, granularity)`, a ring of
  time buckets. `record(now, value)` adds to the bucket for `now` (values
  more than a window older than the newest write are ignored),
  `window_average(now)` gives the average per bucket over the window, rounded
  down to three decimals, `is_empty(now)` and `for_each_bucket(now)` (a
  generator of `(time, value)` pairs). Durations may be `timedelta` or
  seconds. `round_to_n_digits(n, f)` rounds down to `n` decimals.
- `httpaddon.counts` – `Count(concurrency, rps)` and `Counts`, a per-host
  mapping with `aggregate()`, `to_json()` and `Counts.from_json(data)`.
- `httpaddon.counter` – `Memory`, a thread-safe in-memory counter with
  `ensure_key`, `update_buckets`, `increase`, `decrease` (never below zero),
  `remove_key` and `current()`. `FakeCounter` reports each change as a
  `HostAndCount` on its one-slot `resized` queue and raises `TimeoutError`
  if that queue stays full for `resize_timeout` seconds; `FakeCountReader`
  reports fixed counts for `sample.com` or raises its `err`.
- `httpaddon.queue_rpc` – `make_counts_handler(reader)` returns a request
  handler class serving the reader's counts as JSON at `/queue` (500 if the
  reader fails, 404 on other paths); `counts_response(reader)` builds the
  status and body; `get_counts(url, timeout)` fetches counts from another
  process, raising `ConnectionError` or `ValueError`.
- `httpaddon.routekey` – `RouteTarget`, a scaled workload with hosts, path
  prefixes, creation time and rate settings; `new_key(host, path)` builds a
  `//host/path/` key with the port dropped and slashes normalised;
  `new_key_from_url`, `new_key_from_request` and `new_keys_from_target`.
- `httpaddon.tablememory` – `TableMemory`, an immutable table with
  `remember`, `recall`, `forget` and longest-prefix `route`; when two
  targets claim the same key, the one created first wins.
- `httpaddon.table` – `Table(counter)`, fed by `on_add`, `on_update` and
  `on_delete`, which keep the counter's keys in step. `refresh_memory(stop)`
  rebuilds the routing memory now and after every change until `stop` is
  set; `route(url, host)`, `has_synced()` and `health_check()` (raises
  `TableNotSynced`).
- `httpaddon.endpoints` – endpoint data classes, `endpoints_for_service`
  (builds `http://ip:port` URLs from a caller-supplied lookup function),
  `fake_endpoints_for_url(s)`, `FakeWatcher` and `FakeEndpointsCache`.
- `httpaddon.services` – `Service` and `FakeServiceCache`.
- `httpaddon.names` – `NamespacedName` and `namespaced_name_from_object`.
- `httpaddon.scaledobject` – `ScaleTargetRef` and `new_scaled_object`,
  which returns a scaled object manifest as a dict.
- `httpaddon.netretry` – `Backoff` (durations in seconds) with `step()`,
  `min_total_backoff_duration`, and `dial_context_with_retry(timeout,
  backoff)` returning `dial(address, stop=None)`, which retries failed TCP
  connects and raises the last error, or `Cancelled` if `stop` is set.
- `httpaddon.server` – `serve_context(stop, addr, handler_class,
  ssl_context)` serves HTTP, or HTTPS with an SSL context, until `stop` is
  set and then raises `ServerClosed`.
- `httpaddon.env` – `get`, `get_or`, `get_int32_or`, `get_int_or`.
- `httpaddon.envresolve` – `parse_bool`, `parse_duration` (e.g. `"1.5h"`,
  `"2h45m"`, returned as `timedelta`), and `resolve_os_env_bool`,
  `resolve_os_env_int`, `resolve_os_env_duration`, which raise `ValueError`
  on values that do not parse.
- `httpaddon.signals` – `AtomicValue`, `Signaler` (a one-slot wake-up
  flag), `Cancelled`, `with_timeout(seconds, func)` and `is_ignored_error`.
- `httpaddon.stopwatch` – `Stopwatch`, also usable as a context manager.

## Examples

```python
from datetime import datetime, timedelta, timezone
from httpaddon.bucketing import RequestsBuckets

now = datetime(2024, 6, 26, 12, 0, 0, tzinfo=timezone.utc)
buckets = RequestsBuckets(window=timedelta(seconds=5), granularity=timedelta(seconds=1))
buckets.record(now, 1)
buckets.record(now + timedelta(seconds=1), 2)
print(buckets.window_average(now + timedelta(seconds=1)))  # 1.5
```

```python
from httpaddon.routekey import RouteTarget, new_key
from httpaddon.tablememory import TableMemory

print(new_key("kubernetes.io:443", "//abc/def//"))  # //kubernetes.io/abc/def/

memory = TableMemory().remember(RouteTarget(namespace="default", name="web", hosts=["keda.sh"]))
print(memory.route(new_key("keda.sh", "/any/path")).name)  # web
```

Serving queue counts until a stop event is set:

```python
import threading
from httpaddon.counter import Memory
from httpaddon.queue_rpc import make_counts_handler
from httpaddon.server import ServerClosed, serve_context

counter = Memory()
counter.ensure_key("default/web", 60, 1)
stop = threading.Event()
try:
    serve_context(stop, "localhost:9090", make_counts_handler(counter))
except ServerClosed:
    pass
```

## What it does not do

The package does not talk to a cluster API. There are no informer-backed
endpoint or service caches: endpoints come from a lookup function you supply
or from the in-memory fakes, and a `Table` learns about route targets only
through the events you pass to it. It also has no command-line program and
no proxy that forwards requests; it provides the pieces such programs are
built from.

## Installation

Install the package with pip from a checkout of the project directory,
adding the `test` extra to get pytest for running the test suite.