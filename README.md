# clustersync

Building blocks for keeping a cluster registry in step with the Kubernetes
resources that describe each cluster. The package is a library. It has no
command-line entry point and no third-party runtime dependencies.

## What is inside

### Resource handlers: `clustersync.sync.handlers`

These handlers turn dict-shaped Kubernetes objects into a `ClusterSpec`.

- `fields` holds the data classes `ClusterSpec`, `Tier`, `AvailabilityZone`,
  `VirtualNetwork` and `Extra`, plus the abstract `ObjectHandler` and
  `ParseError`. It also has typed lookups along a field path:
  - `get_nested_string`
  - `get_nested_int`
  - `get_nested_string_list`
  - `get_nested_string_map`
  - `get_nested_list`

  Each lookup raises `ParseError` if the field is missing or has the wrong
  type. The message gives the dotted field path and the object's namespace,
  name and group/version/kind.
- `capa` covers Cluster API and Cluster API AWS objects:
  - `ClusterHandler` reads the short name, region, provider, location and
    environment from the labels.
  - `AWSManagedControlPlaneHandler` reads the OIDC issuer with
    `extract_oidc_issuer_from_arn`.
  - `AWSManagedMachinePoolHandler` builds one tier per pool. It renders taints
    with `taint_to_string` as `key[=value][:effect]`.
  - `EKSConfigHandler` reads each tier's container runtime.
- `ack` covers AWS controller network objects:
  - `SubnetHandler` collects availability zones. It only uses subnets that
    `is_private_subnet` accepts, which are those whose name contains
    `private`.
  - `VPCHandler` collects virtual networks and the account id.

### Synced data and events: `clustersync.sync`

- `hashing.spec_hash` returns a stable SHA-256 hex digest of JSON-encodable
  data. Use it to tell whether synced data changed.
- `partial_update.PartialClusterUpdateHandler` accepts
  `partial-cluster-update` events. It raises `EventError` if the event is
  `None` or of another type.

### Queue: `clustersync.sqs`

- `event` defines:
  - the event type constants;
  - the `Event` data class;
  - the abstract `EventHandler`;
  - `new_event`, which takes a dict-shaped queue message and returns an
    `Event`. It raises `EventError` if the message is `None` or its
    `MessageAttributes["Type"]["StringValue"]` is missing or unknown.
- `queue` provides `QueueConfig` with `validate()` (raises
  `QueueConfigError`) and `Queue`. `Queue` is built from a config and a service
  object that you supply. That object must offer `get_queue_url`,
  `receive_message`, `send_message_batch`, `delete_message` and
  `change_message_visibility` with SQS-style keyword arguments. `Queue`
  methods:
  - `poll()` runs the registered handler for each received message on its own
    thread. It respects `max_handlers`. It stops after one batch when
    `run_once` is set, and otherwise stops when receiving fails.
  - `enqueue(entries)` sends a batch and returns the reply.
  - `delete(message)` removes a message.
  - `change_visibility_timeout(message, seconds)` returns `True` on success.
  - `status()` raises if the queue cannot be reached.

### Metrics: `clustersync.monitoring`

- `collectors` holds in-process metric types that render Prometheus text
  exposition:
  - `Counter`, `Gauge` and `Histogram`, where histograms use the default
    buckets from 0.005 to 10 seconds;
  - `CounterVec` and `HistogramVec`;
  - `Registry` and `default_registry()`.
- `apiserver.ApiServerMetrics` records:
  - ingress request counts and durations, by code, method and url;
  - egress request counts and durations, by target;
  - error counts, by target.

  Its `middleware(next_handler)` wraps a handler that takes a
  `RequestContext`. The wrapper counts and times every request except
  `/metrics`. It maps a raised `HTTPError` to its status code, and any other
  failure to 500.
- `client.ClientMetrics` records egress requests and the timestamp of the
  last dead man's switch alert. `get_metric_by_name` looks a collector up by
  its full name.
- `manager.ManagerMetrics` records requeues, reconciliations, enqueues and
  errors, by target.

All three metric sets register into a fresh `Registry` when `is_unit_test` is
true. Otherwise they use the process-wide one.

## Example

```python
from clustersync.sync.handlers.capa import ClusterHandler

cluster = {
    "metadata": {
        "name": "demo",
        "labels": {
            "clusterShortName": "demo001devxx1",
            "locationShortName": "xx1",
            "provider": "eks",
            "location": "us-west-2",
            "environment": "dev",
        },
    }
}

spec = ClusterHandler().handle([cluster])
print(spec.short_name, spec.cloud_provider_region)
```

```python
from clustersync.monitoring.manager import ManagerMetrics

metrics = ManagerMetrics()
metrics.init(is_unit_test=True)
metrics.record_reconciliation_dur("my-cluster-sync", 1.7)
print(metrics.reconciliation_dur.expose())
```

## What it does not do

- It does not talk to Kubernetes. Handlers work on objects you have already
  fetched.
- It has no controller that watches resources, merges handler results or
  writes status back.
- It ships no AWS client. `Queue` needs a service object from you.
- It has no HTTP server. Metrics are exposed as text through `expose()`, and
  serving them is up to you.

## Tests

```
pip install -e ".[test]"
pytest
```