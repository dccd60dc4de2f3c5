# capo_net

`capo_net` reconciles the OpenStack networking infrastructure that a
Kubernetes cluster needs: the external network, the cluster network and
subnet, the router and its external gateway, managed security groups and
their rules, instance ports and trunks, and floating IPs.

All API access goes through an object implementing the `NetworkClient`
protocol from `capo_net.client`. The services record events about what they
create and delete, and raise exceptions where an operation fails.

## What is inside

| Module | Purpose |
| --- | --- |
| `capo_net.service` | `Service`, combining all networking operations, and `new_test_service` |
| `capo_net.client` | The `NetworkClient` protocol and `MeteredNetworkClient`, which wraps a client and records request metrics |
| `capo_net.base` | `ServiceBase`: scope, client, and tag replacement for ports and trunks |
| `capo_net.network` | `NetworkService`: external network, cluster network and subnet; `get_network_name`, `get_subnet_name` |
| `capo_net.router` | `RouterService`: cluster router, gateway IPs and subnet interface; `get_router_name` |
| `capo_net.securitygroups` | `SecurityGroupService`: managed control-plane, worker and bastion groups |
| `capo_net.secgroup_names` | Group names, conversion of API records, `is_duplicate` |
| `capo_net.secgroup_rules` | `default_rules` and `generate_desired_sec_groups` |
| `capo_net.secgroup_sync` | `diff_rules`, `create_rule` and `reconcile_group_rules` |
| `capo_net.port` | `PortService`: ports, port security groups and tags; `get_port_profile` |
| `capo_net.trunk` | `TrunkService`: trunk support detection, creation and deletion |
| `capo_net.floatingip` | `FloatingIPService`: create, associate, disassociate and delete floating IPs |
| `capo_net.models` | Dataclasses for the cluster, machine and OpenStack resource records |
| `capo_net.scope` | `Scope`: project id and logger shared by the services |
| `capo_net.errors` | `OpenStackError` and its subclasses; `is_not_found`, `is_conflict`, `is_invalid_error`, `is_retryable` |
| `capo_net.metrics` | Labelled counters and histograms, `MetricContext`, `MetricsRegistry`, `register_api_metrics` |
| `capo_net.record` | Event recording through a replaceable default recorder; `FakeRecorder` |
| `capo_net.names` | `get_description` for resource descriptions |
| `capo_net.version` | `Info` and `get()` for build and interpreter version details |

## Using it

Create a service around your `NetworkClient` implementation, then reconcile
the cluster's resources in order:

```python
from capo_net.models import OpenStackCluster
from capo_net.service import new_test_service

service = new_test_service("my-project-id", client)
cluster = OpenStackCluster(name="demo")

service.reconcile_external_network(cluster)
service.reconcile_network(cluster, "demo")
service.reconcile_subnet(cluster, "demo")
service.reconcile_router(cluster, "demo")
service.reconcile_security_groups(cluster, "demo")
```

Each step stores what it found or created on `cluster.status`, so later steps
build on earlier ones. Deletion uses `delete_router`,
`delete_security_groups`, `delete_bastion_security_group` and
`delete_network`.

The client receives request options as plain dictionaries and is expected to
return the record types from `capo_net.models` (`OSNetwork`, `OSSubnet`,
`OSRouter`, `OSSecGroup`, `Port`, `Trunk`, `FloatingIP`, `Extension`).
Wrap it in `MeteredNetworkClient` to have every call timed and counted.

Resources created by the package carry a description naming the cluster:

```python
from capo_net.names import get_description

get_description("demo")
# 'Created by cluster-api-provider-openstack cluster demo'
```

## Errors

Exceptions raised by the client propagate out of the services. Where a
lookup finds too many or too few resources, the services raise
`capo_net.errors.OpenStackError`; passing `None` as filter options raises
`ValueError`. The helpers in `capo_net.errors` classify errors, following the
chain of `__cause__`:

- `is_not_found`: `Default404Error`, `ResourceNotFoundError`, or an
  `UnexpectedResponseCodeError` with status 404.
- `is_conflict`: `Default409Error`, or an `UnexpectedResponseCodeError` with
  status 409.
- `is_invalid_error`: `Default400Error`, or an `UnexpectedResponseCodeError`
  with status 400.
- `is_retryable`: an `UnexpectedResponseCodeError` with status 500 or above,
  other than 501.

Port and trunk deletion retry retryable errors (and, for trunks, conflicts)
every 5 seconds for up to 3 minutes, then raise `TimeoutError`.

## Events and metrics

Events go to the default recorder of `capo_net.record`. Install your own once
at start-up with `init_from_recorder`; later calls have no effect. The
initial recorder is a `FakeRecorder`, which keeps the events it receives in
its `events` list.

Request metrics are kept per request name such as `port_create`.
`register_api_metrics` adds the three API metrics to a `MetricsRegistry`
(the module's default one if none is given); calling it again for the same
registry does nothing.

## What it does not do

The package contains no HTTP implementation of `NetworkClient`: it does not
authenticate against OpenStack or send requests itself, so you supply the
client. It has no command-line program and no controller loop that watches
cluster objects; you call the services from your own code.