import pytest

from capo_net.client import MeteredNetworkClient
from capo_net.errors import Default404Error, OpenStackError, UnexpectedResponseCodeError
from capo_net.metrics import api_request_metrics
from capo_net.models import Extension, Port


class FakeBackend:
    """Records every call and answers with a configured result or error."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)

        def call(*args):
            self.calls.append((name, args))
            if self.error is not None:
                raise self.error
            return self.result

        return call


CASES = [
    ("list_floating_ip", ({"floating_ip": "192.168.111.0"},), "floating_ip_list", False),
    ("create_floating_ip", ({"description": "d"},), "floating_ip_create", False),
    ("delete_floating_ip", ("fip-1",), "floating_ip_delete", True),
    ("get_floating_ip", ("fip-1",), "floating_ip_list", True),
    ("update_floating_ip", ("fip-1", {"port_id": "p"}), "floating_ip_update", False),
    ("list_port", ({"name": "foo-port-1"},), "port_list", False),
    ("create_port", ({"name": "foo-port-1"},), "port_create", False),
    ("delete_port", ("port-1",), "port_delete", True),
    ("get_port", ("port-1",), "port_get", True),
    ("update_port", ("port-1", {}), "port_update", False),
    ("list_trunk", ({"name": "trunk-1"},), "trunk_list", False),
    ("create_trunk", ({"name": "trunk-1"},), "trunk_create", False),
    ("delete_trunk", ("trunk-1",), "trunk_delete", True),
    ("list_router", ({"name": "r"},), "router_list", False),
    ("create_router", ({"name": "r"},), "router_create", False),
    ("delete_router", ("r-1",), "router_delete", True),
    ("get_router", ("r-1",), "router_get", True),
    ("update_router", ("r-1", {}), "router_update", False),
    ("add_router_interface", ("r-1", {"subnet_id": "s"}), "server_os_interface_create", False),
    ("remove_router_interface", ("r-1", {"subnet_id": "s"}), "server_os_interface_delete", True),
    ("list_sec_group", ({"name": "g"},), "group_list", False),
    ("create_sec_group", ({"name": "g"},), "security_group_create", False),
    ("delete_sec_group", ("g-1",), "security_group_delete", True),
    ("get_sec_group", ("g-1",), "security_group_get", True),
    ("update_sec_group", ("g-1", {}), "security_group_update", False),
    ("list_sec_group_rule", ({},), "security_group_rule_list", False),
    ("create_sec_group_rule", ({},), "security_group_rule_create", False),
    ("delete_sec_group_rule", ("rule-1",), "security_group_rule_delete", True),
    ("get_sec_group_rule", ("rule-1",), "security_group_rule_get", True),
    ("list_network", ({"name": "n"},), "network_list", False),
    ("create_network", ({"name": "n"},), "network_create", False),
    ("delete_network", ("n-1",), "network_delete", True),
    ("get_network", ("n-1",), "network_get", True),
    ("update_network", ("n-1", {}), "network_update", False),
    ("list_subnet", ({"name": "s"},), "subnet_list", False),
    ("create_subnet", ({"name": "s"},), "subnet_create", False),
    ("delete_subnet", ("s-1",), "subnet_delete", True),
    ("get_subnet", ("s-1",), "subnet_get", True),
    ("update_subnet", ("s-1", {}), "subnet_update", False),
    ("list_extensions", (), "network_extension_list", False),
    ("replace_all_attributes_tags", ("ports", "port-1", {"tags": ["my-tag"]}), "attributes_tags_replace_all", False),
]


def _snapshot(label):
    m = api_request_metrics()
    return m.total.value(label), m.errors.value(label), m.duration.count(label)


@pytest.mark.parametrize("method, args, label, tolerant", CASES)
def test_success_delegates_and_counts(method, args, label, tolerant):
    backend = FakeBackend(result=[f"{method}-result"])
    client = MeteredNetworkClient(backend)
    total, errs, observed = _snapshot(label)

    result = getattr(client, method)(*args)

    assert backend.calls == [(method, args)]
    if not method.startswith("delete_"):
        assert result == [f"{method}-result"]
    new_total, new_errs, new_observed = _snapshot(label)
    assert new_total == total + 1
    assert new_errs == errs
    assert new_observed == observed + 1


@pytest.mark.parametrize("method, args, label, tolerant", CASES)
def test_failure_is_reraised_and_counted(method, args, label, tolerant):
    error = UnexpectedResponseCodeError(500)
    client = MeteredNetworkClient(FakeBackend(error=error))
    total, errs, _ = _snapshot(label)

    with pytest.raises(UnexpectedResponseCodeError) as info:
        getattr(client, method)(*args)

    assert info.value is error
    new_total, new_errs, _ = _snapshot(label)
    assert new_total == total + 1
    assert new_errs == errs + 1


@pytest.mark.parametrize("method, args, label, tolerant", CASES)
def test_not_found_counted_only_where_not_tolerated(method, args, label, tolerant):
    error = Default404Error("GET", "http://localhost/v2.0/x")
    client = MeteredNetworkClient(FakeBackend(error=error))
    total, errs, _ = _snapshot(label)

    with pytest.raises(Default404Error):
        getattr(client, method)(*args)

    new_total, new_errs, _ = _snapshot(label)
    assert new_total == total + 1
    assert new_errs == (errs if tolerant else errs + 1)


def test_list_result_is_a_list():
    ports = (Port(id="port-1"), Port(id="port-2"))
    client = MeteredNetworkClient(FakeBackend(result=ports))
    result = client.list_port({"name": "foo-port-1"})
    assert result == [Port(id="port-1"), Port(id="port-2")]


def test_list_extensions_returns_backend_extensions():
    exts = [Extension(alias="trunk")]
    client = MeteredNetworkClient(FakeBackend(result=iter(exts)))
    assert client.list_extensions() == exts


def test_conflict_on_delete_counts_as_error():
    label = "trunk_delete"
    client = MeteredNetworkClient(FakeBackend(error=UnexpectedResponseCodeError(409)))
    _, errs, _ = _snapshot(label)
    with pytest.raises(OpenStackError):
        client.delete_trunk("trunk-1")
    assert _snapshot(label)[1] == errs + 1


def test_non_openstack_exception_propagates():
    label = "network_get"
    client = MeteredNetworkClient(FakeBackend(error=RuntimeError("boom")))
    _, errs, _ = _snapshot(label)
    with pytest.raises(RuntimeError, match="boom"):
        client.get_network("n-1")
    assert _snapshot(label)[1] == errs + 1