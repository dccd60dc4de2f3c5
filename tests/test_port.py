import pytest

from capo_net.errors import Default404Error, OpenStackError, UnexpectedResponseCodeError
from capo_net.models import (
    AddressPair,
    FixedIP,
    Network,
    OSSubnet,
    Port,
    PortOpts,
    Subnet,
    SubnetFilter,
    Trunk,
)
from capo_net.port import PortService, get_port_profile
from capo_net.scope import Scope

NET_ID = "7fd24ceb-788a-441f-ad0a-d8e2f5d31a1d"
SUBNET_ID1 = "d9c88a6d-0b8c-48ff-8f0e-8d85a078c194"
SUBNET_ID2 = "d9c2346d-05gc-48er-9ut4-ig83ayt8c7h4"
PORT_ID1 = "50214c48-c09e-4a54-914f-97b40fd22802"
PORT_ID2 = "4c096384-f0a5-466d-9534-06a7ed281a79"
HOST_ID = "825c1b11-3dca-4bfe-a2d8-a3cc1964c8d5"
TENANT_ID = "62b523a7-f838-45fd-904f-d2db2bb58e04"
PROJECT_ID = "063171b1-0595-4882-98cd-3ee79676ff87"
TRUNK_ID = "eb7541fa-5e2a-4cca-b2c3-dfa409b917ce"
DESCRIPTION = "Created by cluster-api-provider-openstack cluster test-cluster"


class FakeClient:
    def __init__(self, ports=(), subnets=(), delete_errors=()):
        self.ports = list(ports)
        self.subnets = list(subnets)
        self.delete_errors = list(delete_errors)
        self.list_port_calls = []
        self.list_subnet_calls = []
        self.created_ports = []
        self.tag_calls = []
        self.trunk_list_calls = []
        self.created_trunks = []
        self.deleted_ports = []

    def list_port(self, opts):
        self.list_port_calls.append(opts)
        return list(self.ports)

    def create_port(self, opts):
        self.created_ports.append(opts)
        return Port(id=PORT_ID1, name=opts["name"])

    def delete_port(self, resource_id):
        self.deleted_ports.append(resource_id)
        if self.delete_errors:
            err = self.delete_errors.pop(0)
            if err is not None:
                raise err

    def list_subnet(self, opts):
        self.list_subnet_calls.append(opts)
        return list(self.subnets)

    def list_trunk(self, opts):
        self.trunk_list_calls.append(opts)
        return []

    def create_trunk(self, opts):
        self.created_trunks.append(opts)
        return Trunk(id=TRUNK_ID, name=opts["name"])

    def replace_all_attributes_tags(self, resource_type, resource_id, opts):
        self.tag_calls.append((resource_type, resource_id, opts))
        return opts["tags"]


def make_service(client, **kwargs):
    return PortService(Scope(), client, sleep=lambda _: None, **kwargs)


def create(client, net, instance_sgs=None, tags=None, port_name="foo-port-1"):
    return make_service(client).get_or_create_port(object(), "test-cluster", port_name, net, instance_sgs, tags)


def test_returns_existing_port_if_name_matches():
    existing = Port(id=PORT_ID1)
    client = FakeClient(ports=[existing])
    got = create(client, Network(id=NET_ID, subnet=Subnet()), tags=[])
    assert got is existing
    assert client.list_port_calls == [{"name": "foo-port-1", "network_id": NET_ID}]
    assert client.created_ports == []


def test_errors_if_multiple_matching_ports():
    client = FakeClient(ports=[Port(id=PORT_ID1, name="foo-port-1"), Port(id=PORT_ID2, name="foo-port-2")])
    with pytest.raises(OpenStackError, match="multiple ports found"):
        create(client, Network(id=NET_ID, subnet=Subnet()), tags=[])


def test_creates_port_with_defaults():
    client = FakeClient()
    got = create(client, Network(id=NET_ID, port_opts=PortOpts()), instance_sgs=["instance-secgroup"], tags=[])
    assert got.id == PORT_ID1
    opts = client.created_ports[0]
    assert opts["name"] == "foo-port-1"
    assert opts["description"] == DESCRIPTION
    assert opts["network_id"] == NET_ID
    assert opts["security_groups"] == ["instance-secgroup"]
    assert client.tag_calls == []


def test_creates_port_with_specified_port_opts():
    client = FakeClient(subnets=[OSSubnet(id=SUBNET_ID1, name="subnetFoo")])
    port_opts = PortOpts(
        name_suffix="bar",
        description="this is a test port",
        mac_address="fe:fe:fe:fe:fe:fe",
        admin_state_up=True,
        fixed_ips=[
            FixedIP(subnet=SubnetFilter(name="subnetFoo"), ip_address="192.168.0.50"),
            FixedIP(ip_address="192.168.1.50"),
        ],
        tenant_id=TENANT_ID,
        project_id=PROJECT_ID,
        security_groups=["port-secgroup"],
        allowed_address_pairs=[AddressPair(ip_address="10.10.10.10", mac_address="f1:f1:f1:f1:f1:f1")],
        host_id=HOST_ID,
        vnic_type="direct",
        profile={"interface_name": "eno1"},
        disable_port_security=False,
        tags=["my-port-tag"],
    )
    net = Network(id=NET_ID, subnet=Subnet(), port_opts=port_opts)
    got = create(client, net, port_name="foo-port-bar")
    assert got.id == PORT_ID1

    subnet_query = client.list_subnet_calls[0]
    assert subnet_query["network_id"] == NET_ID
    assert subnet_query["name"] == "subnetFoo"

    opts = client.created_ports[0]
    assert opts["name"] == "foo-port-bar"
    assert opts["description"] == "this is a test port"
    assert opts["admin_state_up"] is True
    assert opts["mac_address"] == "fe:fe:fe:fe:fe:fe"
    assert opts["fixed_ips"] == [
        {"subnet_id": SUBNET_ID1, "ip_address": "192.168.0.50"},
        {"ip_address": "192.168.1.50"},
    ]
    assert opts["tenant_id"] == TENANT_ID
    assert opts["project_id"] == PROJECT_ID
    assert opts["security_groups"] == ["port-secgroup"]
    assert opts["allowed_address_pairs"] == [{"ip_address": "10.10.10.10", "mac_address": "f1:f1:f1:f1:f1:f1"}]
    assert opts["port_security_enabled"] is True
    assert opts["binding:host_id"] == HOST_ID
    assert opts["binding:vnic_type"] == "direct"
    assert opts["binding:profile"] == {"interface_name": "eno1"}
    assert client.tag_calls == [("ports", PORT_ID1, {"tags": ["my-port-tag"]})]


def test_fails_when_subnet_query_returns_many():
    client = FakeClient(subnets=[OSSubnet(id=SUBNET_ID1, name="subnetFoo"), OSSubnet(id=SUBNET_ID2, name="subnetBar")])
    port_opts = PortOpts(
        name_suffix="foo-port-bar",
        description="this is a test port",
        fixed_ips=[FixedIP(subnet=SubnetFilter(tags="Foo"), ip_address="192.168.0.50")],
    )
    with pytest.raises(OpenStackError, match="too many subnets"):
        create(client, Network(id=NET_ID, subnet=Subnet(), port_opts=port_opts), port_name="foo-port-bar")
    assert client.list_subnet_calls[0]["network_id"] == NET_ID
    assert client.created_ports == []


def test_fails_when_subnet_query_returns_none():
    client = FakeClient()
    port_opts = PortOpts(fixed_ips=[FixedIP(subnet=SubnetFilter(name="missing"))])
    with pytest.raises(OpenStackError, match="returns no subnets"):
        create(client, Network(id=NET_ID, port_opts=port_opts))


def test_port_security_groups_override_instance_groups():
    client = FakeClient()
    net = Network(id=NET_ID, port_opts=PortOpts(security_groups=["port-secgroup"]))
    create(client, net, instance_sgs=["instance-secgroup"], tags=[])
    assert client.created_ports[0]["security_groups"] == ["port-secgroup"]


def test_disabled_port_security_drops_groups():
    client = FakeClient()
    net = Network(id=NET_ID, port_opts=PortOpts(security_groups=["port-secgroup"], disable_port_security=True))
    create(client, net, instance_sgs=["instance-secgroup"])
    opts = client.created_ports[0]
    assert "security_groups" not in opts
    assert opts["port_security_enabled"] is False


def test_instance_tags_used_when_port_tags_absent():
    client = FakeClient()
    create(client, Network(id=NET_ID, port_opts=PortOpts()), tags=["my-instance-tag"])
    assert client.tag_calls == [("ports", PORT_ID1, {"tags": ["my-instance-tag"]})]


def test_port_tags_appended_to_instance_tags():
    client = FakeClient()
    create(client, Network(id=NET_ID, port_opts=PortOpts(tags=["my-port-tag"])), tags=["my-instance-tag"])
    assert client.tag_calls == [("ports", PORT_ID1, {"tags": ["my-instance-tag", "my-port-tag"]})]


def test_creates_port_and_trunk_with_tags():
    client = FakeClient()
    got = create(client, Network(id=NET_ID, port_opts=PortOpts(trunk=True)), tags=["my-tag"])
    assert (got.name, got.id) == ("foo-port-1", PORT_ID1)
    assert client.trunk_list_calls == [{"name": "foo-port-1", "port_id": PORT_ID1}]
    assert client.created_trunks == [{"name": "foo-port-1", "port_id": PORT_ID1, "description": DESCRIPTION}]
    assert client.tag_calls == [
        ("ports", PORT_ID1, {"tags": ["my-tag"]}),
        ("trunks", TRUNK_ID, {"tags": ["my-tag"]}),
    ]


def test_get_port_from_instance_ip():
    client = FakeClient(ports=[Port(id=PORT_ID1)])
    got = make_service(client).get_port_from_instance_ip("inst", "10.0.0.1")
    assert [p.id for p in got] == [PORT_ID1]
    assert client.list_port_calls == [{"device_id": "inst", "fixed_ips": [{"ip_address": "10.0.0.1"}], "limit": 1}]


def test_delete_port_retries_server_errors():
    client = FakeClient(delete_errors=[UnexpectedResponseCodeError(503), None])
    make_service(client).delete_port(object(), PORT_ID1)
    assert client.deleted_ports == [PORT_ID1, PORT_ID1]


def test_delete_port_not_found_is_an_error():
    client = FakeClient(delete_errors=[Default404Error()])
    with pytest.raises(Default404Error):
        make_service(client).delete_port(object(), PORT_ID1)
    assert client.deleted_ports == [PORT_ID1]


def test_delete_port_times_out():
    ticks = iter(range(0, 10000, 100))
    client = FakeClient(delete_errors=[UnexpectedResponseCodeError(503)] * 10)
    with pytest.raises(TimeoutError):
        make_service(client, clock=lambda: next(ticks)).delete_port(object(), PORT_ID1)
    assert len(client.deleted_ports) >= 2


def test_garbage_collect_deletes_all_named_ports():
    client = FakeClient(ports=[Port(id=PORT_ID1), Port(id=PORT_ID2)])
    make_service(client).garbage_collect_error_instances_port(object(), "inst")
    assert client.list_port_calls == [{"name": "inst"}]
    assert client.deleted_ports == [PORT_ID1, PORT_ID2]


def test_collect_port_security_groups_distinct():
    service = make_service(FakeClient())
    got = service.collect_port_security_groups(object(), ["a", "", "b", "a"], None)
    assert got == ["a", "b"]
    assert service.collect_port_security_groups(object(), None, None) == []


def test_get_port_profile():
    assert get_port_profile({}) is None
    assert get_port_profile(None) is None
    profile = {"interface_name": "eno1"}
    got = get_port_profile(profile)
    assert got == profile
    assert got is not profile