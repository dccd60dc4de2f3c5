from unittest.mock import Mock

import pytest

from capo_net.errors import UnexpectedResponseCodeError
from capo_net.floatingip import FloatingIPService
from capo_net.models import (
    FloatingIP,
    Network,
    OpenStackCluster,
    OpenStackClusterSpec,
    OpenStackClusterStatus,
    OpenStackMachine,
)

DESCRIPTION = "Created by cluster-api-provider-openstack cluster test-cluster"


def _cluster(network_id="", tags=None):
    return OpenStackCluster(
        spec=OpenStackClusterSpec(tags=list(tags or [])),
        status=OpenStackClusterStatus(external_network=Network(id=network_id)),
    )


def _service(client, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return FloatingIPService(None, client, sleep=sleeps.append, clock=lambda: 0.0)


def test_creates_floating_ip_when_missing():
    client = Mock()
    client.list_floating_ip.return_value = []
    client.create_floating_ip.return_value = FloatingIP(floating_ip="192.168.111.0")
    got = _service(client).get_or_create_floating_ip(
        OpenStackMachine(), _cluster(), "test-cluster", "192.168.111.0"
    )
    assert got == FloatingIP(floating_ip="192.168.111.0")
    client.list_floating_ip.assert_called_once_with({"floating_ip": "192.168.111.0"})
    client.create_floating_ip.assert_called_once_with(
        {"floating_ip": "192.168.111.0", "description": DESCRIPTION}
    )
    assert client.replace_all_attributes_tags.call_count == 0


def test_finds_existing_floating_ip():
    client = Mock()
    client.list_floating_ip.return_value = [FloatingIP(floating_ip="192.168.111.0")]
    got = _service(client).get_or_create_floating_ip(
        OpenStackMachine(), _cluster(), "test-cluster", "192.168.111.0"
    )
    assert got == FloatingIP(floating_ip="192.168.111.0")
    assert client.create_floating_ip.call_count == 0


def test_creates_any_floating_ip_on_external_network_and_tags_it():
    client = Mock()
    client.create_floating_ip.return_value = FloatingIP(id="fip-1", floating_ip="10.0.0.5")
    got = _service(client).get_or_create_floating_ip(
        OpenStackMachine(), _cluster("ext-net", ["t1"]), "test-cluster", ""
    )
    assert got.id == "fip-1"
    assert client.list_floating_ip.call_count == 0
    client.create_floating_ip.assert_called_once_with(
        {"floating_network_id": "ext-net", "description": DESCRIPTION}
    )
    client.replace_all_attributes_tags.assert_called_once_with("floatingips", "fip-1", {"tags": ["t1"]})
    assert client.replace_all_attributes_tags.call_count == 1


def test_create_error_propagates():
    client = Mock()
    client.list_floating_ip.return_value = []
    client.create_floating_ip.side_effect = UnexpectedResponseCodeError(500)
    with pytest.raises(UnexpectedResponseCodeError):
        _service(client).get_or_create_floating_ip(OpenStackMachine(), _cluster(), "c", "1.2.3.4")


def test_get_floating_ip_by_port_id():
    client = Mock()
    client.list_floating_ip.return_value = [FloatingIP(id="a"), FloatingIP(id="b")]
    assert _service(client).get_floating_ip_by_port_id("port-1") == FloatingIP(id="a")
    client.list_floating_ip.assert_called_once_with({"port_id": "port-1"})
    client.list_floating_ip.return_value = []
    assert _service(client).get_floating_ip_by_port_id("port-2") is None


def test_delete_floating_ip_missing_does_nothing():
    client = Mock()
    client.list_floating_ip.return_value = []
    _service(client).delete_floating_ip(OpenStackMachine(), "1.2.3.4")
    assert client.delete_floating_ip.call_count == 0


def test_delete_floating_ip_deletes_by_id():
    client = Mock()
    client.list_floating_ip.return_value = [FloatingIP(id="fip-1", floating_ip="1.2.3.4")]
    _service(client).delete_floating_ip(OpenStackMachine(), "1.2.3.4")
    client.delete_floating_ip.assert_called_once_with("fip-1")
    assert client.delete_floating_ip.call_count == 1


def test_associate_already_associated_skips_update():
    client = Mock()
    fp = FloatingIP(id="fip-1", floating_ip="1.2.3.4", port_id="port-1")
    _service(client).associate_floating_ip(OpenStackMachine(), fp, "port-1")
    assert client.update_floating_ip.call_count == 0


def test_associate_updates_and_waits_for_active():
    client = Mock()
    client.get_floating_ip.side_effect = [FloatingIP(status="DOWN"), FloatingIP(status="ACTIVE")]
    sleeps = []
    fp = FloatingIP(id="fip-1", floating_ip="1.2.3.4")
    _service(client, sleeps).associate_floating_ip(OpenStackMachine(), fp, "port-1")
    client.update_floating_ip.assert_called_once_with("fip-1", {"port_id": "port-1"})
    assert client.get_floating_ip.call_count == 2
    assert len(sleeps) == 1
    assert 30.0 <= sleeps[0] <= 33.0


def test_associate_times_out():
    client = Mock()
    client.get_floating_ip.return_value = FloatingIP(status="DOWN")
    sleeps = []
    fp = FloatingIP(id="fip-1", floating_ip="1.2.3.4")
    with pytest.raises(TimeoutError):
        _service(client, sleeps).associate_floating_ip(OpenStackMachine(), fp, "port-1")
    assert client.get_floating_ip.call_count == 10
    assert len(sleeps) == 9


def test_associate_wait_error_propagates():
    client = Mock()
    client.get_floating_ip.side_effect = UnexpectedResponseCodeError(500)
    fp = FloatingIP(id="fip-1", floating_ip="1.2.3.4")
    with pytest.raises(UnexpectedResponseCodeError):
        _service(client).associate_floating_ip(OpenStackMachine(), fp, "port-1")


def test_disassociate_missing_does_nothing():
    client = Mock()
    client.list_floating_ip.return_value = []
    _service(client).disassociate_floating_ip(OpenStackMachine(), "1.2.3.4")
    assert client.update_floating_ip.call_count == 0


def test_disassociate_clears_port_and_waits_for_down():
    client = Mock()
    client.list_floating_ip.return_value = [FloatingIP(id="fip-1", floating_ip="1.2.3.4", port_id="p")]
    client.get_floating_ip.return_value = FloatingIP(status="DOWN")
    sleeps = []
    _service(client, sleeps).disassociate_floating_ip(OpenStackMachine(), "1.2.3.4")
    client.update_floating_ip.assert_called_once_with("fip-1", {"port_id": None})
    client.get_floating_ip.assert_called_once_with("fip-1")
    assert sleeps == []