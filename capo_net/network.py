"""Network and subnet management on the OpenStack networking API."""

from __future__ import annotations

from typing import Any, Optional

from . import record
from .base import NETWORK_PREFIX, ServiceBase
from .errors import OpenStackError
from .metrics import MetricContext
from .models import Network, OpenStackCluster, OSNetwork, OSSubnet, Subnet
from .names import get_description


def _opts(**values: Any) -> dict[str, Any]:
    """Build request options, leaving out fields that are not set."""
    return {key: value for key, value in values.items() if value is not None and value != "" and value != []}


def get_network_name(cluster_name: str) -> str:
    """Return the name of the network created for a cluster."""
    return f"{NETWORK_PREFIX}-cluster-{cluster_name}"


def get_subnet_name(cluster_name: str) -> str:
    """Return the name of the subnet created for a cluster."""
    return f"{NETWORK_PREFIX}-cluster-{cluster_name}"


class NetworkService(ServiceBase):
    """Reconciles the networks and subnets of a cluster."""

    def reconcile_external_network(self, open_stack_cluster: OpenStackCluster) -> None:
        """Find the external network and record it in the cluster status."""
        spec = open_stack_cluster.spec
        status = open_stack_cluster.status
        if spec.external_network_id:
            external = self._get_network_by_id(spec.external_network_id)
            if external is not None and external.id:
                status.external_network = Network(id=external.id, name=external.name, tags=list(external.tags))
                return

        found = self.client.list_network({"external": True})
        if not found:
            status.external_network = Network()
            self._log.info("No external network found - proceeding with internal network only")
            return
        if len(found) == 1:
            external = found[0]
            status.external_network = Network(id=external.id, name=external.name, tags=list(external.tags))
            self._log.info("External network found network id=%s", external.id)
            return
        raise OpenStackError(f"found {len(found)} external networks, which should not happen")

    def reconcile_network(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Ensure the cluster network exists and record it in the cluster status."""
        network_name = get_network_name(cluster_name)
        self._log.info("Reconciling network name=%s", network_name)

        existing = self._get_network_by_name(network_name)
        if existing is not None and existing.id:
            open_stack_cluster.status.network = Network(
                id=existing.id, name=existing.name, tags=list(existing.tags)
            )
            self._log.debug("Reuse Existing Network %s with id %s", existing.name, existing.id)
            return

        opts: dict[str, Any] = {"admin_state_up": True, "name": network_name}
        if open_stack_cluster.spec.disable_port_security:
            opts["port_security_enabled"] = False

        try:
            network = self.client.create_network(opts)
        except Exception as err:
            record.warnf(
                open_stack_cluster, "FailedCreateNetwork", "Failed to create network %s: %v", network_name, err
            )
            raise
        record.eventf(
            open_stack_cluster,
            "SuccessfulCreateNetwork",
            "Created network %s with id %s",
            network_name,
            network.id,
        )

        tags = list(open_stack_cluster.spec.tags)
        if tags:
            self.client.replace_all_attributes_tags("networks", network.id, {"tags": tags})

        open_stack_cluster.status.network = Network(id=network.id, name=network.name, tags=tags)

    def delete_network(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Delete the cluster network if it exists."""
        network = self._get_network_by_name(get_network_name(cluster_name))
        if network is None or not network.id:
            return
        try:
            self.client.delete_network(network.id)
        except Exception as err:
            record.warnf(
                open_stack_cluster,
                "FailedDeleteNetwork",
                "Failed to delete network %s with id %s: %v",
                network.name,
                network.id,
                err,
            )
            raise
        record.eventf(
            open_stack_cluster,
            "SuccessfulDeleteNetwork",
            "Deleted network %s with id %s",
            network.name,
            network.id,
        )

    def reconcile_subnet(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Ensure the cluster subnet exists and record it in the cluster status."""
        network = open_stack_cluster.status.network
        if network is None or not network.id:
            self._log.debug("No need to reconcile network components since no network exists.")
            return

        subnet_name = get_subnet_name(cluster_name)
        self._log.info("Reconciling subnet name=%s", subnet_name)

        found = self.client.list_subnet(
            _opts(network_id=network.id, cidr=open_stack_cluster.spec.node_cidr)
        )
        if len(found) > 1:
            raise OpenStackError(
                f"found {len(found)} subnets with the name {subnet_name}, which should not happen"
            )

        if found:
            subnet = found[0]
            self._log.debug("Reuse existing subnet %s with id %s", subnet_name, subnet.id)
        else:
            subnet = self._create_subnet(open_stack_cluster, cluster_name, subnet_name)

        network.subnet = Subnet(id=subnet.id, name=subnet.name, cidr=subnet.cidr, tags=list(subnet.tags))

    def get_networks_by_filter(self, opts: Any) -> list[OSNetwork]:
        """Return the networks matching ``opts``; finding none is an error."""
        if opts is None:
            raise ValueError("no Filters were passed")
        found = self.client.list_network(opts)
        if not found:
            raise OpenStackError("no networks could be found with the filters provided")
        return list(found)

    def get_network_ids_by_filter(self, opts: Any) -> list[str]:
        """Return the ids of the networks matching ``opts``."""
        return [network.id for network in self.get_networks_by_filter(opts)]

    def get_subnets_by_filter(self, opts: Any) -> list[OSSubnet]:
        """Return the subnets matching ``opts``; finding none is an error."""
        if opts is None:
            raise ValueError("no Filters were passed")
        found = self.client.list_subnet(opts)
        if not found:
            raise OpenStackError("no subnets could be found with the filters provided")
        return list(found)

    def _create_subnet(self, open_stack_cluster: OpenStackCluster, cluster_name: str, name: str) -> OSSubnet:
        spec = open_stack_cluster.spec
        opts = _opts(
            network_id=open_stack_cluster.status.network.id,
            name=name,
            ip_version=4,
            cidr=spec.node_cidr,
            dns_nameservers=list(spec.dns_nameservers),
            description=get_description(cluster_name),
        )
        try:
            subnet = self.client.create_subnet(opts)
        except Exception as err:
            record.warnf(open_stack_cluster, "FailedCreateSubnet", "Failed to create subnet %s: %v", name, err)
            raise
        record.eventf(
            open_stack_cluster, "SuccessfulCreateSubnet", "Created subnet %s with id %s", name, subnet.id
        )

        if spec.tags:
            mc = MetricContext("subnet", "update")
            try:
                self.client.replace_all_attributes_tags("subnets", subnet.id, {"tags": list(spec.tags)})
            except Exception as err:
                mc.observe_request(err)
                raise
            mc.observe_request(None)

        return subnet

    def _get_network_by_id(self, network_id: str) -> Optional[OSNetwork]:
        found = self.client.list_network({"id": network_id})
        if not found:
            return None
        if len(found) == 1:
            return found[0]
        raise OpenStackError(f"found {len(found)} networks with id {network_id}, which should not happen")

    def _get_network_by_name(self, network_name: str) -> Optional[OSNetwork]:
        found = self.client.list_network({"name": network_name})
        if not found:
            return None
        if len(found) == 1:
            return found[0]
        raise OpenStackError(
            f"found {len(found)} networks with the name {network_name}, which should not happen"
        )