"""Router management on the OpenStack networking API."""

from __future__ import annotations

from typing import Any, Optional

from . import record
from .base import NETWORK_PREFIX
from .errors import OpenStackError, is_not_found
from .models import OpenStackCluster, OSRouter, OSSubnet, Router
from .names import get_description
from .network import NetworkService, get_subnet_name


def get_router_name(cluster_name: str) -> str:
    """Return the name of the router created for a cluster."""
    return f"{NETWORK_PREFIX}-cluster-{cluster_name}"


class RouterService(NetworkService):
    """Reconciles the router connecting a cluster network to the outside."""

    def reconcile_router(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Ensure the cluster router exists, is attached to the subnet and is recorded."""
        status = open_stack_cluster.status
        network = status.network
        if network is None or not network.id:
            self._log.debug("No need to reconcile router since no network exists.")
            return
        subnet = network.subnet
        if subnet is None or not subnet.id:
            self._log.debug("No need to reconcile router since no subnet exists.")
            return
        external = status.external_network
        if external is None or not external.id:
            self._log.debug("No need to create router, due to missing ExternalNetworkID.")
            return

        router_name = get_router_name(cluster_name)
        self._log.info("Reconciling router name=%s", router_name)

        found = self.client.list_router({"name": router_name})
        if len(found) > 1:
            raise OpenStackError(
                f"found {len(found)} router with the name {router_name}, which should not happen"
            )

        if found:
            router = found[0]
            self._log.debug("Reuse existing Router %s with id %s", router_name, router.id)
        else:
            router = self._create_router(open_stack_cluster, cluster_name, router_name)

        network.router = Router(name=router.name, id=router.id, tags=list(router.tags or []))

        if open_stack_cluster.spec.external_router_ips:
            self._set_router_external_ips(open_stack_cluster, router)

        interfaces = self.client.list_port({"device_id": router.id})
        attached = any(
            ip.subnet_id == subnet.id for iface in interfaces for ip in (iface.fixed_ips or [])
        )
        if attached:
            return

        self._log.debug("Creating RouterInterface routerID=%s subnetID=%s", router.id, subnet.id)
        try:
            interface = self.client.add_router_interface(router.id, {"subnet_id": subnet.id})
        except Exception as err:
            raise OpenStackError(f"unable to create router interface: {err}") from err
        self._log.debug("Created RouterInterface id=%s", getattr(interface, "id", ""))

    def delete_router(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Detach the cluster subnet from the router and delete the router."""
        router = self._get_router_by_name(get_router_name(cluster_name))
        if router is None or not router.id:
            return
        subnet = self._get_subnet_by_name(get_subnet_name(cluster_name))

        if subnet is not None and subnet.id:
            try:
                self.client.remove_router_interface(router.id, {"subnet_id": subnet.id})
            except Exception as err:
                if not is_not_found(err):
                    raise OpenStackError(f"unable to remove router interface: {err}") from err
                self._log.debug("Router Interface already removed, nothing to do id=%s", router.id)
            else:
                self._log.debug("Removed RouterInterface of Router id=%s", router.id)

        try:
            self.client.delete_router(router.id)
        except Exception as err:
            record.warnf(
                open_stack_cluster,
                "FailedDeleteRouter",
                "Failed to delete router %s with id %s: %v",
                router.name,
                router.id,
                err,
            )
            raise
        record.eventf(
            open_stack_cluster,
            "SuccessfulDeleteRouter",
            "Deleted router %s with id %s",
            router.name,
            router.id,
        )

    def _create_router(self, open_stack_cluster: OpenStackCluster, cluster_name: str, name: str) -> OSRouter:
        opts: dict[str, Any] = {"description": get_description(cluster_name), "name": name}
        # The gateway can carry fixed external IPs only through an update, so it
        # is set on creation only when no such IPs are wanted.
        if not open_stack_cluster.spec.external_router_ips:
            opts["gateway_info"] = {"network_id": open_stack_cluster.status.external_network.id}

        try:
            router = self.client.create_router(opts)
        except Exception as err:
            record.warnf(open_stack_cluster, "FailedCreateRouter", "Failed to create router %s: %v", name, err)
            raise
        record.eventf(
            open_stack_cluster, "SuccessfulCreateRouter", "Created router %s with id %s", name, router.id
        )

        tags = list(open_stack_cluster.spec.tags)
        if tags:
            self.client.replace_all_attributes_tags("routers", router.id, {"tags": tags})
        return router

    def _set_router_external_ips(self, open_stack_cluster: OpenStackCluster, router: OSRouter) -> None:
        fixed_ips = []
        for external_ip in open_stack_cluster.spec.external_router_ips:
            subnet_id = external_ip.subnet.uuid
            if not subnet_id:
                matches = self.get_subnets_by_filter(external_ip.subnet.filter.to_list_opts())
                if len(matches) != 1:
                    raise OpenStackError("subnetParam didn't exactly match one subnet")
                subnet_id = matches[0].id
            fixed_ips.append({"ip_address": external_ip.fixed_ip, "subnet_id": subnet_id})

        opts = {
            "gateway_info": {
                "network_id": open_stack_cluster.status.external_network.id,
                "external_fixed_ips": fixed_ips,
            }
        }
        try:
            self.client.update_router(router.id, opts)
        except Exception as err:
            record.warnf(
                open_stack_cluster,
                "FailedUpdateRouter",
                "Failed to update router %s with id %s: %v",
                router.name,
                router.id,
                err,
            )
            raise
        record.eventf(
            open_stack_cluster,
            "SuccessfulUpdateRouter",
            "Updated router %s with id %s",
            router.name,
            router.id,
        )

    def _get_router_by_name(self, router_name: str) -> Optional[OSRouter]:
        found = self.client.list_router({"name": router_name})
        if not found:
            return None
        if len(found) == 1:
            return found[0]
        raise OpenStackError(
            f"found {len(found)} router with the name {router_name}, which should not happen"
        )

    def _get_subnet_by_name(self, subnet_name: str) -> Optional[OSSubnet]:
        found = self.client.list_subnet({"name": subnet_name})
        if not found:
            return None
        if len(found) == 1:
            return found[0]
        raise OpenStackError(
            f"found {len(found)} subnets with the name {subnet_name}, which should not happen"
        )