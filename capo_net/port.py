"""Port management on the OpenStack networking API."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from . import record
from .base import PORT_RESOURCE, TRUNK_RESOURCE
from .errors import OpenStackError, is_not_found, is_retryable
from .models import Network, Port, PortOpts, SecurityGroupParam, SubnetFilter
from .names import get_description
from .securitygroups import SecurityGroupService
from .trunk import TrunkService

PORT_DELETE_TIMEOUT = 180.0
PORT_DELETE_RETRY_INTERVAL = 5.0


def _compact(**values: Any) -> dict[str, Any]:
    """Build request options, leaving out fields that are not set."""
    return {key: value for key, value in values.items() if value is not None and value not in ("", [], {})}


def get_port_profile(profile: Optional[Mapping[str, str]]) -> Optional[dict[str, Any]]:
    """Return the binding profile, or None when empty to keep the API defaults."""
    if not profile:
        return None
    return dict(profile)


class PortService(SecurityGroupService, TrunkService):
    """Creates, finds and deletes ports."""

    def get_port_from_instance_ip(self, instance_id: str, ip: str) -> list[Port]:
        """Return at most one port of the instance that carries this address."""
        return self.client.list_port(
            {"device_id": instance_id, "fixed_ips": [{"ip_address": ip}], "limit": 1}
        )

    def get_or_create_port(
        self,
        event_object: Any,
        cluster_name: str,
        port_name: str,
        net: Network,
        instance_security_groups: Optional[list[str]],
        instance_tags: Optional[Iterable[str]],
    ) -> Port:
        """Return the port with this name on the network, creating it if missing."""
        try:
            existing = self.client.list_port({"name": port_name, "network_id": net.id})
        except Exception as err:
            raise OpenStackError(f"searching for existing port for server: {err}") from err

        if len(existing) == 1:
            return existing[0]
        if len(existing) > 1:
            raise OpenStackError(f'multiple ports found with name "{port_name}"')

        port_opts = net.port_opts if net.port_opts is not None else PortOpts()
        description = port_opts.description or get_description(cluster_name)

        security_groups: Optional[list[str]] = None
        address_pairs: list[dict[str, str]] = []
        if not port_opts.disable_port_security:
            address_pairs = [
                _compact(ip_address=pair.ip_address, mac_address=pair.mac_address)
                for pair in port_opts.allowed_address_pairs or []
            ]
            security_groups = self.collect_port_security_groups(
                event_object, port_opts.security_groups, port_opts.security_group_filters
            )
            # Inherit the instance security groups unless the port names its own.
            if not security_groups:
                security_groups = instance_security_groups

        fixed_ips: Optional[list[dict[str, str]]] = None
        if port_opts.fixed_ips:
            fixed_ips = [
                _compact(
                    subnet_id=self._get_subnet_id_for_fixed_ip(fixed_ip.subnet, net.id),
                    ip_address=fixed_ip.ip_address,
                )
                for fixed_ip in port_opts.fixed_ips
            ]
            if net.subnet is not None and net.subnet.id:
                fixed_ips.append({"subnet_id": net.subnet.id})

        opts = _compact(
            name=port_name,
            network_id=net.id,
            description=description,
            admin_state_up=port_opts.admin_state_up,
            mac_address=port_opts.mac_address,
            tenant_id=port_opts.tenant_id,
            project_id=port_opts.project_id,
            security_groups=list(security_groups) if security_groups is not None else None,
            allowed_address_pairs=address_pairs,
            fixed_ips=fixed_ips,
        )
        if port_opts.disable_port_security is not None:
            opts["port_security_enabled"] = not port_opts.disable_port_security
        opts.update(
            _compact(
                **{
                    "binding:host_id": port_opts.host_id,
                    "binding:vnic_type": port_opts.vnic_type,
                    "binding:profile": get_port_profile(port_opts.profile),
                }
            )
        )

        try:
            port = self.client.create_port(opts)
        except Exception as err:
            record.warnf(event_object, "FailedCreatePort", "Failed to create port %s: %v", port_name, err)
            raise

        tags = [*(instance_tags or []), *(port_opts.tags or [])]
        if tags:
            try:
                self.replace_all_attributes_tags(event_object, PORT_RESOURCE, port.id, tags)
            except Exception as err:
                record.warnf(event_object, "FailedReplaceTags", "Failed to replace port tags %s: %v", port_name, err)
                raise
        record.eventf(event_object, "SuccessfulCreatePort", "Created port %s with id %s", port.name, port.id)

        if port_opts.trunk:
            try:
                trunk = self.get_or_create_trunk(event_object, cluster_name, port.name, port.id)
            except Exception as err:
                record.warnf(
                    event_object, "FailedCreateTrunk", "Failed to create trunk for port %s: %v", port_name, err
                )
                raise
            try:
                self.replace_all_attributes_tags(event_object, TRUNK_RESOURCE, trunk.id, tags)
            except Exception as err:
                record.warnf(event_object, "FailedReplaceTags", "Failed to replace trunk tags %s: %v", port_name, err)
                raise

        return port

    def delete_port(self, event_object: Any, port_id: str) -> None:
        """Delete a port, retrying while the API reports a server error."""

        def attempt() -> bool:
            try:
                self.client.delete_port(port_id)
            except Exception as err:
                if is_not_found(err):
                    record.eventf(
                        event_object, "SuccessfulDeletePort", "Port with id %s did not exist", port_id
                    )
                if is_retryable(err):
                    return False
                raise
            return True

        try:
            self._poll_immediate(PORT_DELETE_RETRY_INTERVAL, PORT_DELETE_TIMEOUT, attempt)
        except Exception as err:
            record.warnf(event_object, "FailedDeletePort", "Failed to delete port with id %s: %v", port_id, err)
            raise

        record.eventf(event_object, "SuccessfulDeletePort", "Deleted port with id %s", port_id)

    def garbage_collect_error_instances_port(self, event_object: Any, instance_name: str) -> None:
        """Delete every port named after a failed instance."""
        for port in self.client.list_port({"name": instance_name}):
            self.delete_port(event_object, port.id)

    def collect_port_security_groups(
        self,
        event_object: Any,
        port_security_groups: Optional[Iterable[str]],
        port_security_group_filters: Optional[Iterable[SecurityGroupParam]],
    ) -> list[str]:
        """Return the distinct group ids given directly or through filters."""
        try:
            by_filter = self.get_security_groups(port_security_group_filters or [])
        except Exception as err:
            raise OpenStackError(f"error getting security groups: {err}") from err
        candidates = [*by_filter, *(port_security_groups or [])]
        return list(dict.fromkeys(group for group in candidates if group))

    def _get_subnet_id_for_fixed_ip(self, subnet: Optional[SubnetFilter], network_id: str) -> str:
        if subnet is None:
            return ""
        # No lookup is needed when the id is already known.
        if subnet.id:
            return subnet.id

        opts = {**subnet.to_list_opts(), "network_id": network_id}
        found = self.client.list_subnet(opts)
        if not found:
            raise OpenStackError(f"subnet query {subnet}, returns no subnets")
        if len(found) == 1:
            return found[0].id
        raise OpenStackError(f"subnet query {subnet}, returns too many subnets: {found}")