"""Cluster resource descriptions and OpenStack networking records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional


def _non_empty_fields(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None or value == "":
            continue
        if isinstance(value, int) and not isinstance(value, bool) and value == 0:
            continue
        result[f.name] = value
    return result


@dataclass
class SubnetFilter:
    """Query fields selecting subnets."""

    name: str = ""
    description: str = ""
    enable_dhcp: Optional[bool] = None
    network_id: str = ""
    tenant_id: str = ""
    project_id: str = ""
    ip_version: int = 0
    gateway_ip: str = ""
    cidr: str = ""
    ipv6_address_mode: str = ""
    ipv6_ra_mode: str = ""
    id: str = ""
    subnetpool_id: str = ""
    tags: str = ""
    tags_any: str = ""
    not_tags: str = ""
    not_tags_any: str = ""

    def to_list_opts(self) -> dict[str, Any]:
        """Return the set fields as subnet list options."""
        return _non_empty_fields(self)


@dataclass
class SecurityGroupFilter:
    """Query fields selecting security groups."""

    id: str = ""
    name: str = ""
    description: str = ""
    tenant_id: str = ""
    project_id: str = ""
    tags: str = ""
    tags_any: str = ""
    not_tags: str = ""
    not_tags_any: str = ""

    def to_list_opts(self) -> dict[str, Any]:
        """Return the set fields as security group list options."""
        return _non_empty_fields(self)


@dataclass
class SecurityGroupParam:
    uuid: str = ""
    name: str = ""
    filter: SecurityGroupFilter = field(default_factory=SecurityGroupFilter)


@dataclass
class SubnetParam:
    uuid: str = ""
    filter: SubnetFilter = field(default_factory=SubnetFilter)


@dataclass
class ExternalRouterIPParam:
    fixed_ip: str = ""
    subnet: SubnetParam = field(default_factory=SubnetParam)


@dataclass
class FixedIP:
    subnet: Optional[SubnetFilter] = None
    ip_address: str = ""


@dataclass
class AddressPair:
    ip_address: str = ""
    mac_address: str = ""


@dataclass
class PortOpts:
    """Requested settings of a port to create."""

    name_suffix: str = ""
    description: str = ""
    admin_state_up: Optional[bool] = None
    mac_address: str = ""
    fixed_ips: list[FixedIP] = field(default_factory=list)
    tenant_id: str = ""
    project_id: str = ""
    security_groups: Optional[list[str]] = None
    security_group_filters: list[SecurityGroupParam] = field(default_factory=list)
    allowed_address_pairs: list[AddressPair] = field(default_factory=list)
    trunk: Optional[bool] = None
    host_id: str = ""
    vnic_type: str = ""
    profile: dict[str, str] = field(default_factory=dict)
    disable_port_security: Optional[bool] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Subnet:
    name: str = ""
    cidr: str = ""
    id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Router:
    name: str = ""
    id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Network:
    name: str = ""
    id: str = ""
    tags: list[str] = field(default_factory=list)
    subnet: Optional[Subnet] = None
    port_opts: Optional[PortOpts] = None
    router: Optional[Router] = None


@dataclass
class SecurityGroupRule:
    description: str = ""
    id: str = ""
    direction: str = ""
    ether_type: str = ""
    security_group_id: str = ""
    port_range_min: int = 0
    port_range_max: int = 0
    protocol: str = ""
    remote_group_id: str = ""
    remote_ip_prefix: str = ""

    def equal(self, other: "SecurityGroupRule") -> bool:
        """Compare the rule definitions, ignoring rule and group ids."""
        return (
            self.direction == other.direction
            and self.description == other.description
            and self.ether_type == other.ether_type
            and self.port_range_min == other.port_range_min
            and self.port_range_max == other.port_range_max
            and self.protocol == other.protocol
            and self.remote_group_id == other.remote_group_id
            and self.remote_ip_prefix == other.remote_ip_prefix
        )


@dataclass
class SecurityGroup:
    name: str = ""
    id: str = ""
    rules: list[SecurityGroupRule] = field(default_factory=list)


@dataclass
class Bastion:
    enabled: bool = False


@dataclass
class OpenStackClusterSpec:
    node_cidr: str = ""
    dns_nameservers: list[str] = field(default_factory=list)
    external_router_ips: list[ExternalRouterIPParam] = field(default_factory=list)
    external_network_id: str = ""
    disable_port_security: bool = False
    managed_security_groups: bool = False
    allow_all_in_cluster_traffic: bool = False
    tags: list[str] = field(default_factory=list)
    bastion: Optional[Bastion] = None


@dataclass
class OpenStackClusterStatus:
    network: Optional[Network] = None
    external_network: Optional[Network] = None
    control_plane_security_group: Optional[SecurityGroup] = None
    worker_security_group: Optional[SecurityGroup] = None
    bastion_security_group: Optional[SecurityGroup] = None


@dataclass
class OpenStackCluster:
    name: str = ""
    namespace: str = ""
    spec: OpenStackClusterSpec = field(default_factory=OpenStackClusterSpec)
    status: OpenStackClusterStatus = field(default_factory=OpenStackClusterStatus)


@dataclass
class OpenStackMachine:
    name: str = ""
    namespace: str = ""


@dataclass
class FloatingIP:
    id: str = ""
    description: str = ""
    floating_network_id: str = ""
    floating_ip: str = ""
    port_id: str = ""
    fixed_ip: str = ""
    tenant_id: str = ""
    project_id: str = ""
    status: str = ""
    router_id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class PortIP:
    subnet_id: str = ""
    ip_address: str = ""


@dataclass
class Port:
    id: str = ""
    network_id: str = ""
    name: str = ""
    description: str = ""
    admin_state_up: bool = False
    status: str = ""
    mac_address: str = ""
    fixed_ips: list[PortIP] = field(default_factory=list)
    tenant_id: str = ""
    project_id: str = ""
    device_owner: str = ""
    security_groups: list[str] = field(default_factory=list)
    device_id: str = ""
    allowed_address_pairs: list[AddressPair] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class Trunk:
    id: str = ""
    name: str = ""
    description: str = ""
    port_id: str = ""
    admin_state_up: bool = False
    status: str = ""
    tenant_id: str = ""
    project_id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Extension:
    alias: str = ""
    name: str = ""
    description: str = ""
    updated: str = ""


@dataclass
class OSNetwork:
    id: str = ""
    name: str = ""
    description: str = ""
    admin_state_up: bool = False
    status: str = ""
    subnets: list[str] = field(default_factory=list)
    tenant_id: str = ""
    project_id: str = ""
    shared: bool = False
    tags: list[str] = field(default_factory=list)


@dataclass
class OSSubnet:
    id: str = ""
    network_id: str = ""
    name: str = ""
    description: str = ""
    ip_version: int = 0
    cidr: str = ""
    gateway_ip: str = ""
    dns_nameservers: list[str] = field(default_factory=list)
    enable_dhcp: bool = False
    tenant_id: str = ""
    project_id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class OSRouter:
    id: str = ""
    name: str = ""
    description: str = ""
    status: str = ""
    admin_state_up: bool = False
    gateway_info: dict[str, Any] = field(default_factory=dict)
    tenant_id: str = ""
    project_id: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class OSSecGroupRule:
    id: str = ""
    direction: str = ""
    description: str = ""
    ether_type: str = ""
    sec_group_id: str = ""
    port_range_min: int = 0
    port_range_max: int = 0
    protocol: str = ""
    remote_group_id: str = ""
    remote_ip_prefix: str = ""
    tenant_id: str = ""
    project_id: str = ""


@dataclass
class OSSecGroup:
    id: str = ""
    name: str = ""
    description: str = ""
    rules: list[OSSecGroupRule] = field(default_factory=list)
    tenant_id: str = ""
    project_id: str = ""
    tags: list[str] = field(default_factory=list)