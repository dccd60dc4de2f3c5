"""Names of managed security groups and conversion of API records."""

from __future__ import annotations

from typing import Iterable

from .models import OSSecGroup, OSSecGroupRule, SecurityGroup, SecurityGroupRule

SEC_GROUP_PREFIX = "k8s"
CONTROL_PLANE_SUFFIX = "controlplane"
WORKER_SUFFIX = "worker"
BASTION_SUFFIX = "bastion"
REMOTE_GROUP_ID_SELF = "self"


def _group_name(cluster_name: str, suffix: str) -> str:
    return f"{SEC_GROUP_PREFIX}-cluster-{cluster_name}-secgroup-{suffix}"


def get_sec_control_plane_group_name(cluster_name: str) -> str:
    """Return the name of the control plane security group of a cluster."""
    return _group_name(cluster_name, CONTROL_PLANE_SUFFIX)


def get_sec_worker_group_name(cluster_name: str) -> str:
    """Return the name of the worker security group of a cluster."""
    return _group_name(cluster_name, WORKER_SUFFIX)


def get_sec_bastion_group_name(cluster_name: str) -> str:
    """Return the name of the bastion security group of a cluster."""
    return _group_name(cluster_name, BASTION_SUFFIX)


def convert_os_sec_group_rule(os_rule: OSSecGroupRule) -> SecurityGroupRule:
    """Convert a security group rule record from the API."""
    return SecurityGroupRule(
        id=os_rule.id,
        direction=os_rule.direction,
        description=os_rule.description,
        ether_type=os_rule.ether_type,
        security_group_id=os_rule.sec_group_id,
        port_range_min=os_rule.port_range_min,
        port_range_max=os_rule.port_range_max,
        protocol=os_rule.protocol,
        remote_group_id=os_rule.remote_group_id,
        remote_ip_prefix=os_rule.remote_ip_prefix,
    )


def convert_os_sec_group(os_sec_group: OSSecGroup) -> SecurityGroup:
    """Convert a security group record from the API, with its rules."""
    return SecurityGroup(
        id=os_sec_group.id,
        name=os_sec_group.name,
        rules=[convert_os_sec_group_rule(rule) for rule in os_sec_group.rules],
    )


def is_duplicate(items: Iterable[str], name: str) -> bool:
    """Tell whether ``name`` is already among ``items``."""
    return name in items