"""The rules wanted in the managed security groups of a cluster."""

from __future__ import annotations

from typing import Mapping

from .models import OpenStackCluster, SecurityGroup, SecurityGroupRule
from .secgroup_names import (
    BASTION_SUFFIX,
    CONTROL_PLANE_SUFFIX,
    REMOTE_GROUP_ID_SELF,
    WORKER_SUFFIX,
)


def default_rules() -> list[SecurityGroupRule]:
    """Return the rules every managed group starts with: open egress."""
    return [
        SecurityGroupRule(direction="egress", description="Full open", ether_type="IPv4"),
        SecurityGroupRule(direction="egress", description="Full open", ether_type="IPv6"),
    ]


def _ingress(description: str, protocol: str = "", port_min: int = 0, port_max: int = 0,
             remote_group_id: str = "") -> SecurityGroupRule:
    return SecurityGroupRule(
        description=description,
        direction="ingress",
        ether_type="IPv4",
        port_range_min=port_min,
        port_range_max=port_max,
        protocol=protocol,
        remote_group_id=remote_group_id,
    )


def _in_cluster_rules(peer_id: str) -> list[SecurityGroupRule]:
    return [
        _ingress("In-cluster Ingress", remote_group_id=REMOTE_GROUP_ID_SELF),
        _ingress("In-cluster Ingress", remote_group_id=peer_id),
    ]


def generate_desired_sec_groups(
    open_stack_cluster: OpenStackCluster,
    sec_group_names: Mapping[str, str],
    group_ids: Mapping[str, str],
) -> dict[str, SecurityGroup]:
    """Return the wanted groups keyed by role suffix.

    ``sec_group_names`` and ``group_ids`` map role suffixes to the group
    names and to the ids of the existing groups.
    """
    control_plane_id = group_ids.get(CONTROL_PLANE_SUFFIX, "")
    worker_id = group_ids.get(WORKER_SUFFIX, "")
    bastion_id = group_ids.get(BASTION_SUFFIX, "")
    spec = open_stack_cluster.spec

    control_plane_rules = default_rules()
    worker_rules = default_rules()

    control_plane_rules.append(_ingress("Kubernetes API", "tcp", 6443, 6443))
    worker_rules.append(_ingress("Node Port Services", "tcp", 30000, 32767))

    if spec.allow_all_in_cluster_traffic:
        control_plane_rules.extend(_in_cluster_rules(worker_id))
        worker_rules.extend(_in_cluster_rules(control_plane_id))
    else:
        control_plane_rules.extend([
            _ingress("Etcd", "tcp", 2379, 2380, REMOTE_GROUP_ID_SELF),
            _ingress("Kubelet API", "tcp", 10250, 10250, REMOTE_GROUP_ID_SELF),
            # Needed by metrics-server deployments.
            _ingress("Kubelet API", "tcp", 10250, 10250, worker_id),
            _ingress("BGP (calico)", "tcp", 179, 179, REMOTE_GROUP_ID_SELF),
            _ingress("BGP (calico)", "tcp", 179, 179, worker_id),
            _ingress("IP-in-IP (calico)", "4", remote_group_id=REMOTE_GROUP_ID_SELF),
            _ingress("IP-in-IP (calico)", "4", remote_group_id=worker_id),
        ])
        worker_rules.extend([
            _ingress("Kubelet API", "tcp", 10250, 10250, REMOTE_GROUP_ID_SELF),
            _ingress("Kubelet API", "tcp", 10250, 10250, control_plane_id),
            _ingress("BGP (calico)", "tcp", 179, 179, REMOTE_GROUP_ID_SELF),
            _ingress("BGP (calico)", "tcp", 179, 179, control_plane_id),
            _ingress("IP-in-IP (calico)", "4", remote_group_id=REMOTE_GROUP_ID_SELF),
            _ingress("IP-in-IP (calico)", "4", remote_group_id=control_plane_id),
        ])

    desired: dict[str, SecurityGroup] = {}

    if spec.bastion is not None and spec.bastion.enabled:
        control_plane_rules.append(_ingress("SSH", "tcp", 22, 22, bastion_id))
        worker_rules.append(_ingress("SSH", "tcp", 22, 22, bastion_id))
        desired[BASTION_SUFFIX] = SecurityGroup(
            name=sec_group_names.get(BASTION_SUFFIX, ""),
            rules=[_ingress("SSH", "tcp", 22, 22), *default_rules()],
        )

    desired[CONTROL_PLANE_SUFFIX] = SecurityGroup(
        name=sec_group_names.get(CONTROL_PLANE_SUFFIX, ""), rules=control_plane_rules
    )
    desired[WORKER_SUFFIX] = SecurityGroup(
        name=sec_group_names.get(WORKER_SUFFIX, ""), rules=worker_rules
    )
    return desired