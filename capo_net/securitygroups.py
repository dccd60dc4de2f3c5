"""Management of the security groups of a cluster."""

from __future__ import annotations

from typing import Any, Iterable

from . import record
from .base import ServiceBase
from .errors import OpenStackError
from .models import OpenStackCluster, SecurityGroup, SecurityGroupParam
from .secgroup_names import (
    BASTION_SUFFIX,
    CONTROL_PLANE_SUFFIX,
    WORKER_SUFFIX,
    convert_os_sec_group,
    get_sec_bastion_group_name,
    get_sec_control_plane_group_name,
    get_sec_worker_group_name,
    is_duplicate,
)
from .secgroup_rules import generate_desired_sec_groups
from .secgroup_sync import reconcile_group_rules

MANAGED_GROUP_DESCRIPTION = "Cluster API managed group"


class SecurityGroupService(ServiceBase):
    """Creates, reconciles, looks up and deletes security groups."""

    def reconcile_security_groups(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Ensure the managed groups exist with the wanted rules and record them."""
        self._log.info("Reconciling security groups cluster=%s", cluster_name)
        spec = open_stack_cluster.spec
        if not spec.managed_security_groups:
            self._log.debug("No need to reconcile security groups cluster=%s", cluster_name)
            return

        names = {
            CONTROL_PLANE_SUFFIX: get_sec_control_plane_group_name(cluster_name),
            WORKER_SUFFIX: get_sec_worker_group_name(cluster_name),
        }
        if spec.bastion is not None and spec.bastion.enabled:
            names[BASTION_SUFFIX] = get_sec_bastion_group_name(cluster_name)

        # Groups are created first, since the wanted rules refer to their ids.
        for name in names.values():
            self._create_security_group_if_not_exists(open_stack_cluster, name)

        group_ids = {suffix: self._get_security_group_by_name(name).id for suffix, name in names.items()}
        desired = generate_desired_sec_groups(open_stack_cluster, names, group_ids)

        observed: dict[str, SecurityGroup] = {}
        for suffix, wanted in desired.items():
            group = self._get_security_group_by_name(wanted.name)
            if group.id:
                group = reconcile_group_rules(self.client, wanted, group)
            observed[suffix] = group

        status = open_stack_cluster.status
        status.control_plane_security_group = observed.get(CONTROL_PLANE_SUFFIX)
        status.worker_security_group = observed.get(WORKER_SUFFIX)
        status.bastion_security_group = observed.get(BASTION_SUFFIX)

    def get_security_groups(self, security_group_params: Iterable[SecurityGroupParam]) -> list[str]:
        """Return the distinct ids of the groups named by ``security_group_params``."""
        ids: list[str] = []
        for param in security_group_params:
            # An explicit id is taken as given.
            if param.uuid:
                if not is_duplicate(ids, param.uuid):
                    ids.append(param.uuid)
                continue

            opts: dict[str, Any] = dict(param.filter.to_list_opts()) if param.filter is not None else {}
            if not opts.get("project_id") and self.scope.project_id:
                opts["project_id"] = self.scope.project_id
            opts.pop("name", None)
            opts.pop("id", None)
            if param.name:
                opts["name"] = param.name

            found = self.client.list_sec_group(opts)
            if not found:
                raise OpenStackError(f"security group {param.name} not found")
            for group in found:
                if not is_duplicate(ids, group.id):
                    ids.append(group.id)
        return ids

    def delete_security_groups(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Delete the control plane and worker groups of a cluster."""
        for name in (get_sec_control_plane_group_name(cluster_name), get_sec_worker_group_name(cluster_name)):
            self._delete_security_group(open_stack_cluster, name)

    def delete_bastion_security_group(self, open_stack_cluster: OpenStackCluster, cluster_name: str) -> None:
        """Delete the bastion group of a cluster."""
        self._delete_security_group(open_stack_cluster, get_sec_bastion_group_name(cluster_name))

    def _delete_security_group(self, open_stack_cluster: OpenStackCluster, name: str) -> None:
        group = self._get_security_group_by_name(name)
        if not group.id:
            return
        try:
            self.client.delete_sec_group(group.id)
        except Exception as err:
            record.warnf(
                open_stack_cluster,
                "FailedDeleteSecurityGroup",
                "Failed to delete security group %s with id %s: %v",
                group.name,
                group.id,
                err,
            )
            raise
        record.eventf(
            open_stack_cluster,
            "SuccessfulDeleteSecurityGroup",
            "Deleted security group %s with id %s",
            group.name,
            group.id,
        )

    def _create_security_group_if_not_exists(self, open_stack_cluster: OpenStackCluster, group_name: str) -> None:
        existing = self._get_security_group_by_name(group_name)
        if existing.id:
            self._log.debug("Reuse Existing SecurityGroup %s with %s", group_name, existing.id)
            return

        self._log.debug("Group doesn't exist, creating it. name=%s", group_name)
        try:
            group = self.client.create_sec_group({"name": group_name, "description": MANAGED_GROUP_DESCRIPTION})
        except Exception as err:
            record.warnf(
                open_stack_cluster,
                "FailedCreateSecurityGroup",
                "Failed to create security group %s: %v",
                group_name,
                err,
            )
            raise

        tags = list(open_stack_cluster.spec.tags)
        if tags:
            self.client.replace_all_attributes_tags("security-groups", group.id, {"tags": tags})

        record.eventf(
            open_stack_cluster,
            "SuccessfulCreateSecurityGroup",
            "Created security group %s with id %s",
            group_name,
            group.id,
        )

    def _get_security_group_by_name(self, name: str) -> SecurityGroup:
        self._log.debug("Attempting to fetch security group with name=%s", name)
        found = self.client.list_sec_group({"name": name})
        if not found:
            return SecurityGroup()
        if len(found) == 1:
            return convert_os_sec_group(found[0])
        raise OpenStackError(f"more than one security group found named: {name}")