"""Bringing the rules of an existing security group in line with the wanted ones."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, NamedTuple

from .client import NetworkClient
from .models import SecurityGroup, SecurityGroupRule
from .secgroup_names import REMOTE_GROUP_ID_SELF, convert_os_sec_group_rule

_log = logging.getLogger(__name__)


class RuleDiff(NamedTuple):
    """Rules to delete, rules to create and observed rules to keep."""

    to_delete: list[SecurityGroupRule]
    to_create: list[SecurityGroupRule]
    unchanged: list[SecurityGroupRule]


def _resolve_self(rule: SecurityGroupRule, group_id: str) -> SecurityGroupRule:
    if rule.remote_group_id == REMOTE_GROUP_ID_SELF:
        return dataclasses.replace(rule, remote_group_id=group_id)
    return rule


def diff_rules(desired: SecurityGroup, observed: SecurityGroup) -> RuleDiff:
    """Compare wanted and existing rules; "self" refers to the observed group."""
    wanted = [_resolve_self(rule, observed.id) for rule in desired.rules]

    to_delete = [
        observed_rule
        for observed_rule in observed.rules
        if not any(rule.equal(observed_rule) for rule in wanted)
    ]

    to_create: list[SecurityGroupRule] = []
    unchanged: list[SecurityGroupRule] = []
    for original, rule in zip(desired.rules, wanted):
        match = next((o for o in observed.rules if rule.equal(o)), None)
        if match is None:
            to_create.append(original)
        else:
            unchanged.append(match)
    return RuleDiff(to_delete, to_create, unchanged)


def create_rule(client: NetworkClient, rule: SecurityGroupRule) -> SecurityGroupRule:
    """Create ``rule`` through the API and return the rule as created."""
    opts: dict[str, Any] = {
        "description": rule.description,
        "direction": rule.direction,
        "port_range_min": rule.port_range_min,
        "port_range_max": rule.port_range_max,
        "protocol": rule.protocol,
        "ether_type": rule.ether_type,
        "remote_group_id": rule.remote_group_id,
        "remote_ip_prefix": rule.remote_ip_prefix,
        "security_group_id": rule.security_group_id,
    }
    opts = {key: value for key, value in opts.items() if value not in (None, "", 0)}
    _log.debug("Creating rule %s", opts)
    return convert_os_sec_group_rule(client.create_sec_group_rule(opts))


def reconcile_group_rules(
    client: NetworkClient, desired: SecurityGroup, observed: SecurityGroup
) -> SecurityGroup:
    """Delete unwanted rules of ``observed``, create missing ones, return the result."""
    diff = diff_rules(desired, observed)

    _log.debug("Deleting rules not needed anymore for group name=%s amount=%d",
               observed.name, len(diff.to_delete))
    for rule in diff.to_delete:
        _log.debug("Deleting rule ruleID=%s groupName=%s", rule.id, observed.name)
        client.delete_sec_group_rule(rule.id)

    _log.debug("Creating new rules needed for group name=%s amount=%d",
               observed.name, len(diff.to_create))
    reconciled = list(diff.unchanged)
    for rule in diff.to_create:
        prepared = _resolve_self(dataclasses.replace(rule, security_group_id=observed.id), observed.id)
        reconciled.append(create_rule(client, prepared))

    return dataclasses.replace(observed, rules=reconciled)