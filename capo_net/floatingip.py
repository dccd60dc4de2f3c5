"""Floating IP management on the OpenStack networking API."""

from __future__ import annotations

import random
from typing import Any, Callable, Optional

from . import record
from .base import ServiceBase
from .metrics import MetricContext
from .models import FloatingIP, OpenStackCluster
from .names import get_description

_BACKOFF_STEPS = 10
_BACKOFF_DURATION = 30.0
_BACKOFF_JITTER = 0.1


class FloatingIPService(ServiceBase):
    """Creates, finds, associates and deletes floating IPs."""

    def get_or_create_floating_ip(
        self,
        event_object: Any,
        open_stack_cluster: OpenStackCluster,
        cluster_name: str,
        ip: str,
    ) -> FloatingIP:
        """Return the floating IP ``ip``, creating it (or any new one if empty) when missing."""
        opts: dict[str, Any] = {}
        if ip:
            existing = self.get_floating_ip(ip)
            if existing is not None:
                return existing
            # Only an administrator may choose the address.
            opts["floating_ip"] = ip

        external = open_stack_cluster.status.external_network
        network_id = external.id if external is not None else ""
        if network_id:
            opts["floating_network_id"] = network_id
        opts["description"] = get_description(cluster_name)

        try:
            fp = self.client.create_floating_ip(opts)
        except Exception as err:
            record.warnf(event_object, "FailedCreateFloatingIP", "Failed to create floating IP %s: %v", ip, err)
            raise

        tags = open_stack_cluster.spec.tags
        if tags:
            mc = MetricContext("floating_ip", "update")
            try:
                self.client.replace_all_attributes_tags("floatingips", fp.id, {"tags": list(tags)})
            except Exception as err:
                mc.observe_request(err)
                raise
            mc.observe_request(None)

        record.eventf(
            event_object,
            "SuccessfulCreateFloatingIP",
            "Created floating IP %s with id %s",
            fp.floating_ip,
            fp.id,
        )
        return fp

    def get_floating_ip(self, ip: str) -> Optional[FloatingIP]:
        """Return the floating IP with this address, or None."""
        found = self.client.list_floating_ip({"floating_ip": ip})
        return found[0] if found else None

    def get_floating_ip_by_port_id(self, port_id: str) -> Optional[FloatingIP]:
        """Return the floating IP associated with the port, or None."""
        found = self.client.list_floating_ip({"port_id": port_id})
        return found[0] if found else None

    def delete_floating_ip(self, event_object: Any, ip: str) -> None:
        """Delete the floating IP with this address if it exists."""
        fip = self.get_floating_ip(ip)
        if fip is None:
            return
        try:
            self.client.delete_floating_ip(fip.id)
        except Exception as err:
            record.warnf(event_object, "FailedDeleteFloatingIP", "Failed to delete floating IP %s: %v", ip, err)
            raise
        record.eventf(event_object, "SuccessfulDeleteFloatingIP", "Deleted floating IP %s", ip)

    def associate_floating_ip(self, event_object: Any, fp: FloatingIP, port_id: str) -> None:
        """Attach the floating IP to the port and wait until it is active."""
        self._log.info("Associating floating IP id=%s ip=%s", fp.id, fp.floating_ip)

        if fp.port_id == port_id:
            record.eventf(
                event_object,
                "SuccessfulAssociateFloatingIP",
                "Floating IP %s already associated with port %s",
                fp.floating_ip,
                port_id,
            )
            return

        try:
            self.client.update_floating_ip(fp.id, {"port_id": port_id})
        except Exception as err:
            record.warnf(
                event_object,
                "FailedAssociateFloatingIP",
                "Failed to associate floating IP %s with port %s: %v",
                fp.floating_ip,
                port_id,
                err,
            )
            raise

        try:
            self._wait_for_floating_ip(fp.id, "ACTIVE")
        except Exception as err:
            record.warnf(
                event_object,
                "FailedAssociateFloatingIP",
                "Failed to associate floating IP %s with port %s: wait for floating IP ACTIVE: %v",
                fp.floating_ip,
                port_id,
                err,
            )
            raise

        record.eventf(
            event_object,
            "SuccessfulAssociateFloatingIP",
            "Associated floating IP %s with port %s",
            fp.floating_ip,
            port_id,
        )

    def disassociate_floating_ip(self, event_object: Any, ip: str) -> None:
        """Detach the floating IP from its port and wait until it is down."""
        fip = self.get_floating_ip(ip)
        if fip is None or not fip.floating_ip:
            self._log.info("Floating IP not associated ip=%s", ip)
            return

        self._log.info("Disassociating floating IP id=%s ip=%s", fip.id, fip.floating_ip)

        try:
            self.client.update_floating_ip(fip.id, {"port_id": None})
        except Exception as err:
            record.warnf(
                event_object,
                "FailedDisassociateFloatingIP",
                "Failed to disassociate floating IP %s: %v",
                fip.floating_ip,
                err,
            )
            raise

        try:
            self._wait_for_floating_ip(fip.id, "DOWN")
        except Exception as err:
            record.warnf(
                event_object,
                "FailedDisassociateFloatingIP",
                "Failed to disassociate floating IP %s: wait for floating IP DOWN: %v",
                fip.floating_ip,
                err,
            )
            raise

        record.eventf(
            event_object,
            "SuccessfulDisassociateFloatingIP",
            "Disassociated floating IP %s",
            fip.floating_ip,
        )

    def _wait_for_floating_ip(self, resource_id: str, target: str) -> None:
        self._log.info("Waiting for floating IP id=%s targetStatus=%s", resource_id, target)
        self._backoff(lambda: self.client.get_floating_ip(resource_id).status == target)

    def _backoff(self, condition: Callable[[], bool]) -> None:
        """Try ``condition`` up to a fixed number of times with jittered pauses."""
        for step in range(_BACKOFF_STEPS):
            if condition():
                return
            if step == _BACKOFF_STEPS - 1:
                break
            self._sleep(_BACKOFF_DURATION * (1.0 + random.random() * _BACKOFF_JITTER))
        raise TimeoutError("timed out waiting for the condition")