"""Trunk management on the OpenStack networking API."""

from __future__ import annotations

from typing import Any

from . import record
from .base import ServiceBase
from .errors import OpenStackError, is_conflict, is_not_found, is_retryable
from .models import Trunk
from .names import get_description

TRUNK_DELETE_TIMEOUT = 180.0
TRUNK_DELETE_RETRY_INTERVAL = 5.0


class TrunkService(ServiceBase):
    """Creates, finds and deletes trunks."""

    def get_trunk_support(self) -> bool:
        """Tell whether the networking API offers the trunk extension."""
        return any(ext.alias == "trunk" for ext in self.client.list_extensions())

    def get_or_create_trunk(self, event_object: Any, cluster_name: str, trunk_name: str, port_id: str) -> Trunk:
        """Return the trunk with this name on the port, creating it if missing."""
        try:
            existing = self.client.list_trunk({"name": trunk_name, "port_id": port_id})
        except Exception as err:
            raise OpenStackError(f"searching for existing trunk for server: {err}") from err

        if existing:
            return existing[0]

        opts = {
            "name": trunk_name,
            "port_id": port_id,
            "description": get_description(cluster_name),
        }
        try:
            trunk = self.client.create_trunk(opts)
        except Exception as err:
            record.warnf(event_object, "FailedCreateTrunk", "Failed to create trunk %s: %v", trunk_name, err)
            raise

        record.eventf(event_object, "SuccessfulCreateTrunk", "Created trunk %s with id %s", trunk.name, trunk.id)
        return trunk

    def delete_trunk(self, event_object: Any, port_id: str) -> None:
        """Delete the trunk of a port, retrying while the API reports a transient state."""
        found = self.client.list_trunk({"port_id": port_id})
        if len(found) != 1:
            return
        trunk = found[0]

        def attempt() -> bool:
            try:
                self.client.delete_trunk(trunk.id)
            except Exception as err:
                if is_not_found(err):
                    record.eventf(
                        event_object,
                        "SuccessfulDeleteTrunk",
                        "Trunk %s with id %s did not exist",
                        trunk.name,
                        trunk.id,
                    )
                    return True
                if is_conflict(err) or is_retryable(err):
                    return False
                raise
            return True

        try:
            self._poll_immediate(TRUNK_DELETE_RETRY_INTERVAL, TRUNK_DELETE_TIMEOUT, attempt)
        except Exception as err:
            record.warnf(
                event_object,
                "FailedDeleteTrunk",
                "Failed to delete trunk %s with id %s: %v",
                trunk.name,
                trunk.id,
                err,
            )
            raise

        record.eventf(event_object, "SuccessfulDeleteTrunk", "Deleted trunk %s with id %s", trunk.name, trunk.id)