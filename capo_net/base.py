"""Shared state and helpers of the networking services."""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable, Optional

from . import record
from .client import NetworkClient
from .scope import Scope

NETWORK_PREFIX = "k8s-clusterapi"
TRUNK_RESOURCE = "trunks"
PORT_RESOURCE = "ports"

_WAIT_TIMEOUT_MESSAGE = "timed out waiting for the condition"


class ServiceBase:
    """Holds the scope and API client the networking services work with.

    ``sleep`` and ``clock`` are used when waiting for resources and may be
    replaced, for instance to avoid real delays.
    """

    def __init__(
        self,
        scope: Optional[Scope],
        client: NetworkClient,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scope = scope if scope is not None else Scope()
        self.client = client
        self._sleep = sleep
        self._clock = clock

    @property
    def _log(self):
        return self.scope.logger

    def replace_all_attributes_tags(
        self,
        event_object: Any,
        resource_type: str,
        resource_id: str,
        tags: Iterable[str],
    ) -> None:
        """Replace the tags of a port or trunk with the distinct, sorted ``tags``."""
        tags = list(tags)
        if not tags:
            self._log.info(
                "no tags provided to ReplaceAllAttributesTags resourceType=%s resourceID=%s",
                resource_type,
                resource_id,
            )
            return
        if resource_type not in (TRUNK_RESOURCE, PORT_RESOURCE):
            record.warnf(
                event_object,
                "FailedReplaceAllAttributesTags",
                "Invalid resourceType argument in function call",
            )
            raise ValueError(
                f"invalid argument: resourceType, {resource_type}, does not match allowed "
                f"arguments: {TRUNK_RESOURCE} or {PORT_RESOURCE}"
            )

        unique_tags = sorted(set(tags))
        try:
            self.client.replace_all_attributes_tags(resource_type, resource_id, {"tags": unique_tags})
        except Exception as err:
            record.warnf(
                event_object,
                "FailedReplaceAllAttributesTags",
                "Failed to replace all attributestags, %s: %v",
                resource_id,
                err,
            )
            raise

        record.eventf(
            event_object,
            "SuccessfulReplaceAllAttributeTags",
            "Replaced all attributestags for %s with tags %s",
            resource_id,
            unique_tags,
        )

    def _poll_immediate(self, interval: float, timeout: float, condition: Callable[[], bool]) -> None:
        """Call ``condition`` now and every ``interval`` seconds until it holds.

        Errors raised by ``condition`` propagate; TimeoutError is raised once
        ``timeout`` seconds have passed without success.
        """
        start = self._clock()
        while True:
            if condition():
                return
            if self._clock() - start >= timeout:
                raise TimeoutError(_WAIT_TIMEOUT_MESSAGE)
            self._sleep(interval)