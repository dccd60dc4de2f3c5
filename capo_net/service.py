"""The networking service covering every resource kind of a cluster."""

from __future__ import annotations

import logging
from typing import Optional

from .client import NetworkClient
from .floatingip import FloatingIPService
from .port import PortService
from .router import RouterService
from .scope import Scope


class Service(FloatingIPService, RouterService, PortService):
    """Creates the network infrastructure of a cluster: networks, subnets,
    routers, security groups, ports, trunks and floating IPs."""


def new_test_service(
    project_id: str, client: NetworkClient, logger: Optional[logging.Logger] = None
) -> Service:
    """Return a service working against ``client`` without further set-up."""
    scope = Scope(project_id=project_id) if logger is None else Scope(project_id=project_id, logger=logger)
    return Service(scope, client)