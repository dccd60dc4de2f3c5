"""Access to the OpenStack networking API with per-call metrics."""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from .metrics import MetricContext
from .models import (
    Extension,
    FloatingIP,
    OSNetwork,
    OSRouter,
    OSSecGroup,
    OSSecGroupRule,
    OSSubnet,
    Port,
    Trunk,
)

_T = TypeVar("_T")


@runtime_checkable
class NetworkClient(Protocol):
    """Operations offered by the OpenStack networking API."""

    def list_floating_ip(self, opts: Any) -> list[FloatingIP]: ...
    def create_floating_ip(self, opts: Any) -> FloatingIP: ...
    def delete_floating_ip(self, resource_id: str) -> None: ...
    def get_floating_ip(self, resource_id: str) -> FloatingIP: ...
    def update_floating_ip(self, resource_id: str, opts: Any) -> FloatingIP: ...

    def list_port(self, opts: Any) -> list[Port]: ...
    def create_port(self, opts: Any) -> Port: ...
    def delete_port(self, resource_id: str) -> None: ...
    def get_port(self, resource_id: str) -> Port: ...
    def update_port(self, resource_id: str, opts: Any) -> Port: ...

    def list_trunk(self, opts: Any) -> list[Trunk]: ...
    def create_trunk(self, opts: Any) -> Trunk: ...
    def delete_trunk(self, resource_id: str) -> None: ...

    def list_router(self, opts: Any) -> list[OSRouter]: ...
    def create_router(self, opts: Any) -> OSRouter: ...
    def delete_router(self, resource_id: str) -> None: ...
    def get_router(self, resource_id: str) -> OSRouter: ...
    def update_router(self, resource_id: str, opts: Any) -> OSRouter: ...
    def add_router_interface(self, resource_id: str, opts: Any) -> Any: ...
    def remove_router_interface(self, resource_id: str, opts: Any) -> Any: ...

    def list_sec_group(self, opts: Any) -> list[OSSecGroup]: ...
    def create_sec_group(self, opts: Any) -> OSSecGroup: ...
    def delete_sec_group(self, resource_id: str) -> None: ...
    def get_sec_group(self, resource_id: str) -> OSSecGroup: ...
    def update_sec_group(self, resource_id: str, opts: Any) -> OSSecGroup: ...

    def list_sec_group_rule(self, opts: Any) -> list[OSSecGroupRule]: ...
    def create_sec_group_rule(self, opts: Any) -> OSSecGroupRule: ...
    def delete_sec_group_rule(self, resource_id: str) -> None: ...
    def get_sec_group_rule(self, resource_id: str) -> OSSecGroupRule: ...

    def list_network(self, opts: Any) -> list[OSNetwork]: ...
    def create_network(self, opts: Any) -> OSNetwork: ...
    def delete_network(self, resource_id: str) -> None: ...
    def get_network(self, resource_id: str) -> OSNetwork: ...
    def update_network(self, resource_id: str, opts: Any) -> OSNetwork: ...

    def list_subnet(self, opts: Any) -> list[OSSubnet]: ...
    def create_subnet(self, opts: Any) -> OSSubnet: ...
    def delete_subnet(self, resource_id: str) -> None: ...
    def get_subnet(self, resource_id: str) -> OSSubnet: ...
    def update_subnet(self, resource_id: str, opts: Any) -> OSSubnet: ...

    def list_extensions(self) -> list[Extension]: ...

    def replace_all_attributes_tags(self, resource_type: str, resource_id: str, opts: Any) -> list[str]: ...


class MeteredNetworkClient:
    """A network client that records latency, count and errors of every call.

    Each call is delegated to ``backend``, which performs the actual API
    request; errors raised by it propagate unchanged.
    """

    def __init__(self, backend: NetworkClient) -> None:
        self._backend = backend

    @staticmethod
    def _metered(
        resource: str,
        request: str,
        call: Callable[..., _T],
        *args: Any,
        tolerate_not_found: bool = False,
    ) -> _T:
        mc = MetricContext(resource, request)
        try:
            result = call(*args)
        except Exception as err:
            if tolerate_not_found:
                mc.observe_request_ignore_not_found(err)
            else:
                mc.observe_request(err)
            raise
        mc.observe_request(None)
        return result

    # Floating IPs

    def list_floating_ip(self, opts: Any) -> list[FloatingIP]:
        return list(self._metered("floating_ip", "list", self._backend.list_floating_ip, opts))

    def create_floating_ip(self, opts: Any) -> FloatingIP:
        return self._metered("floating_ip", "create", self._backend.create_floating_ip, opts)

    def delete_floating_ip(self, resource_id: str) -> None:
        self._metered(
            "floating_ip", "delete", self._backend.delete_floating_ip, resource_id,
            tolerate_not_found=True,
        )

    def get_floating_ip(self, resource_id: str) -> FloatingIP:
        return self._metered(
            "floating_ip", "list", self._backend.get_floating_ip, resource_id,
            tolerate_not_found=True,
        )

    def update_floating_ip(self, resource_id: str, opts: Any) -> FloatingIP:
        return self._metered("floating_ip", "update", self._backend.update_floating_ip, resource_id, opts)

    # Ports

    def list_port(self, opts: Any) -> list[Port]:
        return list(self._metered("port", "list", self._backend.list_port, opts))

    def create_port(self, opts: Any) -> Port:
        return self._metered("port", "create", self._backend.create_port, opts)

    def delete_port(self, resource_id: str) -> None:
        self._metered("port", "delete", self._backend.delete_port, resource_id, tolerate_not_found=True)

    def get_port(self, resource_id: str) -> Port:
        return self._metered("port", "get", self._backend.get_port, resource_id, tolerate_not_found=True)

    def update_port(self, resource_id: str, opts: Any) -> Port:
        return self._metered("port", "update", self._backend.update_port, resource_id, opts)

    # Trunks

    def list_trunk(self, opts: Any) -> list[Trunk]:
        return list(self._metered("trunk", "list", self._backend.list_trunk, opts))

    def create_trunk(self, opts: Any) -> Trunk:
        return self._metered("trunk", "create", self._backend.create_trunk, opts)

    def delete_trunk(self, resource_id: str) -> None:
        self._metered("trunk", "delete", self._backend.delete_trunk, resource_id, tolerate_not_found=True)

    # Routers

    def list_router(self, opts: Any) -> list[OSRouter]:
        return list(self._metered("router", "list", self._backend.list_router, opts))

    def create_router(self, opts: Any) -> OSRouter:
        return self._metered("router", "create", self._backend.create_router, opts)

    def delete_router(self, resource_id: str) -> None:
        self._metered("router", "delete", self._backend.delete_router, resource_id, tolerate_not_found=True)

    def get_router(self, resource_id: str) -> OSRouter:
        return self._metered("router", "get", self._backend.get_router, resource_id, tolerate_not_found=True)

    def update_router(self, resource_id: str, opts: Any) -> OSRouter:
        return self._metered("router", "update", self._backend.update_router, resource_id, opts)

    def add_router_interface(self, resource_id: str, opts: Any) -> Any:
        return self._metered(
            "server_os_interface", "create", self._backend.add_router_interface, resource_id, opts
        )

    def remove_router_interface(self, resource_id: str, opts: Any) -> Any:
        return self._metered(
            "server_os_interface", "delete", self._backend.remove_router_interface, resource_id, opts,
            tolerate_not_found=True,
        )

    # Security groups

    def list_sec_group(self, opts: Any) -> list[OSSecGroup]:
        return list(self._metered("group", "list", self._backend.list_sec_group, opts))

    def create_sec_group(self, opts: Any) -> OSSecGroup:
        return self._metered("security_group", "create", self._backend.create_sec_group, opts)

    def delete_sec_group(self, resource_id: str) -> None:
        self._metered(
            "security_group", "delete", self._backend.delete_sec_group, resource_id,
            tolerate_not_found=True,
        )

    def get_sec_group(self, resource_id: str) -> OSSecGroup:
        return self._metered(
            "security_group", "get", self._backend.get_sec_group, resource_id,
            tolerate_not_found=True,
        )

    def update_sec_group(self, resource_id: str, opts: Any) -> OSSecGroup:
        return self._metered("security_group", "update", self._backend.update_sec_group, resource_id, opts)

    # Security group rules

    def list_sec_group_rule(self, opts: Any) -> list[OSSecGroupRule]:
        return list(self._metered("security_group_rule", "list", self._backend.list_sec_group_rule, opts))

    def create_sec_group_rule(self, opts: Any) -> OSSecGroupRule:
        return self._metered("security_group_rule", "create", self._backend.create_sec_group_rule, opts)

    def delete_sec_group_rule(self, resource_id: str) -> None:
        self._metered(
            "security_group_rule", "delete", self._backend.delete_sec_group_rule, resource_id,
            tolerate_not_found=True,
        )

    def get_sec_group_rule(self, resource_id: str) -> OSSecGroupRule:
        return self._metered(
            "security_group_rule", "get", self._backend.get_sec_group_rule, resource_id,
            tolerate_not_found=True,
        )

    # Networks

    def list_network(self, opts: Any) -> list[OSNetwork]:
        return list(self._metered("network", "list", self._backend.list_network, opts))

    def create_network(self, opts: Any) -> OSNetwork:
        return self._metered("network", "create", self._backend.create_network, opts)

    def delete_network(self, resource_id: str) -> None:
        self._metered("network", "delete", self._backend.delete_network, resource_id, tolerate_not_found=True)

    def get_network(self, resource_id: str) -> OSNetwork:
        return self._metered("network", "get", self._backend.get_network, resource_id, tolerate_not_found=True)

    def update_network(self, resource_id: str, opts: Any) -> OSNetwork:
        return self._metered("network", "update", self._backend.update_network, resource_id, opts)

    # Subnets

    def list_subnet(self, opts: Any) -> list[OSSubnet]:
        return list(self._metered("subnet", "list", self._backend.list_subnet, opts))

    def create_subnet(self, opts: Any) -> OSSubnet:
        return self._metered("subnet", "create", self._backend.create_subnet, opts)

    def delete_subnet(self, resource_id: str) -> None:
        self._metered("subnet", "delete", self._backend.delete_subnet, resource_id, tolerate_not_found=True)

    def get_subnet(self, resource_id: str) -> OSSubnet:
        return self._metered("subnet", "get", self._backend.get_subnet, resource_id, tolerate_not_found=True)

    def update_subnet(self, resource_id: str, opts: Any) -> OSSubnet:
        return self._metered("subnet", "update", self._backend.update_subnet, resource_id, opts)

    # Extensions and tags

    def list_extensions(self) -> list[Extension]:
        return list(self._metered("network_extension", "list", self._backend.list_extensions))

    def replace_all_attributes_tags(self, resource_type: str, resource_id: str, opts: Any) -> list[str]:
        return self._metered(
            "attributes_tags", "replace_all", self._backend.replace_all_attributes_tags,
            resource_type, resource_id, opts,
        )