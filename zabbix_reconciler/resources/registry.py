"""Resource handler registry (declarative kind -> handler class)."""

from __future__ import annotations
from dataclasses import dataclass
from importlib import import_module
from typing import Dict, Iterable, Optional

from ..core.config import ReconcileOptions
from ..core.zabbix_client import ApiMethods

_PKG = "zabbix_reconciler.resources"


@dataclass(frozen=True)
class ResourceSpec:
    kind: str               # kind used in manifests and the state file
    help: str               # one-line description for the CLI
    module: str             # module path
    class_name: str         # class symbol in module

    def load_class(self):
        mod = import_module(self.module)
        return getattr(mod, self.class_name)


def _spec(kind: str, help: str, module: str, class_name: str) -> ResourceSpec:
    return ResourceSpec(kind=kind, help=help, module=f"{_PKG}.{module}", class_name=class_name)


_RESOURCES: Dict[str, ResourceSpec] = {
    # Hosts
    "host": _spec("host", "Monitored host", "hosts", "HostResource"),
    "host_interface": _spec("host_interface", "Standalone host interface", "hosts", "HostInterfaceResource"),
    # Data collection
    "item": _spec("item", "Item on a host", "items", "ItemResource"),
    "trigger": _spec("trigger", "Trigger", "triggers", "TriggerResource"),
    "value_map": _spec("value_map", "Value map", "value_maps", "ValueMapResource"),
    # Visualisation
    "graph": _spec("graph", "Graph", "graphs", "GraphResource"),
    "dashboard": _spec("dashboard", "Dashboard (one page)", "graphs", "DashboardResource"),
    # Infrastructure
    "proxy": _spec("proxy", "Proxy", "proxies", "ProxyResource"),
    # Users & alerting
    "user": _spec("user", "User", "users", "UserResource"),
    "user_group": _spec("user_group", "User group", "users", "UserGroupResource"),
    "role": _spec("role", "User role", "users", "RoleResource"),
    "media_type": _spec("media_type", "Media type (email, script, webhook)", "media_types", "MediaTypeResource"),
    # Singletons
    "authentication_settings": _spec(
        "authentication_settings", "Authentication settings (singleton)", "settings",
        "AuthenticationSettingsResource",
    ),
    "housekeeping_settings": _spec(
        "housekeeping_settings", "Housekeeping settings (singleton)", "settings",
        "HousekeepingSettingsResource",
    ),
}


def get_spec_by_kind(kind: str) -> ResourceSpec:
    return _RESOURCES[kind]


def iter_specs() -> Iterable[ResourceSpec]:
    return _RESOURCES.values()


def known_kinds() -> Iterable[str]:
    return _RESOURCES.keys()


def build_resource(kind: str, client: ApiMethods, options: Optional[ReconcileOptions] = None):
    """Instantiate the handler registered for ``kind``.

    Raises:
        KeyError: If ``kind`` is not registered.
    """
    return get_spec_by_kind(kind).load_class()(client, options)
