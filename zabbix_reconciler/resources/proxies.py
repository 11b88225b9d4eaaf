"""
Proxy resource.

Declared attributes::

    name: proxy-eu1             # required
    status: ACTIVE              # ACTIVE | PASSIVE (required)
    description: ""
    hosts: ["10084"]            # ids of the hosts monitored by the proxy
    proxy_addresses: ["10.0.0.5"]   # active proxies only
    interface: [{ip, dns, port, use_ip}]  # passive proxies, at most one

``interface`` and ``proxy_addresses`` are mutually exclusive. The API
stores the addresses as one comma separated string.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from ..codecs.common import AttrReader, Violations
from ..codecs.interfaces import proxy_interface_to_declarative, proxy_interface_to_remote
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Proxy
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import PROXY_STATUSES
from .base import BaseResource

log = get_logger(__name__)


def join_addresses(addresses) -> str:
    return ",".join(addresses)


def split_addresses(value: str):
    return value.split(",") if value else []


class ProxyResource(BaseResource):
    kind = "proxy"
    api_object = "proxy"
    id_field = "proxyid"
    ids_key = "proxyids"
    get_params = {"selectHosts": ["hostid"], "selectInterface": "extend"}
    set_attributes = ("hosts",)

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Proxy:
        r = AttrReader(attrs, v)
        addresses = r.strings("proxy_addresses")
        interface = proxy_interface_to_remote(r.items("interface"), v=v, path="interface")
        if interface is not None and addresses:
            v.add("interface", "conflicts with proxy_addresses")
        return Proxy(
            host=r.text("name", required=True),
            status=r.enum("status", PROXY_STATUSES, required=True),
            description=r.text("description"),
            proxy_address=join_addresses(addresses),
            interface=interface,
            hosts=r.strings("hosts"),
        )

    def from_api(self, row: Mapping[str, Any]) -> Proxy:
        return Proxy.from_api(row)

    def to_declarative(self, model: Proxy, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.host)
        batch.set_field(out, "status", lambda: PROXY_STATUSES.decode(model.status))
        batch.set_field(out, "description", lambda: model.description)
        batch.set_field(out, "hosts", lambda: list(model.hosts))
        batch.set_field(out, "proxy_addresses", lambda: split_addresses(model.proxy_address))
        batch.set_field(out, "interface", lambda: proxy_interface_to_declarative(model.interface))
        return out

    def describe(self, model: Proxy) -> str:
        return model.host
