"""
Host and standalone host-interface resources.

Declared host attributes::

    host: web01                 # technical name (required)
    name: Web 01                # visible name, defaults to ``host``
    monitored: true             # status 0 / 1
    description: ""
    inventory_mode: 0           # -1 disabled, 0 manual, 1 automatic
    ipmi_auth_type: -1
    ipmi_privilege: 2
    ipmi_username: ""
    ipmi_password: ""
    proxy_host_id: "0"
    interfaces: [...]           # see codecs.interfaces
    groups: ["2"]               # host group ids (at least one)
    templates: ["10001"]        # linked template ids
    macro: [{name: "{$X}", value: "1"}]
    tags: {env: prod}
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..codecs.common import AttrReader, Violations, macros_to_declarative, macros_to_remote
from ..codecs.common import tag_map_to_declarative, tag_map_to_remote
from ..codecs.interfaces import interfaces_to_declarative, interfaces_to_remote, parse_interface, snmp_to_declarative
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Host, HostInterface
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import INTERFACE_TYPES
from .base import BaseResource

log = get_logger(__name__)


class HostResource(BaseResource):
    kind = "host"
    api_object = "host"
    id_field = "hostid"
    ids_key = "hostids"
    get_params = {
        "selectInterfaces": "extend",
        "selectGroups": ["groupid"],
        "selectParentTemplates": ["templateid"],
        "selectMacros": "extend",
        "selectTags": "extend",
    }
    set_attributes = ("interfaces", "groups", "templates", "macro")

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Host:
        r = AttrReader(attrs, v)
        host = r.text("host", required=True)
        groups = r.strings("groups", required=True)
        if "groups" in r.attrs and not groups:
            v.add("groups", "at least one host group is required")
        return Host(
            host=host,
            name=r.text("name", host),
            status=0 if r.flag("monitored", True) else 1,
            description=r.text("description"),
            inventory_mode=r.number("inventory_mode", 0),
            ipmi_authtype=r.number("ipmi_auth_type", -1),
            ipmi_privilege=r.number("ipmi_privilege", 2),
            ipmi_username=r.text("ipmi_username"),
            ipmi_password=r.text("ipmi_password"),
            proxy_hostid=r.text("proxy_host_id", "0"),
            interfaces=interfaces_to_remote(r.items("interfaces"), v=v, path="interfaces"),
            groups=groups,
            templates=r.strings("templates"),
            macros=macros_to_remote(r.items("macro"), v=v, path="macro"),
            tags=tag_map_to_remote(r.mapping("tags"), v=v, path="tags"),
        )

    def from_api(self, row: Mapping[str, Any]) -> Host:
        return Host.from_api(row)

    def to_declarative(self, model: Host, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "host", lambda: model.host)
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "monitored", lambda: model.status == 0)
        batch.set_field(out, "description", lambda: model.description)
        batch.set_field(out, "inventory_mode", lambda: model.inventory_mode)
        batch.set_field(out, "ipmi_auth_type", lambda: model.ipmi_authtype)
        batch.set_field(out, "ipmi_privilege", lambda: model.ipmi_privilege)
        batch.set_field(out, "ipmi_username", lambda: model.ipmi_username)
        batch.set_field(out, "ipmi_password", lambda: model.ipmi_password)
        batch.set_field(out, "proxy_host_id", lambda: model.proxy_hostid)
        batch.set_field(out, "interfaces", lambda: interfaces_to_declarative(model.interfaces))
        batch.set_field(out, "groups", lambda: list(model.groups))
        batch.set_field(out, "templates", lambda: list(model.templates))
        batch.set_field(out, "macro", lambda: macros_to_declarative(model.macros))
        batch.set_field(out, "tags", lambda: tag_map_to_declarative(model.tags))
        return out

    def build_update(self, object_id: str, model: Host, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api()
        payload["hostid"] = object_id
        # host.update only replaces the links it is given; unlink the rest
        if previous:
            dropped = sorted(set(previous.get("templates") or []) - set(model.templates))
            if dropped:
                payload["templates_clear"] = [{"templateid": t} for t in dropped]
        return payload

    def describe(self, model: Host) -> str:
        return model.host


class HostInterfaceResource(BaseResource):
    """An interface managed on its own, attached to ``host_id``."""

    kind = "host_interface"
    api_object = "hostinterface"
    id_field = "interfaceid"
    ids_key = "interfaceids"

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> HostInterface:
        r = AttrReader(attrs, v)
        hostid = r.text("host_id", required=True)
        fields = {k: val for k, val in r.attrs.items() if k != "host_id"}
        return parse_interface(fields, v, "", hostid=hostid)

    def from_api(self, row: Mapping[str, Any]) -> HostInterface:
        return HostInterface.from_api(row)

    def to_declarative(self, model: HostInterface, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "host_id", lambda: model.hostid)
        batch.set_field(out, "type", lambda: INTERFACE_TYPES.decode(model.type))
        batch.set_field(out, "ip", lambda: model.ip)
        batch.set_field(out, "dns", lambda: model.dns)
        batch.set_field(out, "port", lambda: model.port)
        batch.set_field(out, "main", lambda: model.main != 0)
        batch.set_field(
            out, "snmp_config",
            lambda: [snmp_to_declarative(model.details)] if model.details is not None else [],
        )
        return out

    def build_update(self, object_id: str, model: HostInterface, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api()
        payload["interfaceid"] = object_id
        # the owning host cannot change
        payload.pop("hostid", None)
        return payload

    def describe(self, model: HostInterface) -> str:
        return f"host={model.hostid} {model.ip or model.dns}"
