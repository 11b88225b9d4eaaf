"""
Item resource.

Declared attributes::

    name: CPU load              # required
    key: system.cpu.load        # required
    host_id: "10084"            # required, fixed after create
    type: Zabbix agent          # ITEM_TYPES token
    value_type: FLOAT           # ITEM_VALUE_TYPES token
    delay: 1m
    interface_id: "0"
    description / history / trends / trapper_host / units / snmp_oid
    value_map_id: "0"
    tags: [{tag, value}]
    preprocessing: [{type, params, error_handler, error_handler_params}]

Deleting an item first resolves its owning host.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..codecs.common import (
    AttrReader,
    Violations,
    preprocessing_to_declarative,
    preprocessing_to_remote,
    tags_to_declarative,
    tags_to_remote,
)
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Item
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import ITEM_TYPES, ITEM_VALUE_TYPES
from ..utils.resolvers import ParentageRecord
from .base import BaseResource

log = get_logger(__name__)


class ItemResource(BaseResource):
    kind = "item"
    api_object = "item"
    id_field = "itemid"
    ids_key = "itemids"
    get_params = {"selectTags": "extend", "selectPreprocessing": "extend"}
    set_attributes = ("tags",)
    resolve_parent_on_delete = True

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Item:
        r = AttrReader(attrs, v)
        return Item(
            name=r.text("name", required=True),
            key_=r.text("key", required=True),
            hostid=r.text("host_id", required=True),
            type=r.enum("type", ITEM_TYPES, "Zabbix agent"),
            value_type=r.enum("value_type", ITEM_VALUE_TYPES, "FLOAT"),
            delay=r.text("delay", "1m"),
            interfaceid=r.text("interface_id", "0"),
            description=r.text("description"),
            history=r.text("history", "90d"),
            trends=r.text("trends", "365d"),
            trapper_hosts=r.text("trapper_host"),
            units=r.text("units"),
            snmp_oid=r.text("snmp_oid"),
            valuemapid=r.text("value_map_id", "0"),
            tags=tags_to_remote(r.items("tags"), v=v, path="tags"),
            preprocessing=preprocessing_to_remote(r.items("preprocessing"), v=v, path="preprocessing"),
        )

    def from_api(self, row: Mapping[str, Any]) -> Item:
        return Item.from_api(row)

    def to_declarative(self, model: Item, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "key", lambda: model.key_)
        batch.set_field(out, "host_id", lambda: model.hostid)
        batch.set_field(out, "type", lambda: ITEM_TYPES.decode(model.type))
        batch.set_field(out, "value_type", lambda: ITEM_VALUE_TYPES.decode(model.value_type))
        batch.set_field(out, "delay", lambda: model.delay)
        batch.set_field(out, "interface_id", lambda: model.interfaceid)
        batch.set_field(out, "description", lambda: model.description)
        batch.set_field(out, "history", lambda: model.history)
        batch.set_field(out, "trends", lambda: model.trends)
        batch.set_field(out, "trapper_host", lambda: model.trapper_hosts)
        batch.set_field(out, "units", lambda: model.units)
        batch.set_field(out, "snmp_oid", lambda: model.snmp_oid)
        batch.set_field(out, "value_map_id", lambda: model.valuemapid)
        batch.set_field(out, "tags", lambda: tags_to_declarative(model.tags))
        batch.set_field(out, "preprocessing", lambda: preprocessing_to_declarative(model.preprocessing))
        return out

    def build_update(self, object_id: str, model: Item, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api(for_update=True)
        payload["itemid"] = object_id
        return payload

    def remote_delete(self, object_id: str, parent: Optional[ParentageRecord], ctx: CallContext) -> None:
        log.debug("Deleting item %s from host %s", object_id, parent.parent_id if parent else "?")
        self.client.delete(self.api_object, [object_id], ctx=ctx)
