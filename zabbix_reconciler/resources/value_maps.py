"""Value map resource; ``host_id`` and ``uuid`` are fixed once created."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..codecs.common import AttrReader, Violations, value_mappings_to_declarative, value_mappings_to_remote
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import ValueMap
from ..utils.diagnostics import DiagnosticBatch
from .base import BaseResource

log = get_logger(__name__)


class ValueMapResource(BaseResource):
    kind = "value_map"
    api_object = "valuemap"
    id_field = "valuemapid"
    ids_key = "valuemapids"
    get_params = {"selectMappings": "extend"}

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> ValueMap:
        r = AttrReader(attrs, v)
        mappings = value_mappings_to_remote(r.items("mapping", required=True), v=v, path="mapping")
        if "mapping" in r.attrs and not mappings:
            v.add("mapping", "at least one mapping is required")
        return ValueMap(
            name=r.text("name", required=True),
            hostid=r.text("host_id", required=True),
            mappings=mappings,
            uuid=r.text("uuid"),
        )

    def from_api(self, row: Mapping[str, Any]) -> ValueMap:
        return ValueMap.from_api(row)

    def to_declarative(self, model: ValueMap, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "host_id", lambda: model.hostid)
        batch.set_field(out, "uuid", lambda: model.uuid)
        batch.set_field(out, "mapping", lambda: value_mappings_to_declarative(model.mappings))
        return out

    def build_update(self, object_id: str, model: ValueMap, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api(for_update=True)
        payload["valuemapid"] = object_id
        return payload
