"""
Trigger resource.

The API hands back expressions with opaque function ids (``{13519}>0``);
:meth:`TriggerResource.to_declarative` renders them back to the
``{host:key.function(params)}`` form the manifest uses, so a declared
expression round-trips.

Dependencies are only sent on update when they changed: the API rewrites
the dependency table on every update that carries them.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from ..codecs.common import AttrReader, Violations
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Trigger
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import TRIGGER_MANUAL_CLOSE, TRIGGER_PRIORITIES, TRIGGER_RECOVERY_MODES
from ..utils.expressions import FunctionRef, resolve_expression
from .base import BaseResource

log = get_logger(__name__)


class TriggerRow(NamedTuple):
    trigger: Trigger
    functions: List[FunctionRef]


class TriggerResource(BaseResource):
    kind = "trigger"
    api_object = "trigger"
    id_field = "triggerid"
    ids_key = "triggerids"
    get_params = {
        "selectDependencies": "extend",
        "selectFunctions": "extend",
    }
    set_attributes = ("dependencies",)
    resolve_parent_on_delete = True

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Trigger:
        r = AttrReader(attrs, v)
        status = r.number("status", 0)
        if status not in (0, 1):
            v.add("status", f"must be 0 (enabled) or 1 (disabled), got {status}")
        return Trigger(
            description=r.text("description", required=True),
            expression=r.text("expression", required=True),
            priority=r.enum("priority", TRIGGER_PRIORITIES, "NOT_CLASSIFIED"),
            status=status,
            comments=r.text("comments"),
            recovery_mode=r.enum("recovery_mode", TRIGGER_RECOVERY_MODES, "default"),
            recovery_expression=r.text("recovery_expression"),
            manual_close=r.enum("manual_close", TRIGGER_MANUAL_CLOSE, "NO"),
            event_name=r.text("event_name"),
            uuid=r.text("uuid"),
            dependencies=r.strings("dependencies"),
        )

    def from_api(self, row: Mapping[str, Any]) -> TriggerRow:
        functions = [FunctionRef.from_api(f) for f in row.get("functions") or []]
        return TriggerRow(Trigger.from_api(row), functions)

    def to_declarative(self, model: TriggerRow, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        t = model.trigger
        out: Dict[str, Any] = {}
        batch.set_field(out, "description", lambda: t.description)
        batch.set_field(
            out, "expression",
            lambda: resolve_expression(self.client, t.expression, model.functions, ctx=ctx),
        )
        batch.set_field(out, "priority", lambda: TRIGGER_PRIORITIES.decode(t.priority))
        batch.set_field(out, "status", lambda: t.status)
        batch.set_field(out, "comments", lambda: t.comments)
        batch.set_field(out, "recovery_mode", lambda: TRIGGER_RECOVERY_MODES.decode(t.recovery_mode))
        batch.set_field(out, "recovery_expression", lambda: t.recovery_expression)
        batch.set_field(out, "manual_close", lambda: TRIGGER_MANUAL_CLOSE.decode(t.manual_close))
        batch.set_field(out, "event_name", lambda: t.event_name)
        batch.set_field(out, "uuid", lambda: t.uuid)
        batch.set_field(out, "dependencies", lambda: list(t.dependencies or []))
        return out

    def build_update(self, object_id: str, model: Trigger, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        deps = model.dependencies
        if previous is not None and set(previous.get("dependencies") or []) == set(deps or []):
            deps = None
        payload = replace(model, dependencies=deps, triggerid=object_id).to_api()
        log.debug("Trigger %s dependencies %s", object_id, "unchanged" if deps is None else deps)
        return payload

    def describe(self, model: Trigger) -> str:
        return model.description
