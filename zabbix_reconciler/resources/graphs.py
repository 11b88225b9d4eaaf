"""Graph and dashboard resources."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..codecs.common import AttrReader, Violations, graph_items_to_declarative, graph_items_to_remote
from ..codecs.dashboards import dashboard_to_declarative, dashboard_to_remote
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Dashboard, Graph
from ..utils.diagnostics import DiagnosticBatch
from .base import BaseResource

log = get_logger(__name__)


class GraphResource(BaseResource):
    kind = "graph"
    api_object = "graph"
    id_field = "graphid"
    ids_key = "graphids"
    get_params = {"selectGraphItems": "extend"}
    resolve_parent_on_delete = True

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Graph:
        r = AttrReader(attrs, v)
        gitems = graph_items_to_remote(r.items("graph_items"), v=v, path="graph_items")
        if not gitems:
            v.add("graph_items", "at least one graph item is required")
        return Graph(
            name=r.text("name", required=True),
            gitems=gitems,
            width=r.number("width", 900),
            height=r.number("height", 200),
            graphtype=r.number("graph_type", 0),
            show_legend=1 if r.flag("show_legend", True) else 0,
            show_work_period=1 if r.flag("show_work_period", True) else 0,
            show_triggers=1 if r.flag("show_triggers", True) else 0,
            yaxismin=r.text("yaxis_min", "0"),
            yaxismax=r.text("yaxis_max", "100"),
            percent_left=r.text("percent_left", "0"),
            percent_right=r.text("percent_right", "0"),
            ymin_type=r.number("ymin_type", 0),
            ymax_type=r.number("ymax_type", 0),
        )

    def from_api(self, row: Mapping[str, Any]) -> Graph:
        return Graph.from_api(row)

    def to_declarative(self, model: Graph, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "width", lambda: model.width)
        batch.set_field(out, "height", lambda: model.height)
        batch.set_field(out, "graph_type", lambda: model.graphtype)
        batch.set_field(out, "show_legend", lambda: model.show_legend != 0)
        batch.set_field(out, "show_work_period", lambda: model.show_work_period != 0)
        batch.set_field(out, "show_triggers", lambda: model.show_triggers != 0)
        batch.set_field(out, "yaxis_min", lambda: model.yaxismin)
        batch.set_field(out, "yaxis_max", lambda: model.yaxismax)
        batch.set_field(out, "percent_left", lambda: model.percent_left)
        batch.set_field(out, "percent_right", lambda: model.percent_right)
        batch.set_field(out, "ymin_type", lambda: model.ymin_type)
        batch.set_field(out, "ymax_type", lambda: model.ymax_type)
        batch.set_field(out, "graph_items", lambda: graph_items_to_declarative(model.gitems))
        return out


class DashboardResource(BaseResource):
    """Dashboards are written as one page; extra remote pages are reported."""

    kind = "dashboard"
    api_object = "dashboard"
    id_field = "dashboardid"
    ids_key = "dashboardids"
    get_params = {"selectPages": "extend"}

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Dashboard:
        return dashboard_to_remote(attrs, v=v)

    def from_api(self, row: Mapping[str, Any]) -> Dashboard:
        return Dashboard.from_api(row)

    def to_declarative(self, model: Dashboard, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        decoded: Dict[str, Any] = {}
        if not batch.set_field(decoded, "dashboard", lambda: dashboard_to_declarative(model)):
            return out
        result = decoded["dashboard"]
        out.update(result.attributes)
        if result.skipped_pages:
            batch.add_warning(
                f"dashboard {model.name!r} has {len(model.pages)} pages; "
                f"only the first is managed, {result.skipped_pages} page(s) ignored",
                attribute="widgets",
            )
        return out

    def build_update(self, object_id: str, model: Dashboard, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api()
        payload["dashboardid"] = object_id
        return payload
