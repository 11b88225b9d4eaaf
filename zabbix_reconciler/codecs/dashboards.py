"""
Dashboard codec.

Declared dashboards carry a flat ``widgets`` list. On write the list is
wrapped into exactly one page; on read only the first page is exposed.
Extra remote pages cannot be represented declaratively: the decoder
reports how many pages it skipped so the caller can surface a warning.

Widget ``graph_ids``/``item_ids`` become widget fields of type ``0`` named
``graphid``/``itemid``; other field kinds are not modelled. Both lists are
always decoded, empty or not.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..core.models import Dashboard, DashboardPage, Widget, WidgetField
from .common import AttrReader, Violations, _run, join_path

DEFAULT_PAGE_NAME = "Page 1"
_FIELD_INT = "0"
_ID_FIELDS = (("graph_ids", "graphid"), ("item_ids", "itemid"))


def _parse_widget(attrs: Any, v: Violations, path: str) -> Widget:
    r = AttrReader(attrs, v, path)
    fields: List[WidgetField] = []
    for attr, field_name in _ID_FIELDS:
        for value in r.strings(attr):
            fields.append(WidgetField(type=_FIELD_INT, name=field_name, value=value))
    width, height = r.number("width", required=True), r.number("height", required=True)
    if "width" in r.attrs and width <= 0:
        v.add(r.at("width"), "must be positive")
    if "height" in r.attrs and height <= 0:
        v.add(r.at("height"), "must be positive")
    return Widget(
        type=r.text("type", required=True),
        name=r.text("name"),
        x=r.number("x", required=True),
        y=r.number("y", required=True),
        width=width,
        height=height,
        fields=fields,
    )


def _parse_dashboard(attrs: Any, v: Violations, path: str) -> Dashboard:
    r = AttrReader(attrs, v, path)
    widgets = [_parse_widget(w, v, join_path(r.at("widgets"), i)) for i, w in enumerate(r.items("widgets"))]
    return Dashboard(
        name=r.text("name", required=True),
        pages=[DashboardPage(name=DEFAULT_PAGE_NAME, widgets=widgets)],
        display_period=r.number("display_period", 30),
        auto_start=r.number("auto_start", 1),
        private=r.number("private", 1),
    )


def dashboard_to_remote(attrs: Mapping[str, Any], *, v: Optional[Violations] = None, path: str = "") -> Dashboard:
    """Parse a declared dashboard into a one-page :class:`Dashboard`."""
    return _run(_parse_dashboard, attrs, v, path, False)


def widget_to_declarative(widget: Widget) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "type": widget.type,
        "name": widget.name,
        "x": widget.x,
        "y": widget.y,
        "width": widget.width,
        "height": widget.height,
    }
    for attr, field_name in _ID_FIELDS:
        out[attr] = [f.value for f in widget.fields if f.name == field_name]
    return out


@dataclass(frozen=True)
class DecodedDashboard:
    attributes: Dict[str, Any]
    skipped_pages: int = 0


def dashboard_to_declarative(dashboard: Dashboard) -> DecodedDashboard:
    widgets: List[Dict[str, Any]] = []
    if dashboard.pages:
        widgets = [widget_to_declarative(w) for w in dashboard.pages[0].widgets]
    attrs = {
        "name": dashboard.name,
        "display_period": dashboard.display_period,
        "auto_start": dashboard.auto_start,
        "private": dashboard.private,
        "widgets": widgets,
    }
    return DecodedDashboard(attributes=attrs, skipped_pages=max(0, len(dashboard.pages) - 1))
