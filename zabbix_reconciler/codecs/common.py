"""
Shared parsing machinery and small compound codecs.

Declarative attributes arrive as loosely-typed dicts/lists. They are parsed
into the typed models of :mod:`zabbix_reconciler.core.models` in one pass:
:class:`AttrReader` pulls typed values out of a mapping and reports every
problem to a :class:`Violations` collector instead of raising on the first
one. ``Violations.raise_if_any()`` then raises one ``InvalidConfiguration``
listing everything.

Each compound shape has a ``*_to_remote`` / ``*_to_declarative`` pair. The
``*_to_remote`` functions accept an optional collector so larger objects
(hosts, items...) can parse their sub-shapes into the same report.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.errors import InvalidConfiguration, UnknownToken
from ..core.models import (
    GraphItem,
    Macro,
    Preprocessor,
    Tag,
    UserMedia,
    ValueMapping,
    WebhookParameter,
)
from ..utils.enums import PREPROCESSING_TYPES, VALUE_MAP_MATCH_TYPES, EnumMapping

_MISSING = object()


class Violations:
    """Collects invariant violations across one parse pass."""

    def __init__(self, *, legacy_enum_defaults: bool = False) -> None:
        self.items: List[str] = []
        self.legacy_enum_defaults = legacy_enum_defaults

    def __bool__(self) -> bool:
        return bool(self.items)

    def add(self, path: str, message: str) -> None:
        self.items.append(f"{path}: {message}" if path else message)

    def raise_if_any(self) -> None:
        if self.items:
            raise InvalidConfiguration(self.items)


def join_path(base: str, key: Any) -> str:
    if isinstance(key, int):
        return f"{base}[{key}]"
    return f"{base}.{key}" if base else str(key)


class AttrReader:
    """Typed accessors over one declarative mapping.

    Missing optional keys yield the given default. Wrong types are reported
    to the collector and the default is returned so parsing can go on.
    """

    def __init__(self, attrs: Any, v: Violations, path: str = "") -> None:
        self.v = v
        self.path = path
        if attrs is None:
            attrs = {}
        if not isinstance(attrs, Mapping):
            v.add(path, f"expected a mapping, got {type(attrs).__name__}")
            attrs = {}
        self.attrs: Mapping[str, Any] = attrs

    def at(self, key: Any) -> str:
        return join_path(self.path, key)

    def _raw(self, key: str, required: bool) -> Any:
        value = self.attrs.get(key, _MISSING)
        if value is _MISSING or value is None:
            if required:
                self.v.add(self.at(key), "is required")
            return _MISSING
        return value

    def text(self, key: str, default: str = "", *, required: bool = False) -> str:
        value = self._raw(key, required)
        if value is _MISSING:
            return default
        if isinstance(value, bool) or isinstance(value, (dict, list)):
            self.v.add(self.at(key), f"expected a string, got {type(value).__name__}")
            return default
        text = str(value)
        if required and text == "":
            self.v.add(self.at(key), "must not be empty")
        return text

    def number(self, key: str, default: int = 0, *, required: bool = False) -> int:
        value = self._raw(key, required)
        if value is _MISSING:
            return default
        if isinstance(value, bool):
            self.v.add(self.at(key), "expected an integer, got bool")
            return default
        try:
            return int(str(value).strip())
        except ValueError:
            self.v.add(self.at(key), f"expected an integer, got {value!r}")
            return default

    def flag(self, key: str, default: bool = False) -> bool:
        value = self._raw(key, False)
        if value is _MISSING:
            return default
        if not isinstance(value, bool):
            self.v.add(self.at(key), f"expected a boolean, got {value!r}")
            return default
        return value

    def items(self, key: str, *, required: bool = False) -> List[Any]:
        value = self._raw(key, required)
        if value is _MISSING:
            return []
        if isinstance(value, (set, frozenset, tuple)):
            return list(value)
        if not isinstance(value, list):
            self.v.add(self.at(key), f"expected a list, got {type(value).__name__}")
            return []
        return value

    def strings(self, key: str, *, required: bool = False) -> List[str]:
        out: List[str] = []
        for i, raw in enumerate(self.items(key, required=required)):
            if isinstance(raw, (dict, list, bool)) or raw is None:
                self.v.add(join_path(self.at(key), i), f"expected a string, got {raw!r}")
                continue
            out.append(str(raw))
        return out

    def block(self, key: str) -> Optional[Mapping[str, Any]]:
        """A nested block declared as a list holding at most one mapping."""
        blocks = self.items(key)
        if not blocks:
            return None
        if len(blocks) > 1:
            self.v.add(self.at(key), f"at most one block allowed, got {len(blocks)}")
        return blocks[0]

    def enum(self, key: str, mapping: EnumMapping, default: Optional[str] = None, *, required: bool = False) -> Any:
        value = self._raw(key, required and default is None)
        if value is _MISSING:
            if default is None:
                return mapping.zero
            value = default
        try:
            return mapping.encode(value, allow_legacy_default=self.v.legacy_enum_defaults, path=self.at(key))
        except UnknownToken as exc:
            self.v.items.extend(exc.violations)
            return mapping.zero

    def mapping(self, key: str) -> Dict[str, Any]:
        value = self._raw(key, False)
        if value is _MISSING:
            return {}
        if not isinstance(value, Mapping):
            self.v.add(self.at(key), f"expected a mapping, got {type(value).__name__}")
            return {}
        return dict(value)


def _run(parse, attrs: Any, v: Optional[Violations], path: str, legacy: bool):
    own = v is None
    v = v or Violations(legacy_enum_defaults=legacy)
    out = parse(attrs, v, path)
    if own:
        v.raise_if_any()
    return out


# --------------------------------------------------------------------------- #
# Tags & macros
# --------------------------------------------------------------------------- #
def _parse_tags(rows: Any, v: Violations, path: str) -> List[Tag]:
    out: List[Tag] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        out.append(Tag(tag=r.text("tag", required=True), value=r.text("value")))
    return out


def tags_to_remote(rows: Sequence[Mapping[str, Any]], *, v: Optional[Violations] = None, path: str = "tags") -> List[Tag]:
    return _run(_parse_tags, rows, v, path, False)


def tags_to_declarative(tags: Sequence[Tag]) -> List[Dict[str, Any]]:
    return [{"tag": t.tag, "value": t.value} for t in tags]


def tag_map_to_remote(tags: Mapping[str, Any], *, v: Optional[Violations] = None, path: str = "tags") -> List[Tag]:
    """Host-style tags declared as ``{tag: value}``."""
    def parse(attrs: Any, v: Violations, path: str) -> List[Tag]:
        if not isinstance(attrs, Mapping):
            v.add(path, "expected a mapping of tag -> value")
            return []
        out = []
        for k, val in attrs.items():
            if isinstance(val, (dict, list)):
                v.add(join_path(path, k), "tag value must be a string")
                continue
            out.append(Tag(tag=str(k), value="" if val is None else str(val)))
        return out
    return _run(parse, tags or {}, v, path, False)


def tag_map_to_declarative(tags: Sequence[Tag]) -> Dict[str, str]:
    return {t.tag: t.value for t in tags}


def _parse_macros(rows: Any, v: Violations, path: str) -> List[Macro]:
    out: List[Macro] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        name = r.text("name", required=True)
        if name and not (name.startswith("{$") and name.endswith("}")):
            v.add(r.at("name"), f"macro name must look like {{$NAME}}, got {name!r}")
        out.append(Macro(macro=name, value=r.text("value")))
    return out


def macros_to_remote(rows: Sequence[Mapping[str, Any]], *, v: Optional[Violations] = None, path: str = "macros") -> List[Macro]:
    return _run(_parse_macros, rows, v, path, False)


def macros_to_declarative(macros: Sequence[Macro]) -> List[Dict[str, Any]]:
    return [{"name": m.macro, "value": m.value} for m in macros]


# --------------------------------------------------------------------------- #
# Webhook parameters, user media, value-map mappings
# --------------------------------------------------------------------------- #
def _parse_webhook_params(rows: Any, v: Violations, path: str) -> List[WebhookParameter]:
    out: List[WebhookParameter] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        out.append(WebhookParameter(name=r.text("name", required=True), value=r.text("value")))
    return out


def webhook_params_to_remote(rows, *, v: Optional[Violations] = None, path: str = "parameters") -> List[WebhookParameter]:
    return _run(_parse_webhook_params, rows, v, path, False)


def webhook_params_to_declarative(params: Sequence[WebhookParameter]) -> List[Dict[str, Any]]:
    return [{"name": p.name, "value": p.value} for p in params]


def _parse_user_medias(rows: Any, v: Violations, path: str) -> List[UserMedia]:
    out: List[UserMedia] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        send_to = r.strings("send_to", required=True)
        if not send_to and "send_to" in r.attrs:
            v.add(r.at("send_to"), "needs at least one recipient")
        severity = r.number("severity", 63)
        if not 0 <= severity <= 63:
            v.add(r.at("severity"), f"must be a 6-bit mask (0-63), got {severity}")
        out.append(UserMedia(
            mediatypeid=r.text("media_type_id", required=True),
            sendto=send_to,
            active=0 if r.flag("enabled", True) else 1,
            severity=severity,
            period=r.text("period", "1-7,00:00-24:00"),
        ))
    return out


def user_medias_to_remote(rows, *, v: Optional[Violations] = None, path: str = "medias") -> List[UserMedia]:
    return _run(_parse_user_medias, rows, v, path, False)


def user_medias_to_declarative(medias: Sequence[UserMedia]) -> List[Dict[str, Any]]:
    return [
        {
            "media_type_id": m.mediatypeid,
            "send_to": list(m.sendto),
            "enabled": m.active == 0,
            "severity": m.severity,
            "period": m.period,
        }
        for m in medias
    ]


def _parse_value_mappings(rows: Any, v: Violations, path: str) -> List[ValueMapping]:
    out: List[ValueMapping] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        match = r.enum("type", VALUE_MAP_MATCH_TYPES, "exact_match")
        value = r.text("value")
        if match != VALUE_MAP_MATCH_TYPES.encode("default_match") and value == "":
            v.add(r.at("value"), "is required unless type is default_match")
        out.append(ValueMapping(value=value, newvalue=r.text("new_value", required=True), type=match))
    return out


def value_mappings_to_remote(rows, *, v: Optional[Violations] = None, path: str = "mapping") -> List[ValueMapping]:
    return _run(_parse_value_mappings, rows, v, path, False)


def value_mappings_to_declarative(mappings: Sequence[ValueMapping]) -> List[Dict[str, Any]]:
    return [
        {"value": m.value, "new_value": m.newvalue, "type": VALUE_MAP_MATCH_TYPES.decode(m.type)}
        for m in mappings
    ]


# --------------------------------------------------------------------------- #
# Graph items & item preprocessing
# --------------------------------------------------------------------------- #
def _parse_graph_items(rows: Any, v: Violations, path: str) -> List[GraphItem]:
    out: List[GraphItem] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        color = r.text("color", required=True)
        if color and (len(color) != 6 or any(c not in "0123456789abcdefABCDEF" for c in color)):
            v.add(r.at("color"), f"must be a 6-digit hex colour, got {color!r}")
        out.append(GraphItem(
            itemid=r.text("item_id", required=True),
            color=color,
            calc_fnc=r.number("calc_fnc", 2),
            type=r.number("type", 0),
            yaxisside=r.number("y_axis_side", 0),
            sortorder=r.number("sort_order", i),
        ))
    return out


def graph_items_to_remote(rows, *, v: Optional[Violations] = None, path: str = "items") -> List[GraphItem]:
    return _run(_parse_graph_items, rows, v, path, False)


def graph_items_to_declarative(items: Sequence[GraphItem]) -> List[Dict[str, Any]]:
    return [
        {
            "item_id": g.itemid,
            "color": g.color,
            "calc_fnc": g.calc_fnc,
            "type": g.type,
            "y_axis_side": g.yaxisside,
            "sort_order": g.sortorder,
        }
        for g in items
    ]


def _parse_preprocessing(rows: Any, v: Violations, path: str) -> List[Preprocessor]:
    out: List[Preprocessor] = []
    for i, row in enumerate(rows or []):
        r = AttrReader(row, v, join_path(path, i))
        out.append(Preprocessor(
            type=r.enum("type", PREPROCESSING_TYPES, required=True),
            params=r.text("params"),
            error_handler=r.number("error_handler", 0),
            error_handler_params=r.text("error_handler_params"),
        ))
    return out


def preprocessing_to_remote(rows, *, v: Optional[Violations] = None, path: str = "preprocessing",
                            legacy_enum_defaults: bool = False) -> List[Preprocessor]:
    return _run(_parse_preprocessing, rows, v, path, legacy_enum_defaults)


def preprocessing_to_declarative(steps: Sequence[Preprocessor]) -> List[Dict[str, Any]]:
    return [
        {
            "type": PREPROCESSING_TYPES.decode(p.type),
            "params": p.params,
            "error_handler": p.error_handler,
            "error_handler_params": p.error_handler_params,
        }
        for p in steps
    ]
