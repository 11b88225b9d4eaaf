"""
Typed request/response objects for the Zabbix API.

Each dataclass mirrors one API object (or sub-object) using native Python
types. ``to_api()`` renders the JSON-RPC payload (numbers as strings, the
way the API sends them back) and ``from_api()`` parses an API row, turning
string numbers into ints. Nothing here knows about declarative attribute
names: that translation lives in :mod:`zabbix_reconciler.codecs`.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


# --------------------------------------------------------------------------- #
# Scalar helpers
# --------------------------------------------------------------------------- #
def to_int(value: Any, default: int = 0) -> int:
    """Parse an API number (often a string); empty values give ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    return int(str(value).strip())


def to_str(value: Any) -> str:
    return "" if value is None else str(value)


def num(value: int) -> str:
    """Render an int the way the API transmits it."""
    return str(int(value))


def _ids(rows: Any, key: str) -> List[str]:
    return [str(r[key]) for r in (rows or []) if isinstance(r, Mapping) and key in r]


def _coerce(type_name: str, value: Any) -> Any:
    if type_name == "int":
        return to_int(value)
    return to_str(value)


class _FlatSettings:
    """Shared parsing for flat objects whose fields are all ``int``/``str``."""

    @classmethod
    def from_api(cls, row: Mapping[str, Any]):
        kwargs = {}
        for f in dataclasses.fields(cls):  # type: ignore[arg-type]
            if f.name in row:
                kwargs[f.name] = _coerce(str(f.type), row[f.name])
        return cls(**kwargs)

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if f.metadata.get("read_only"):
                continue
            out[f.name] = num(value) if str(f.type) == "int" else value
        return out


def _ro(default: Any) -> Any:
    return field(default=default, metadata={"read_only": True})


# --------------------------------------------------------------------------- #
# Hosts & interfaces
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class SNMPDetails:
    version: str = "2"
    bulk: int = 1
    community: str = ""
    securityname: str = ""
    securitylevel: int = 0
    authpassphrase: str = ""
    authprotocol: int = 0
    privpassphrase: str = ""
    privprotocol: int = 0
    contextname: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"version": self.version, "bulk": num(self.bulk)}
        if self.version == "3":
            out.update({
                "securityname": self.securityname,
                "securitylevel": num(self.securitylevel),
                "authpassphrase": self.authpassphrase,
                "authprotocol": num(self.authprotocol),
                "privpassphrase": self.privpassphrase,
                "privprotocol": num(self.privprotocol),
                "contextname": self.contextname,
            })
        else:
            out["community"] = self.community
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "SNMPDetails":
        return cls(
            version=to_str(row.get("version") or "2"),
            bulk=to_int(row.get("bulk"), 1),
            community=to_str(row.get("community")),
            securityname=to_str(row.get("securityname")),
            securitylevel=to_int(row.get("securitylevel")),
            authpassphrase=to_str(row.get("authpassphrase")),
            authprotocol=to_int(row.get("authprotocol")),
            privpassphrase=to_str(row.get("privpassphrase")),
            privprotocol=to_int(row.get("privprotocol")),
            contextname=to_str(row.get("contextname")),
        )


def has_snmp_details(details: Any) -> bool:
    """``details`` carries SNMP data iff it is a mapping (even an empty one).

    The API reports "no details" as ``[]`` (or omits the key).
    """
    return isinstance(details, Mapping)


@dataclass(frozen=True)
class HostInterface:
    type: int
    ip: str = ""
    dns: str = ""
    port: str = "10050"
    main: int = 1
    useip: int = 1
    interfaceid: str = ""
    hostid: str = ""
    details: Optional[SNMPDetails] = None

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": num(self.type),
            "ip": self.ip,
            "dns": self.dns,
            "port": self.port,
            "main": num(self.main),
            "useip": num(self.useip),
        }
        if self.interfaceid:
            out["interfaceid"] = self.interfaceid
        if self.hostid:
            out["hostid"] = self.hostid
        if self.details is not None:
            out["details"] = self.details.to_api()
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "HostInterface":
        details = row.get("details")
        return cls(
            type=to_int(row.get("type"), 1),
            ip=to_str(row.get("ip")),
            dns=to_str(row.get("dns")),
            port=to_str(row.get("port")),
            main=to_int(row.get("main")),
            useip=to_int(row.get("useip"), 1),
            interfaceid=to_str(row.get("interfaceid")),
            hostid=to_str(row.get("hostid")),
            details=SNMPDetails.from_api(details) if has_snmp_details(details) else None,
        )


@dataclass(frozen=True)
class Tag:
    tag: str
    value: str = ""

    def to_api(self) -> Dict[str, Any]:
        return {"tag": self.tag, "value": self.value}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Tag":
        return cls(tag=to_str(row.get("tag")), value=to_str(row.get("value")))


@dataclass(frozen=True)
class Macro:
    macro: str
    value: str = ""

    def to_api(self) -> Dict[str, Any]:
        return {"macro": self.macro, "value": self.value}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Macro":
        return cls(macro=to_str(row.get("macro")), value=to_str(row.get("value")))


@dataclass(frozen=True)
class Host:
    host: str
    name: str = ""
    status: int = 0
    description: str = ""
    inventory_mode: int = 0
    ipmi_authtype: int = -1
    ipmi_privilege: int = 2
    ipmi_username: str = ""
    ipmi_password: str = ""
    proxy_hostid: str = "0"
    interfaces: List[HostInterface] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    templates: List[str] = field(default_factory=list)
    macros: List[Macro] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    hostid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "host": self.host,
            "name": self.name,
            "status": num(self.status),
            "description": self.description,
            "inventory_mode": num(self.inventory_mode),
            "ipmi_authtype": num(self.ipmi_authtype),
            "ipmi_privilege": num(self.ipmi_privilege),
            "ipmi_username": self.ipmi_username,
            "ipmi_password": self.ipmi_password,
            "proxy_hostid": self.proxy_hostid or "0",
            "interfaces": [i.to_api() for i in self.interfaces],
            "groups": [{"groupid": g} for g in self.groups],
            "templates": [{"templateid": t} for t in self.templates],
            "macros": [m.to_api() for m in self.macros],
            "tags": [t.to_api() for t in self.tags],
        }
        if self.hostid:
            out["hostid"] = self.hostid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Host":
        return cls(
            host=to_str(row.get("host")),
            name=to_str(row.get("name")),
            status=to_int(row.get("status")),
            description=to_str(row.get("description")),
            inventory_mode=to_int(row.get("inventory_mode")),
            ipmi_authtype=to_int(row.get("ipmi_authtype"), -1),
            ipmi_privilege=to_int(row.get("ipmi_privilege"), 2),
            ipmi_username=to_str(row.get("ipmi_username")),
            ipmi_password=to_str(row.get("ipmi_password")),
            proxy_hostid=to_str(row.get("proxy_hostid") or "0"),
            interfaces=[HostInterface.from_api(i) for i in row.get("interfaces") or []],
            groups=_ids(row.get("groups") or row.get("hostgroups"), "groupid"),
            templates=_ids(row.get("parentTemplates"), "templateid"),
            macros=[Macro.from_api(m) for m in row.get("macros") or []],
            tags=[Tag.from_api(t) for t in row.get("tags") or []],
            hostid=to_str(row.get("hostid")),
        )


# --------------------------------------------------------------------------- #
# Items & triggers
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class Preprocessor:
    type: int
    params: str = ""
    error_handler: int = 0
    error_handler_params: str = ""

    def to_api(self) -> Dict[str, Any]:
        return {
            "type": num(self.type),
            "params": self.params,
            "error_handler": num(self.error_handler),
            "error_handler_params": self.error_handler_params,
        }

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Preprocessor":
        return cls(
            type=to_int(row.get("type")),
            params=to_str(row.get("params")),
            error_handler=to_int(row.get("error_handler")),
            error_handler_params=to_str(row.get("error_handler_params")),
        )


@dataclass(frozen=True)
class Item:
    name: str
    key_: str
    hostid: str
    type: int = 0
    value_type: int = 3
    delay: str = "1m"
    interfaceid: str = "0"
    description: str = ""
    history: str = "90d"
    trends: str = "365d"
    trapper_hosts: str = ""
    units: str = ""
    snmp_oid: str = ""
    valuemapid: str = "0"
    tags: List[Tag] = field(default_factory=list)
    preprocessing: List[Preprocessor] = field(default_factory=list)
    itemid: str = ""

    def to_api(self, *, for_update: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "key_": self.key_,
            "type": num(self.type),
            "value_type": num(self.value_type),
            "delay": self.delay,
            "interfaceid": self.interfaceid or "0",
            "description": self.description,
            "history": self.history,
            "trends": self.trends,
            "trapper_hosts": self.trapper_hosts,
            "units": self.units,
            "snmp_oid": self.snmp_oid,
            "valuemapid": self.valuemapid or "0",
            "tags": [t.to_api() for t in self.tags],
            "preprocessing": [p.to_api() for p in self.preprocessing],
        }
        if for_update:
            # hostid cannot be changed on item.update
            out["itemid"] = self.itemid
        else:
            out["hostid"] = self.hostid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Item":
        return cls(
            name=to_str(row.get("name")),
            key_=to_str(row.get("key_")),
            hostid=to_str(row.get("hostid")),
            type=to_int(row.get("type")),
            value_type=to_int(row.get("value_type"), 3),
            delay=to_str(row.get("delay")),
            interfaceid=to_str(row.get("interfaceid") or "0"),
            description=to_str(row.get("description")),
            history=to_str(row.get("history")),
            trends=to_str(row.get("trends")),
            trapper_hosts=to_str(row.get("trapper_hosts")),
            units=to_str(row.get("units")),
            snmp_oid=to_str(row.get("snmp_oid")),
            valuemapid=to_str(row.get("valuemapid") or "0"),
            tags=[Tag.from_api(t) for t in row.get("tags") or []],
            preprocessing=[Preprocessor.from_api(p) for p in row.get("preprocessing") or []],
            itemid=to_str(row.get("itemid")),
        )


@dataclass(frozen=True)
class Trigger:
    description: str
    expression: str
    priority: int = 0
    status: int = 0
    comments: str = ""
    recovery_mode: str = "0"
    recovery_expression: str = ""
    manual_close: str = "0"
    event_name: str = ""
    uuid: str = ""
    # None means "leave dependencies untouched" on update
    dependencies: Optional[List[str]] = None
    triggerid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "description": self.description,
            "expression": self.expression,
            "priority": num(self.priority),
            "status": num(self.status),
            "comments": self.comments,
            "recovery_mode": self.recovery_mode,
            "recovery_expression": self.recovery_expression,
            "manual_close": self.manual_close,
            "event_name": self.event_name,
        }
        if self.uuid:
            out["uuid"] = self.uuid
        if self.dependencies is not None:
            out["dependencies"] = [{"triggerid": d} for d in self.dependencies]
        if self.triggerid:
            out["triggerid"] = self.triggerid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Trigger":
        return cls(
            description=to_str(row.get("description")),
            expression=to_str(row.get("expression")),
            priority=to_int(row.get("priority")),
            status=to_int(row.get("status")),
            comments=to_str(row.get("comments")),
            recovery_mode=to_str(row.get("recovery_mode") or "0"),
            recovery_expression=to_str(row.get("recovery_expression")),
            manual_close=to_str(row.get("manual_close") or "0"),
            event_name=to_str(row.get("event_name")),
            uuid=to_str(row.get("uuid")),
            dependencies=_ids(row.get("dependencies"), "triggerid"),
            triggerid=to_str(row.get("triggerid")),
        )


# --------------------------------------------------------------------------- #
# Graphs & dashboards
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class GraphItem:
    itemid: str
    color: str
    calc_fnc: int = 2
    type: int = 0
    yaxisside: int = 0
    sortorder: int = 0

    def to_api(self) -> Dict[str, Any]:
        return {
            "itemid": self.itemid,
            "color": self.color,
            "calc_fnc": num(self.calc_fnc),
            "type": num(self.type),
            "yaxisside": num(self.yaxisside),
            "sortorder": num(self.sortorder),
        }

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "GraphItem":
        return cls(
            itemid=to_str(row.get("itemid")),
            color=to_str(row.get("color")),
            calc_fnc=to_int(row.get("calc_fnc"), 2),
            type=to_int(row.get("type")),
            yaxisside=to_int(row.get("yaxisside")),
            sortorder=to_int(row.get("sortorder")),
        )


@dataclass(frozen=True)
class Graph:
    name: str
    gitems: List[GraphItem]
    width: int = 900
    height: int = 200
    graphtype: int = 0
    show_legend: int = 1
    show_work_period: int = 1
    show_triggers: int = 1
    yaxismin: str = "0"
    yaxismax: str = "100"
    percent_left: str = "0"
    percent_right: str = "0"
    ymin_type: int = 0
    ymax_type: int = 0
    graphid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "width": num(self.width),
            "height": num(self.height),
            "graphtype": num(self.graphtype),
            "show_legend": num(self.show_legend),
            "show_work_period": num(self.show_work_period),
            "show_triggers": num(self.show_triggers),
            "yaxismin": self.yaxismin,
            "yaxismax": self.yaxismax,
            "percent_left": self.percent_left,
            "percent_right": self.percent_right,
            "ymin_type": num(self.ymin_type),
            "ymax_type": num(self.ymax_type),
            "gitems": [g.to_api() for g in self.gitems],
        }
        if self.graphid:
            out["graphid"] = self.graphid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Graph":
        return cls(
            name=to_str(row.get("name")),
            gitems=[GraphItem.from_api(g) for g in row.get("gitems") or []],
            width=to_int(row.get("width"), 900),
            height=to_int(row.get("height"), 200),
            graphtype=to_int(row.get("graphtype")),
            show_legend=to_int(row.get("show_legend"), 1),
            show_work_period=to_int(row.get("show_work_period"), 1),
            show_triggers=to_int(row.get("show_triggers"), 1),
            yaxismin=to_str(row.get("yaxismin")),
            yaxismax=to_str(row.get("yaxismax")),
            percent_left=to_str(row.get("percent_left")),
            percent_right=to_str(row.get("percent_right")),
            ymin_type=to_int(row.get("ymin_type")),
            ymax_type=to_int(row.get("ymax_type")),
            graphid=to_str(row.get("graphid")),
        )


@dataclass(frozen=True)
class WidgetField:
    type: str
    name: str
    value: str

    def to_api(self) -> Dict[str, Any]:
        return {"type": self.type, "name": self.name, "value": self.value}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "WidgetField":
        return cls(type=to_str(row.get("type")), name=to_str(row.get("name")), value=to_str(row.get("value")))


@dataclass(frozen=True)
class Widget:
    type: str
    name: str
    x: int
    y: int
    width: int
    height: int
    fields: List[WidgetField] = field(default_factory=list)
    widgetid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "x": num(self.x),
            "y": num(self.y),
            "width": num(self.width),
            "height": num(self.height),
            "fields": [f.to_api() for f in self.fields],
        }
        if self.widgetid:
            out["widgetid"] = self.widgetid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Widget":
        return cls(
            type=to_str(row.get("type")),
            name=to_str(row.get("name")),
            x=to_int(row.get("x")),
            y=to_int(row.get("y")),
            width=to_int(row.get("width")),
            height=to_int(row.get("height")),
            fields=[WidgetField.from_api(f) for f in row.get("fields") or []],
            widgetid=to_str(row.get("widgetid")),
        )


@dataclass(frozen=True)
class DashboardPage:
    name: str = ""
    widgets: List[Widget] = field(default_factory=list)
    display_period: int = 0
    dashboard_pageid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "display_period": num(self.display_period),
            "widgets": [w.to_api() for w in self.widgets],
        }
        if self.dashboard_pageid:
            out["dashboard_pageid"] = self.dashboard_pageid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "DashboardPage":
        return cls(
            name=to_str(row.get("name")),
            widgets=[Widget.from_api(w) for w in row.get("widgets") or []],
            display_period=to_int(row.get("display_period")),
            dashboard_pageid=to_str(row.get("dashboard_pageid")),
        )


@dataclass(frozen=True)
class Dashboard:
    name: str
    pages: List[DashboardPage]
    display_period: int = 30
    auto_start: int = 1
    private: int = 1
    dashboardid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "display_period": num(self.display_period),
            "auto_start": num(self.auto_start),
            "private": num(self.private),
            "pages": [p.to_api() for p in self.pages],
        }
        if self.dashboardid:
            out["dashboardid"] = self.dashboardid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Dashboard":
        return cls(
            name=to_str(row.get("name")),
            pages=[DashboardPage.from_api(p) for p in row.get("pages") or []],
            display_period=to_int(row.get("display_period"), 30),
            auto_start=to_int(row.get("auto_start"), 1),
            private=to_int(row.get("private"), 1),
            dashboardid=to_str(row.get("dashboardid")),
        )


# --------------------------------------------------------------------------- #
# Proxies
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class ProxyInterface:
    ip: str = ""
    dns: str = ""
    port: str = "10051"
    useip: int = 1

    def to_api(self) -> Dict[str, Any]:
        return {"ip": self.ip, "dns": self.dns, "port": self.port, "useip": num(self.useip)}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "ProxyInterface":
        return cls(
            ip=to_str(row.get("ip")),
            dns=to_str(row.get("dns")),
            port=to_str(row.get("port")),
            useip=0 if to_str(row.get("useip")) == "0" else 1,
        )


@dataclass(frozen=True)
class Proxy:
    host: str
    status: int = 5
    description: str = ""
    proxy_address: str = ""
    interface: Optional[ProxyInterface] = None
    hosts: List[str] = field(default_factory=list)
    proxyid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "host": self.host,
            "status": num(self.status),
            "description": self.description,
            "proxy_address": self.proxy_address,
            "interface": self.interface.to_api() if self.interface is not None else [],
            "hosts": [{"hostid": h} for h in self.hosts],
        }
        if self.proxyid:
            out["proxyid"] = self.proxyid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Proxy":
        iface = row.get("interface")
        return cls(
            host=to_str(row.get("host") or row.get("name")),
            status=to_int(row.get("status"), 5),
            description=to_str(row.get("description")),
            proxy_address=to_str(row.get("proxy_address")),
            interface=ProxyInterface.from_api(iface) if isinstance(iface, Mapping) and iface else None,
            hosts=_ids(row.get("hosts"), "hostid"),
            proxyid=to_str(row.get("proxyid")),
        )


# --------------------------------------------------------------------------- #
# Users, groups, roles
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class UserMedia:
    mediatypeid: str
    sendto: List[str]
    active: int = 0
    severity: int = 63
    period: str = "1-7,00:00-24:00"

    def to_api(self) -> Dict[str, Any]:
        return {
            "mediatypeid": self.mediatypeid,
            "sendto": list(self.sendto),
            "active": num(self.active),
            "severity": num(self.severity),
            "period": self.period,
        }

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "UserMedia":
        sendto = row.get("sendto")
        if isinstance(sendto, str):
            sendto = [sendto]
        return cls(
            mediatypeid=to_str(row.get("mediatypeid")),
            sendto=[to_str(s) for s in sendto or []],
            active=to_int(row.get("active")),
            severity=to_int(row.get("severity"), 63),
            period=to_str(row.get("period")),
        )


@dataclass(frozen=True)
class User:
    username: str
    roleid: str
    name: str = ""
    surname: str = ""
    groups: List[str] = field(default_factory=list)
    medias: List[UserMedia] = field(default_factory=list)
    theme: str = "default"
    lang: str = "default"
    rows_per_page: int = 50
    passwd: str = ""
    userid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "username": self.username,
            "name": self.name,
            "surname": self.surname,
            "roleid": self.roleid,
            "usrgrps": [{"usrgrpid": g} for g in self.groups],
            "medias": [m.to_api() for m in self.medias],
            "theme": self.theme,
            "lang": self.lang,
            "rows_per_page": num(self.rows_per_page),
        }
        if self.passwd:
            out["passwd"] = self.passwd
        if self.userid:
            out["userid"] = self.userid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            username=to_str(row.get("username") or row.get("alias")),
            roleid=to_str(row.get("roleid")),
            name=to_str(row.get("name")),
            surname=to_str(row.get("surname")),
            groups=_ids(row.get("usrgrps"), "usrgrpid"),
            medias=[UserMedia.from_api(m) for m in row.get("medias") or []],
            theme=to_str(row.get("theme") or "default"),
            lang=to_str(row.get("lang") or "default"),
            rows_per_page=to_int(row.get("rows_per_page"), 50),
            userid=to_str(row.get("userid")),
        )


@dataclass(frozen=True)
class UserGroup:
    name: str
    gui_access: int = 0
    debug_mode: int = 0
    users_status: int = 0
    usrgrpid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "gui_access": num(self.gui_access),
            "debug_mode": num(self.debug_mode),
            "users_status": num(self.users_status),
        }
        if self.usrgrpid:
            out["usrgrpid"] = self.usrgrpid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "UserGroup":
        return cls(
            name=to_str(row.get("name")),
            gui_access=to_int(row.get("gui_access")),
            debug_mode=to_int(row.get("debug_mode")),
            users_status=to_int(row.get("users_status")),
            usrgrpid=to_str(row.get("usrgrpid")),
        )


@dataclass(frozen=True)
class Role:
    name: str
    type: int = 1
    readonly: int = 0
    roleid: str = ""

    def to_api(self) -> Dict[str, Any]:
        # readonly is reported by role.get but cannot be written
        out: Dict[str, Any] = {"name": self.name, "type": num(self.type)}
        if self.roleid:
            out["roleid"] = self.roleid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Role":
        return cls(
            name=to_str(row.get("name")),
            type=to_int(row.get("type"), 1),
            readonly=to_int(row.get("readonly")),
            roleid=to_str(row.get("roleid")),
        )


# --------------------------------------------------------------------------- #
# Value maps & media types
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class ValueMapping:
    value: str
    newvalue: str
    type: int = 0

    def to_api(self) -> Dict[str, Any]:
        return {"value": self.value, "newvalue": self.newvalue, "type": num(self.type)}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "ValueMapping":
        return cls(value=to_str(row.get("value")), newvalue=to_str(row.get("newvalue")), type=to_int(row.get("type")))


@dataclass(frozen=True)
class ValueMap:
    name: str
    hostid: str
    mappings: List[ValueMapping]
    uuid: str = ""
    valuemapid: str = ""

    def to_api(self, *, for_update: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "mappings": [m.to_api() for m in self.mappings]}
        if for_update:
            # hostid and uuid are create-only
            out["valuemapid"] = self.valuemapid
        else:
            out["hostid"] = self.hostid
            if self.uuid:
                out["uuid"] = self.uuid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "ValueMap":
        return cls(
            name=to_str(row.get("name")),
            hostid=to_str(row.get("hostid")),
            mappings=[ValueMapping.from_api(m) for m in row.get("mappings") or []],
            uuid=to_str(row.get("uuid")),
            valuemapid=to_str(row.get("valuemapid")),
        )


@dataclass(frozen=True)
class WebhookParameter:
    name: str
    value: str = ""

    def to_api(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "WebhookParameter":
        return cls(name=to_str(row.get("name")), value=to_str(row.get("value")))


MEDIA_TYPE_FIELDS: Dict[int, tuple] = {
    0: ("smtp_server", "smtp_port", "smtp_helo", "smtp_email", "smtp_authentication",
        "username", "passwd", "smtp_security", "smtp_verify_host", "smtp_verify_peer", "content_type"),
    1: ("exec_path", "exec_params"),
    4: ("script", "timeout", "parameters"),
}
_MEDIA_INT_FIELDS = {"smtp_port", "smtp_authentication", "smtp_security", "smtp_verify_host",
                     "smtp_verify_peer", "content_type"}


@dataclass(frozen=True)
class MediaType:
    name: str
    type: int
    status: int = 0
    description: str = ""
    smtp_server: str = ""
    smtp_port: int = 25
    smtp_helo: str = ""
    smtp_email: str = ""
    smtp_authentication: int = 0
    username: str = ""
    passwd: str = ""
    smtp_security: int = 0
    smtp_verify_host: int = 0
    smtp_verify_peer: int = 0
    content_type: int = 1
    exec_path: str = ""
    exec_params: str = ""
    script: str = ""
    timeout: str = "30s"
    parameters: List[WebhookParameter] = field(default_factory=list)
    mediatypeid: str = ""

    def to_api(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "type": num(self.type),
            "status": num(self.status),
            "description": self.description,
        }
        for fname in MEDIA_TYPE_FIELDS.get(self.type, ()):
            value = getattr(self, fname)
            if fname == "parameters":
                out[fname] = [p.to_api() for p in value]
            elif fname in _MEDIA_INT_FIELDS:
                out[fname] = num(value)
            else:
                out[fname] = value
        if self.mediatypeid:
            out["mediatypeid"] = self.mediatypeid
        return out

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "MediaType":
        kwargs: Dict[str, Any] = {
            "name": to_str(row.get("name")),
            "type": to_int(row.get("type")),
            "status": to_int(row.get("status")),
            "description": to_str(row.get("description")),
            "mediatypeid": to_str(row.get("mediatypeid")),
        }
        for fname in MEDIA_TYPE_FIELDS.get(kwargs["type"], ()):
            if fname not in row:
                continue
            if fname == "parameters":
                kwargs[fname] = [WebhookParameter.from_api(p) for p in row.get(fname) or []]
            elif fname in _MEDIA_INT_FIELDS:
                kwargs[fname] = to_int(row.get(fname))
            else:
                kwargs[fname] = to_str(row.get(fname))
        return cls(**kwargs)


# --------------------------------------------------------------------------- #
# Singletons
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class AuthenticationSettings(_FlatSettings):
    authentication_type: int = 0
    http_auth_enabled: int = 0
    http_login_form: int = 0
    http_strip_domains: str = ""
    http_case_sensitive: int = 1
    ldap_configured: int = 0
    ldap_host: str = ""
    ldap_port: int = 389
    ldap_base_dn: str = ""
    ldap_search_attribute: str = ""
    ldap_bind_dn: str = ""
    ldap_case_sensitive: int = 1
    ldap_bind_password: str = ""
    saml_auth_enabled: int = 0
    saml_idp_entityid: str = ""
    saml_sso_url: str = ""
    saml_slo_url: str = ""
    saml_username_attribute: str = ""
    saml_sp_entityid: str = ""
    saml_nameid_format: str = ""
    saml_sign_messages: int = 0
    saml_sign_assertions: int = 0
    saml_sign_authn_requests: int = 0
    saml_sign_logout_requests: int = 0
    saml_sign_logout_responses: int = 0
    saml_encrypt_nameid: int = 0
    saml_encrypt_assertions: int = 0
    ldap_userdirectoryid: str = ""
    saml_case_sensitive: int = 0
    passwd_min_length: int = 8
    passwd_check_rules: int = 8


@dataclass(frozen=True)
class HousekeepingSettings(_FlatSettings):
    hk_events_mode: int = 1
    hk_events_trigger: str = "365d"
    hk_events_internal: str = "1d"
    hk_events_discovery: str = "1d"
    hk_events_autoreg: str = "1d"
    hk_services_mode: int = 1
    hk_services: str = "365d"
    hk_audit_mode: int = 1
    hk_audit: str = "365d"
    hk_sessions_mode: int = 1
    hk_sessions: str = "365d"
    hk_history_mode: int = 1
    hk_history_global: int = 0
    hk_history: str = "90d"
    hk_trends_mode: int = 1
    hk_trends_global: int = 0
    hk_trends: str = "365d"
    compression_status: int = 0
    compress_older: str = "7d"
    db_extension: str = _ro("")
    compression_availability: int = _ro(0)
