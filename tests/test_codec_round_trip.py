import pytest

from zabbix_reconciler.codecs.common import (
    graph_items_to_declarative,
    graph_items_to_remote,
    macros_to_declarative,
    macros_to_remote,
    preprocessing_to_declarative,
    preprocessing_to_remote,
    tag_map_to_declarative,
    tag_map_to_remote,
    tags_to_declarative,
    tags_to_remote,
    user_medias_to_declarative,
    user_medias_to_remote,
    value_mappings_to_declarative,
    value_mappings_to_remote,
    webhook_params_to_declarative,
    webhook_params_to_remote,
)
from zabbix_reconciler.codecs.dashboards import dashboard_to_declarative, dashboard_to_remote
from zabbix_reconciler.codecs.interfaces import (
    interfaces_to_declarative,
    interfaces_to_remote,
    proxy_interface_to_declarative,
    proxy_interface_to_remote,
)
from zabbix_reconciler.core.models import HostInterface

AGENT = {
    "interface_id": "", "type": "agent", "ip": "10.0.0.1", "dns": "", "port": "10050", "main": True,
    "snmp_config": [],
}
SNMP_V1 = {
    "interface_id": "", "type": "snmp", "ip": "10.0.0.2", "dns": "", "port": "161", "main": True,
    "snmp_config": [{"version": "1", "bulk": True, "community": "public", "snmpv3_config": []}],
}
SNMP_V2 = {
    "interface_id": "31", "type": "snmp", "ip": "", "dns": "switch.local", "port": "1161", "main": False,
    "snmp_config": [{"version": "2", "bulk": False, "community": "{$SNMP_COMMUNITY}", "snmpv3_config": []}],
}
SNMP_V3 = {
    "interface_id": "", "type": "snmp", "ip": "10.0.0.3", "dns": "", "port": "161", "main": True,
    "snmp_config": [{
        "version": "3",
        "bulk": True,
        "community": "",
        "snmpv3_config": [{
            "security_name": "monitor",
            "security_level": "authpriv",
            "auth_passphrase": "a-secret",
            "auth_protocol": "sha256",
            "priv_passphrase": "p-secret",
            "priv_protocol": "aes128",
            "context_name": "ctx",
        }],
    }],
}


def _widget(name, x, **ids):
    out = {"type": "graph", "name": name, "x": x, "y": 0, "width": 12, "height": 5,
           "graph_ids": [], "item_ids": []}
    out.update(ids)
    return out


def _dashboard_declarative(dash):
    decoded = dashboard_to_declarative(dash)
    assert decoded.skipped_pages == 0
    return decoded.attributes


SHAPES = [
    pytest.param(interfaces_to_remote, interfaces_to_declarative, [AGENT], id="interface-agent"),
    pytest.param(interfaces_to_remote, interfaces_to_declarative, [SNMP_V1], id="interface-snmp-v1"),
    pytest.param(interfaces_to_remote, interfaces_to_declarative, [SNMP_V2], id="interface-snmp-v2"),
    pytest.param(interfaces_to_remote, interfaces_to_declarative, [SNMP_V3], id="interface-snmp-v3"),
    pytest.param(
        proxy_interface_to_remote, proxy_interface_to_declarative,
        [{"ip": "10.0.0.9", "dns": "", "port": "10051", "use_ip": True}],
        id="proxy-interface",
    ),
    pytest.param(
        tags_to_remote, tags_to_declarative,
        [{"tag": "env", "value": "prod"}, {"tag": "env", "value": "dr"}, {"tag": "team", "value": ""}],
        id="tags",
    ),
    pytest.param(tag_map_to_remote, tag_map_to_declarative, {"env": "prod", "role": ""}, id="tag-map"),
    pytest.param(
        macros_to_remote, macros_to_declarative,
        [{"name": "{$CPU.MAX}", "value": "90"}, {"name": "{$URL}", "value": ""}],
        id="macros",
    ),
    pytest.param(
        webhook_params_to_remote, webhook_params_to_declarative,
        [{"name": "URL", "value": "https://hooks.local"}, {"name": "Message", "value": "{ALERT.MESSAGE}"}],
        id="webhook-params",
    ),
    pytest.param(
        user_medias_to_remote, user_medias_to_declarative,
        [{"media_type_id": "1", "send_to": ["ops@example.com", "noc@example.com"], "enabled": False,
          "severity": 48, "period": "1-5,09:00-18:00"}],
        id="user-media",
    ),
    pytest.param(
        value_mappings_to_remote, value_mappings_to_declarative,
        [{"value": "1", "new_value": "Up", "type": "exact_match"},
         {"value": "10-20", "new_value": "Warm", "type": "in_range"},
         {"value": "", "new_value": "Unknown", "type": "default_match"}],
        id="value-mappings",
    ),
    pytest.param(
        graph_items_to_remote, graph_items_to_declarative,
        [{"item_id": "900", "color": "00AA00", "calc_fnc": 2, "type": 0, "y_axis_side": 0, "sort_order": 0},
         {"item_id": "901", "color": "FF0000", "calc_fnc": 4, "type": 0, "y_axis_side": 1, "sort_order": 1}],
        id="graph-items",
    ),
    pytest.param(
        preprocessing_to_remote, preprocessing_to_declarative,
        [{"type": "MULTIPLIER", "params": "8", "error_handler": 0, "error_handler_params": ""}],
        id="preprocessing",
    ),
    pytest.param(
        dashboard_to_remote, _dashboard_declarative,
        {"name": "Ops", "display_period": 60, "auto_start": 0, "private": 1,
         "widgets": [_widget("CPU", 0, graph_ids=["42"]), _widget("Memory", 12, item_ids=["900", "901"])]},
        id="dashboard",
    ),
    pytest.param(
        dashboard_to_remote, _dashboard_declarative,
        {"name": "Empty ids", "display_period": 30, "auto_start": 1, "private": 0,
         "widgets": [_widget("Clock", 0)]},
        id="dashboard-empty-ids",
    ),
]


@pytest.mark.parametrize(("to_remote", "to_declarative", "declared"), SHAPES)
def test_declared_value_survives_round_trip(to_remote, to_declarative, declared):
    assert to_declarative(to_remote(declared)) == declared


@pytest.mark.parametrize("declared", [AGENT, SNMP_V1, SNMP_V2, SNMP_V3], ids=["agent", "v1", "v2", "v3"])
def test_interface_survives_api_round_trip(declared):
    (iface,) = interfaces_to_remote([declared])
    fetched = HostInterface.from_api(iface.to_api())
    assert interfaces_to_declarative([fetched]) == [declared]


def test_two_widgets_become_one_page():
    widgets = [_widget("CPU", 0, graph_ids=["42"]), _widget("Memory", 12, graph_ids=["43"])]
    dash = dashboard_to_remote({"name": "Ops", "widgets": widgets})
    assert len(dash.pages) == 1
    assert [w.name for w in dash.pages[0].widgets] == ["CPU", "Memory"]
    assert dashboard_to_declarative(dash).attributes["widgets"] == widgets
