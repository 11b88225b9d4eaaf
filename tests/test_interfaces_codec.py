import pytest

from zabbix_reconciler.codecs.interfaces import (
    interface_to_declarative,
    interfaces_to_remote,
    proxy_interface_to_declarative,
    proxy_interface_to_remote,
)
from zabbix_reconciler.core.errors import InvalidConfiguration
from zabbix_reconciler.core.models import HostInterface


def test_agent_interface_defaults():
    (iface,) = interfaces_to_remote([{"type": "agent", "ip": "10.0.0.1"}])
    assert iface.port == "10050"
    assert iface.useip == 1
    assert iface.main == 1
    assert iface.details is None
    assert iface.to_api() == {
        "type": "1", "ip": "10.0.0.1", "dns": "", "port": "10050", "main": "1", "useip": "1",
    }


def test_dns_only_interface_does_not_use_ip():
    (iface,) = interfaces_to_remote([{"type": "jmx", "dns": "web01.local"}])
    assert iface.useip == 0
    assert iface.port == "12345"


def test_ip_or_dns_required():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{"type": "agent"}])
    assert ei.value.violations == ["interfaces[0]: at least one of ip or dns must be set"]


def test_snmp_needs_details_block():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{"type": "snmp", "ip": "10.0.0.1"}])
    assert ei.value.violations == ["interfaces[0].snmp_config: is required for snmp interfaces"]


def test_snmp_v2_needs_community():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{"type": "snmp", "ip": "10.0.0.1", "snmp_config": [{"version": "2"}]}])
    assert ei.value.violations == ["interfaces[0].snmp_config[0].community: must be set for SNMP version 2"]


def test_snmp_details_on_agent_rejected():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{"type": "agent", "ip": "10.0.0.1", "snmp_config": [{"community": "public"}]}])
    assert "only allowed for snmp interfaces" in ei.value.violations[0]


def test_snmpv3_config_only_for_version_3():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{
            "type": "snmp", "ip": "10.0.0.1",
            "snmp_config": [{"version": "2", "community": "public", "snmpv3_config": [{"security_name": "x"}]}],
        }])
    assert "only allowed for SNMP version 3" in ei.value.violations[0]


def test_snmpv3_payload():
    (iface,) = interfaces_to_remote([{
        "type": "snmp",
        "ip": "10.0.0.1",
        "snmp_config": [{
            "version": 3,
            "snmpv3_config": [{
                "security_name": "monitor",
                "security_level": "authPriv",
                "auth_passphrase": "a-secret",
                "auth_protocol": "sha256",
                "priv_passphrase": "p-secret",
                "priv_protocol": "aes128",
            }],
        }],
    }])
    details = iface.to_api()["details"]
    assert details["version"] == "3"
    assert details["securitylevel"] == "2"
    assert details["authprotocol"] == "3"
    assert details["privprotocol"] == "1"
    assert "community" not in details
    assert iface.port == "161"


def test_declarative_from_api_row_without_details():
    iface = HostInterface.from_api({
        "interfaceid": "7", "hostid": "10084", "type": "1", "ip": "10.0.0.1", "dns": "",
        "port": "10050", "main": "1", "useip": "1", "details": [],
    })
    assert interface_to_declarative(iface) == {
        "interface_id": "7",
        "type": "agent",
        "ip": "10.0.0.1",
        "dns": "",
        "port": "10050",
        "main": True,
        "snmp_config": [],
    }


def test_declarative_snmp_v2():
    iface = HostInterface.from_api({
        "type": "2", "ip": "10.0.0.1", "port": "161", "main": "1",
        "details": {"version": "2", "bulk": "1", "community": "{$SNMP_COMMUNITY}"},
    })
    snmp = interface_to_declarative(iface)["snmp_config"]
    assert snmp == [{"version": "2", "bulk": True, "community": "{$SNMP_COMMUNITY}", "snmpv3_config": []}]


def test_proxy_interface():
    iface = proxy_interface_to_remote([{"dns": "proxy.local"}])
    assert iface.useip == 0 and iface.port == "10051"
    assert proxy_interface_to_declarative(iface) == [
        {"ip": "", "dns": "proxy.local", "port": "10051", "use_ip": False},
    ]
    assert proxy_interface_to_remote([]) is None
    with pytest.raises(InvalidConfiguration) as ei:
        proxy_interface_to_remote([{"ip": "10.0.0.5", "dns": "proxy.local"}])
    assert ei.value.violations == ["interface[0]: ip and dns are mutually exclusive"]


def test_snmpv3_rejects_community():
    with pytest.raises(InvalidConfiguration) as ei:
        interfaces_to_remote([{
            "type": "snmp",
            "ip": "10.0.0.1",
            "snmp_config": [{
                "version": "3",
                "community": "public",
                "snmpv3_config": [{"security_name": "monitor"}],
            }],
        }])
    assert ei.value.violations == [
        "interfaces[0].snmp_config[0].community: not used by SNMP version 3; use snmpv3_config",
    ]
