"""
Host interface codec (interfaces -> SNMP details -> SNMPv3 details) and the
proxy interface codec.

Declared shape of one host interface::

    {
      "interface_id": "",          # kept so updates touch the same interface
      "type": "snmp",              # agent | snmp | ipmi | jmx
      "ip": "10.0.0.1", "dns": "", "port": "161", "main": True,
      "snmp_config": [{            # required for type snmp, else []
        "version": "3", "bulk": True, "community": "",
        "snmpv3_config": [{        # only for version 3, else []
          "security_name": "...", "security_level": "authpriv",
          "auth_passphrase": "...", "auth_protocol": "sha256",
          "priv_passphrase": "...", "priv_protocol": "aes128",
          "context_name": "",
        }],
      }],
    }
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.models import HostInterface, ProxyInterface, SNMPDetails
from ..utils.enums import (
    INTERFACE_TYPES,
    SNMP3_AUTH_PROTOCOLS,
    SNMP3_PRIV_PROTOCOLS,
    SNMP3_SECURITY_LEVELS,
    SNMP_VERSIONS,
)
from .common import AttrReader, Violations, _run, join_path

DEFAULT_PORTS = {"agent": "10050", "snmp": "161", "ipmi": "623", "jmx": "12345"}
SNMP_TYPE = INTERFACE_TYPES.encode("snmp")


def _parse_snmp(block: Mapping[str, Any], v: Violations, path: str) -> SNMPDetails:
    r = AttrReader(block, v, path)
    version = r.enum("version", SNMP_VERSIONS, "2")
    community = r.text("community")
    if version in ("1", "2") and community == "":
        v.add(r.at("community"), f"must be set for SNMP version {version}")
    elif version == "3" and community != "":
        v.add(r.at("community"), "not used by SNMP version 3; use snmpv3_config")

    details: Dict[str, Any] = {
        "version": version,
        "bulk": 1 if r.flag("bulk", True) else 0,
        "community": community,
    }
    v3 = r.block("snmpv3_config")
    if version == "3":
        if v3 is None:
            v.add(r.at("snmpv3_config"), "is required for SNMP version 3")
        else:
            r3 = AttrReader(v3, v, join_path(r.at("snmpv3_config"), 0))
            details.update(
                securityname=r3.text("security_name"),
                securitylevel=r3.enum("security_level", SNMP3_SECURITY_LEVELS, "noauthnopriv"),
                authpassphrase=r3.text("auth_passphrase"),
                authprotocol=r3.enum("auth_protocol", SNMP3_AUTH_PROTOCOLS, "md5"),
                privpassphrase=r3.text("priv_passphrase"),
                privprotocol=r3.enum("priv_protocol", SNMP3_PRIV_PROTOCOLS, "des"),
                contextname=r3.text("context_name"),
            )
    elif v3 is not None:
        v.add(r.at("snmpv3_config"), f"only allowed for SNMP version 3, not {version}")
    return SNMPDetails(**details)


def parse_interface(attrs: Any, v: Violations, path: str, *, hostid: str = "") -> HostInterface:
    """Parse one declared interface, reporting into ``v``."""
    r = AttrReader(attrs, v, path)
    type_token = r.text("type", "agent")
    type_code = r.enum("type", INTERFACE_TYPES, "agent")
    ip = r.text("ip")
    dns = r.text("dns")
    if ip == "" and dns == "":
        v.add(path, "at least one of ip or dns must be set")

    snmp_block = r.block("snmp_config")
    details: Optional[SNMPDetails] = None
    if type_code == SNMP_TYPE:
        if snmp_block is None:
            v.add(r.at("snmp_config"), "is required for snmp interfaces")
        else:
            details = _parse_snmp(snmp_block, v, join_path(r.at("snmp_config"), 0))
    elif snmp_block is not None:
        v.add(r.at("snmp_config"), f"only allowed for snmp interfaces, not {type_token}")

    return HostInterface(
        type=type_code,
        ip=ip,
        dns=dns,
        port=r.text("port", DEFAULT_PORTS.get(type_token.lower(), "10050")),
        main=1 if r.flag("main", True) else 0,
        useip=1 if ip else 0,
        interfaceid=r.text("interface_id"),
        hostid=hostid,
        details=details,
    )


def _parse_interfaces(rows: Any, v: Violations, path: str) -> List[HostInterface]:
    return [parse_interface(row, v, join_path(path, i)) for i, row in enumerate(rows or [])]


def interfaces_to_remote(
    rows: Sequence[Mapping[str, Any]],
    *,
    v: Optional[Violations] = None,
    path: str = "interfaces",
) -> List[HostInterface]:
    """Parse a declared interface list.

    Raises:
        InvalidConfiguration: Listing every violated invariant (only when
            no collector ``v`` is passed in).
    """
    return _run(_parse_interfaces, rows, v, path, False)


def snmp_to_declarative(details: SNMPDetails) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "version": SNMP_VERSIONS.decode(details.version),
        "bulk": details.bulk != 0,
        "community": details.community,
        "snmpv3_config": [],
    }
    if details.version == "3":
        out["snmpv3_config"] = [{
            "security_name": details.securityname,
            "security_level": SNMP3_SECURITY_LEVELS.decode(details.securitylevel),
            "auth_passphrase": details.authpassphrase,
            "auth_protocol": SNMP3_AUTH_PROTOCOLS.decode(details.authprotocol),
            "priv_passphrase": details.privpassphrase,
            "priv_protocol": SNMP3_PRIV_PROTOCOLS.decode(details.privprotocol),
            "context_name": details.contextname,
        }]
    return out


def interface_to_declarative(iface: HostInterface) -> Dict[str, Any]:
    return {
        "interface_id": iface.interfaceid,
        "type": INTERFACE_TYPES.decode(iface.type),
        "ip": iface.ip,
        "dns": iface.dns,
        "port": iface.port,
        "main": iface.main != 0,
        "snmp_config": [snmp_to_declarative(iface.details)] if iface.details is not None else [],
    }


def interfaces_to_declarative(interfaces: Sequence[HostInterface]) -> List[Dict[str, Any]]:
    return [interface_to_declarative(i) for i in interfaces]


# --------------------------------------------------------------------------- #
# Proxy interface
# --------------------------------------------------------------------------- #
def _parse_proxy_interface(rows: Any, v: Violations, path: str) -> Optional[ProxyInterface]:
    rows = rows or []
    if not rows:
        return None
    if len(rows) > 1:
        v.add(path, f"at most one interface allowed, got {len(rows)}")
    r = AttrReader(rows[0], v, join_path(path, 0))
    ip = r.text("ip")
    dns = r.text("dns")
    if ip and dns:
        v.add(join_path(path, 0), "ip and dns are mutually exclusive")
    use_ip = r.flag("use_ip", bool(ip))
    return ProxyInterface(ip=ip, dns=dns, port=r.text("port", "10051"), useip=1 if use_ip else 0)


def proxy_interface_to_remote(rows, *, v: Optional[Violations] = None, path: str = "interface") -> Optional[ProxyInterface]:
    return _run(_parse_proxy_interface, rows, v, path, False)


def proxy_interface_to_declarative(iface: Optional[ProxyInterface]) -> List[Dict[str, Any]]:
    if iface is None:
        return []
    return [{"ip": iface.ip, "dns": iface.dns, "port": iface.port, "use_ip": iface.useip != 0}]
