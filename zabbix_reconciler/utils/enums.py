"""
Enum translation tables (declared token <-> API code).

Every table is built once at import time and exposed through a read-only
``MappingProxyType``. Encoding is case-insensitive because tokens come from
hand-written manifests; decoding is exact because codes come from the API.

Some tables carry ``legacy_zero_default=True``. Historically an unknown
token on those tables was silently sent as the zero code. That behaviour is
only reproduced when the caller passes ``allow_legacy_default=True`` (driven
by ``ReconcileOptions.legacy_enum_defaults``); otherwise ``UnknownToken``.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Tuple, Union

from ..core.errors import UnknownCode, UnknownToken
from ..core.logging_utils import get_logger

log = get_logger(__name__)

Code = Union[int, str]


class EnumMapping:
    """Immutable bidirectional token/code table for one classification."""

    __slots__ = ("name", "_by_token", "_by_lower", "_by_code", "legacy_zero_default", "zero")

    def __init__(
        self,
        name: str,
        pairs: Iterable[Tuple[str, Code]],
        *,
        legacy_zero_default: bool = False,
    ) -> None:
        by_token: Dict[str, Code] = {}
        by_lower: Dict[str, str] = {}
        by_code: Dict[Code, str] = {}
        for token, code in pairs:
            low = token.lower()
            if low in by_lower:
                raise ValueError(f"{name}: duplicate token {token!r}")
            if code in by_code:
                raise ValueError(f"{name}: duplicate code {code!r}")
            by_token[token] = code
            by_lower[low] = token
            by_code[code] = token
        self.name = name
        self._by_token: Mapping[str, Code] = MappingProxyType(by_token)
        self._by_lower: Mapping[str, str] = MappingProxyType(by_lower)
        self._by_code: Mapping[Code, str] = MappingProxyType(by_code)
        self.legacy_zero_default = legacy_zero_default
        first = next(iter(by_code), 0)
        self.zero: Code = "0" if isinstance(first, str) else 0

    def __setattr__(self, key: str, value: Any) -> None:
        if hasattr(self, key):
            raise AttributeError(f"EnumMapping {getattr(self, 'name', '?')} is immutable")
        object.__setattr__(self, key, value)

    def __repr__(self) -> str:
        return f"EnumMapping({self.name!r}, {dict(self._by_token)!r})"

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token.lower() in self._by_lower

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_token)

    def __len__(self) -> int:
        return len(self._by_token)

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self._by_token)

    @property
    def codes(self) -> Tuple[Code, ...]:
        return tuple(self._by_code)

    def encode(self, token: Any, *, allow_legacy_default: bool = False, path: str | None = None) -> Code:
        """Return the API code for ``token`` (case-insensitive).

        Raises:
            UnknownToken: If the token is unknown and the legacy zero
                default does not apply.
        """
        # YAML turns `version: 2` into an int; tokens are compared as text
        key = str(token).lower() if isinstance(token, (str, int)) and not isinstance(token, bool) else None
        canonical = self._by_lower.get(key) if key is not None else None
        if canonical is not None:
            return self._by_token[canonical]
        if self.legacy_zero_default and allow_legacy_default:
            log.warning(
                "Unknown %s token %r mapped to legacy default code %r%s",
                self.name, token, self.zero, f" at {path}" if path else "",
            )
            return self.zero
        raise UnknownToken(self.name, token, path=path)

    def decode(self, code: Any) -> str:
        """Return the token for an API code.

        Integer tables also accept the decimal string form, since the API
        sends numbers as strings.

        Raises:
            UnknownCode: If the code is not in the table.
        """
        if code in self._by_code:
            return self._by_code[code]
        if isinstance(self.zero, int) and isinstance(code, str):
            try:
                num = int(code)
            except ValueError:
                raise UnknownCode(self.name, code) from None
            if num in self._by_code:
                return self._by_code[num]
        if isinstance(self.zero, str) and isinstance(code, int) and not isinstance(code, bool):
            if str(code) in self._by_code:
                return self._by_code[str(code)]
        raise UnknownCode(self.name, code)


# --------------------------------------------------------------------------- #
# Tables
# --------------------------------------------------------------------------- #
INTERFACE_TYPES = EnumMapping("interface type", [
    ("agent", 1),
    ("snmp", 2),
    ("ipmi", 3),
    ("jmx", 4),
])

SNMP_VERSIONS = EnumMapping("SNMP version", [
    ("1", "1"),
    ("2", "2"),
    ("3", "3"),
])

SNMP3_SECURITY_LEVELS = EnumMapping("SNMPv3 security level", [
    ("noauthnopriv", 0),
    ("authnopriv", 1),
    ("authpriv", 2),
])

SNMP3_AUTH_PROTOCOLS = EnumMapping("SNMPv3 auth protocol", [
    ("md5", 0),
    ("sha1", 1),
    ("sha224", 2),
    ("sha256", 3),
    ("sha384", 4),
    ("sha512", 5),
])

SNMP3_PRIV_PROTOCOLS = EnumMapping("SNMPv3 privacy protocol", [
    ("des", 0),
    ("aes128", 1),
    ("aes192", 2),
    ("aes256", 3),
    ("aes192c", 4),
    ("aes256c", 5),
])

PROXY_STATUSES = EnumMapping("proxy status", [
    ("ACTIVE", 5),
    ("PASSIVE", 6),
])

ROLE_TYPES = EnumMapping("role type", [
    ("user", 1),
    ("admin", 2),
    ("super_admin", 3),
])

VALUE_MAP_MATCH_TYPES = EnumMapping("value map match type", [
    ("exact_match", 0),
    ("greater_or_equal", 1),
    ("less_or_equal", 2),
    ("in_range", 3),
    ("regex_match", 4),
    ("default_match", 5),
])

MEDIA_TYPE_KINDS = EnumMapping("media type", [
    ("email", 0),
    ("script", 1),
    ("sms", 2),
    ("webhook", 4),
])

ITEM_TYPES = EnumMapping("item type", [
    ("Zabbix agent", 0),
    ("Zabbix trapper", 2),
    ("Simple check", 3),
    ("Zabbix internal", 5),
    ("Zabbix agent (active)", 7),
    ("Web item", 9),
    ("External check", 10),
    ("Database monitor", 11),
    ("IPMI agent", 12),
    ("SSH agent", 13),
    ("Telnet agent", 14),
    ("Calculated", 15),
    ("JMX agent", 16),
    ("SNMP trap", 17),
    ("Dependent item", 18),
    ("HTTP agent", 19),
    ("SNMP_AGENT", 20),
    ("Script", 21),
], legacy_zero_default=True)

ITEM_VALUE_TYPES = EnumMapping("item value type", [
    ("FLOAT", 0),
    ("CHAR", 1),
    ("log", 2),
    ("unsigned", 3),
    ("text", 4),
], legacy_zero_default=True)

PREPROCESSING_TYPES = EnumMapping("preprocessing type", [
    ("MULTIPLIER", 1),
    ("Right trim", 2),
    ("Left trim", 3),
    ("Trim", 4),
    ("Regular expression matching", 5),
    ("Boolean to decimal", 6),
    ("Octal to decimal", 7),
    ("Hexadecimal to decimal", 8),
    ("Simple change", 9),
    ("Change per second", 10),
    ("XML XPath", 11),
    ("JSONPath", 12),
    ("In range", 13),
    ("Matches regular expression", 14),
    ("Does not match regular expression", 15),
    ("Check for error in JSON", 16),
    ("Check for error in XML", 17),
    ("Check for error using regular expression", 18),
    ("Discard unchanged", 19),
    ("Discard unchanged with heartbeat", 20),
    ("JavaScript", 21),
    ("Prometheus pattern", 22),
    ("Prometheus to JSON", 23),
    ("CSV to JSON", 24),
    ("Replace", 25),
    ("Check unsupported", 26),
    ("XML to JSON", 27),
], legacy_zero_default=True)

TRIGGER_PRIORITIES = EnumMapping("trigger priority", [
    ("NOT_CLASSIFIED", 0),
    ("INFO", 1),
    ("WARNING", 2),
    ("AVERAGE", 3),
    ("HIGH", 4),
    ("DISASTER", 5),
], legacy_zero_default=True)

TRIGGER_RECOVERY_MODES = EnumMapping("trigger recovery mode", [
    ("default", "0"),
    ("RECOVERY_EXPRESSION", "1"),
    ("NONE", "2"),
], legacy_zero_default=True)

TRIGGER_MANUAL_CLOSE = EnumMapping("trigger manual close", [
    ("NO", "0"),
    ("YES", "1"),
], legacy_zero_default=True)


ALL_TABLES: Tuple[EnumMapping, ...] = (
    INTERFACE_TYPES,
    SNMP_VERSIONS,
    SNMP3_SECURITY_LEVELS,
    SNMP3_AUTH_PROTOCOLS,
    SNMP3_PRIV_PROTOCOLS,
    PROXY_STATUSES,
    ROLE_TYPES,
    VALUE_MAP_MATCH_TYPES,
    MEDIA_TYPE_KINDS,
    ITEM_TYPES,
    ITEM_VALUE_TYPES,
    PREPROCESSING_TYPES,
    TRIGGER_PRIORITIES,
    TRIGGER_RECOVERY_MODES,
    TRIGGER_MANUAL_CLOSE,
)
